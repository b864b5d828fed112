"""
Swim statistics and occupancy reporting.

Personal statistics and the leaderboard only consider completed sessions
(both check-in and check-out recorded). Occupancy reports compare reserved
head count with the head count of reservations that actually checked in.

All time windows are computed from an explicit ``now`` or reference date so
results are reproducible.
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from .errors import translate_storage_errors
from .models import AttendanceRecord, Reservation, ScheduleConfig
from .policy import SchedulePolicy
from .store import PoolStore

logger = logging.getLogger(__name__)


class ReportMode(Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


@dataclass
class WindowTotals:
    laps: int = 0
    meters: int = 0
    minutes: int = 0


@dataclass
class PersonalStats:
    user_id: str
    weekly: WindowTotals = field(default_factory=WindowTotals)
    monthly: WindowTotals = field(default_factory=WindowTotals)
    yearly: WindowTotals = field(default_factory=WindowTotals)
    best_day_date: Optional[date] = None
    best_day_laps: int = 0
    best_day_meters: int = 0


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    user_name: str
    total_laps: int
    total_meters: int
    total_minutes: int


@dataclass
class ReportRow:
    label: str
    reserved: int
    attended: int
    day: Optional[date] = None
    hour: Optional[int] = None

    @property
    def compliance(self) -> float:
        return _percent(self.attended, self.reserved)


@dataclass
class OccupancyReport:
    mode: ReportMode
    reference_date: date
    rows: list[ReportRow] = field(default_factory=list)

    @property
    def total_reserved(self) -> int:
        return sum(row.reserved for row in self.rows)

    @property
    def total_attended(self) -> int:
        return sum(row.attended for row in self.rows)

    @property
    def attendance_rate(self) -> float:
        return _percent(self.total_attended, self.total_reserved)

    @property
    def no_show_rate(self) -> float:
        return round(100 - self.attendance_rate, 1)


@dataclass
class AttendanceLogRow:
    """An attendance record joined to its reservation, for operators."""
    record_id: UUID
    user_name: str
    role: str
    reservation_date: Optional[date]
    reservation_hour: Optional[int]
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    duration_minutes: Optional[int]
    laps: int
    meters: int


@dataclass
class _Session:
    reservation: Reservation
    record: AttendanceRecord


class StatisticsAggregator:
    """Derives personal stats, the leaderboard and occupancy reports."""

    def __init__(self, store: PoolStore, config: ScheduleConfig) -> None:
        self._store = store
        self.config = config
        self.policy = SchedulePolicy(config)

    # -----------------------------------------------------------------------
    # Swimmer statistics
    # -----------------------------------------------------------------------

    def personal_stats(self, user_id: str, now: datetime) -> PersonalStats:
        """
        Weekly, monthly and yearly totals plus the best single day.

        The week starts on Monday. The best day is the check-out date with
        the most laps; on a tie the first date encountered wins.
        """
        sessions = [s for s in self._completed_sessions() if s.reservation.user_id == user_id]

        today = now.date()
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)
        year_start = today.replace(month=1, day=1)

        stats = PersonalStats(
            user_id=user_id,
            weekly=self._totals(sessions, week_start, week_start + timedelta(days=7)),
            monthly=self._totals(sessions, month_start, _next_month(month_start)),
            yearly=self._totals(sessions, year_start, year_start.replace(year=year_start.year + 1)),
        )

        laps_by_day: dict[date, int] = {}
        for session in sessions:
            day = session.record.check_out_time.date()
            laps_by_day[day] = laps_by_day.get(day, 0) + session.record.laps
        for day, laps in laps_by_day.items():
            if laps > stats.best_day_laps:
                stats.best_day_laps = laps
                stats.best_day_date = day
        stats.best_day_meters = stats.best_day_laps * self.config.pool_length_meters

        return stats

    def leaderboard(self) -> list[LeaderboardEntry]:
        """All-time top swimmers by total laps."""
        totals: dict[str, dict] = {}
        for session in self._completed_sessions():
            owner = session.reservation
            entry = totals.setdefault(owner.user_id, {"name": owner.user_name, "laps": 0, "minutes": 0})
            entry["laps"] += session.record.laps
            entry["minutes"] += session.record.duration_minutes or 0

        # sorted() is stable, so tied swimmers keep their first-seen order
        ranked = sorted(totals.items(), key=lambda item: item[1]["laps"], reverse=True)
        return [
            LeaderboardEntry(
                rank=position,
                user_id=user_id,
                user_name=entry["name"],
                total_laps=entry["laps"],
                total_meters=entry["laps"] * self.config.pool_length_meters,
                total_minutes=entry["minutes"],
            )
            for position, (user_id, entry) in enumerate(ranked, start=1)
        ][: self.config.leaderboard_size]

    # -----------------------------------------------------------------------
    # Occupancy reporting
    # -----------------------------------------------------------------------

    def occupancy_report(self, mode: ReportMode, reference_date: date) -> OccupancyReport:
        """Reserved vs. attended head count over a day, week or month."""
        reservations, records = self._snapshot()
        arrived = {r.reservation_id for r in records if r.check_in_time is not None}

        reserved: dict[tuple[date, int], int] = {}
        attended: dict[tuple[date, int], int] = {}
        for reservation in reservations:
            if not reservation.is_confirmed:
                continue
            reserved[reservation.slot] = reserved.get(reservation.slot, 0) + reservation.head_count
            if reservation.id in arrived:
                attended[reservation.slot] = attended.get(reservation.slot, 0) + reservation.head_count

        report = OccupancyReport(mode=mode, reference_date=reference_date)
        if mode == ReportMode.DAILY:
            for hour in self.policy.operating_hours(reference_date):
                slot = (reference_date, hour)
                report.rows.append(ReportRow(
                    label=f"{hour}:00",
                    reserved=reserved.get(slot, 0),
                    attended=attended.get(slot, 0),
                    day=reference_date,
                    hour=hour,
                ))
        else:
            for day in _days_for(mode, reference_date):
                report.rows.append(ReportRow(
                    label=day.isoformat(),
                    reserved=sum(v for (d, _), v in reserved.items() if d == day),
                    attended=sum(v for (d, _), v in attended.items() if d == day),
                    day=day,
                ))

        logger.debug(
            "Occupancy report built",
            extra={
                "mode": mode.value,
                "reference_date": reference_date.isoformat(),
                "total_reserved": report.total_reserved,
                "total_attended": report.total_attended,
            }
        )
        return report

    def attendance_log(self) -> list[AttendanceLogRow]:
        """Every attendance record joined to its reservation, latest check-in first."""
        reservations, records = self._snapshot()
        by_id = {r.id: r for r in reservations}
        length = self.config.pool_length_meters

        rows = []
        for record in records:
            reservation = by_id.get(record.reservation_id)
            rows.append(AttendanceLogRow(
                record_id=record.id,
                user_name=reservation.user_name if reservation else "Deleted user",
                role=reservation.user_role.value if reservation else "N/A",
                reservation_date=reservation.date if reservation else None,
                reservation_hour=reservation.hour if reservation else None,
                check_in_time=record.check_in_time,
                check_out_time=record.check_out_time,
                duration_minutes=record.duration_minutes,
                laps=record.laps,
                meters=record.distance_meters(length),
            ))
        rows.sort(key=lambda row: row.check_in_time or datetime.min, reverse=True)
        return rows

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _snapshot(self) -> tuple[list[Reservation], list[AttendanceRecord]]:
        with translate_storage_errors("list_reservations"):
            reservations = self._store.list_reservations()
        with translate_storage_errors("list_attendance"):
            records = self._store.list_attendance()
        return reservations, records

    def _completed_sessions(self) -> list[_Session]:
        reservations, records = self._snapshot()
        by_id = {r.id: r for r in reservations}
        return [
            _Session(reservation=by_id[record.reservation_id], record=record)
            for record in records
            if record.is_complete and record.reservation_id in by_id
        ]

    def _totals(self, sessions: Iterable[_Session], start: date, end: date) -> WindowTotals:
        totals = WindowTotals()
        for session in sessions:
            if start <= session.record.check_out_time.date() < end:
                totals.laps += session.record.laps
                totals.minutes += session.record.duration_minutes or 0
        totals.meters = totals.laps * self.config.pool_length_meters
        return totals


def _percent(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 1)


def _next_month(first_of_month: date) -> date:
    if first_of_month.month == 12:
        return first_of_month.replace(year=first_of_month.year + 1, month=1)
    return first_of_month.replace(month=first_of_month.month + 1)


def _days_for(mode: ReportMode, reference_date: date) -> list[date]:
    if mode == ReportMode.WEEKLY:
        monday = reference_date - timedelta(days=reference_date.weekday())
        return [monday + timedelta(days=offset) for offset in range(7)]
    days_in_month = calendar.monthrange(reference_date.year, reference_date.month)[1]
    return [reference_date.replace(day=day) for day in range(1, days_in_month + 1)]
