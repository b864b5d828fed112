"""
Capacity ledger.

Read-side aggregation over a snapshot of reservations: how many people
occupy a slot, how many seats remain, and which lanes the next group gets.
Only CONFIRMED reservations count toward occupancy.

Lanes are fixed bands of ``lane_size`` people derived from occupancy. They
are a coarse hint, not an exclusive allocation: two groups admitted from
the same snapshot may be given the same lane number.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from .models import LaneRange, Reservation, Role, ScheduleConfig
from .policy import SchedulePolicy


@dataclass
class SlotAvailability:
    """One row of the daily booking grid."""
    hour: int
    occupancy: int
    remaining: int
    capacity: int
    is_privileged: bool
    is_restricted: bool
    is_past: bool

    @property
    def is_full(self) -> bool:
        return self.occupancy >= self.capacity

    @property
    def percent_full(self) -> float:
        if self.capacity <= 0:
            return 100.0
        return round(self.occupancy / self.capacity * 100, 1)

    @property
    def is_bookable(self) -> bool:
        return not (self.is_full or self.is_past or self.is_restricted)


@dataclass
class GridCell:
    """A single (day, hour) cell of the weekly schedule."""
    hour: int
    is_open: bool
    occupancy: int = 0
    capacity: int = 0
    has_own_booking: bool = False

    @property
    def load(self) -> str:
        """Traffic-light level: low, medium (>50%) or high (>90%)."""
        if not self.is_open or self.capacity <= 0:
            return "closed"
        percent = self.occupancy / self.capacity * 100
        if percent > 90:
            return "high"
        if percent > 50:
            return "medium"
        return "low"


@dataclass
class DayColumn:
    day: date
    is_operating_day: bool
    cells: list[GridCell] = field(default_factory=list)


class CapacityLedger:
    """Occupancy arithmetic over a point-in-time reservation snapshot."""

    def __init__(self, config: ScheduleConfig, reservations: Iterable[Reservation]) -> None:
        self.config = config
        self.policy = SchedulePolicy(config)
        self._reservations = list(reservations)
        self._occupancy: dict[tuple[date, int], int] = defaultdict(int)
        for reservation in self._reservations:
            if reservation.is_confirmed:
                self._occupancy[reservation.slot] += reservation.head_count

    def occupancy(self, day: date, hour: int) -> int:
        return self._occupancy.get((day, hour), 0)

    def remaining(self, day: date, hour: int) -> int:
        """Seats left at the slot, never reported below zero."""
        return max(0, self.config.max_capacity_per_hour - self.occupancy(day, hour))

    def fits(self, day: date, hour: int, head_count: int) -> bool:
        return self.occupancy(day, hour) + head_count <= self.config.max_capacity_per_hour

    def next_lane_range(self, day: date, hour: int, head_count: int) -> LaneRange:
        """
        Lanes for a new group placed after the current occupants.

        With lane size 6: occupancy 0 + 7 people -> lanes 1-2,
        occupancy 12 + 3 people -> lane 3.
        """
        if head_count < 1:
            raise ValueError("Head count must be positive")
        current = self.occupancy(day, hour)
        size = self.config.lane_size
        return LaneRange(
            start=current // size + 1,
            end=(current + head_count - 1) // size + 1,
        )

    def day_slots(self, day: date, role: Role, now: Optional[datetime] = None) -> list[SlotAvailability]:
        """Availability of every operating hour of ``day`` for ``role``."""
        slots = []
        for hour in self.policy.operating_hours(day):
            privileged = self.policy.is_privileged_hour(hour)
            slots.append(SlotAvailability(
                hour=hour,
                occupancy=self.occupancy(day, hour),
                remaining=self.remaining(day, hour),
                capacity=self.config.max_capacity_per_hour,
                is_privileged=privileged,
                is_restricted=not self.policy.can_use_hour(hour, role),
                is_past=_is_past(day, hour, now),
            ))
        return slots

    def week_grid(self, reference_date: date, user_id: Optional[str] = None) -> list[DayColumn]:
        """Monday-first grid of the week containing ``reference_date``."""
        monday = reference_date - timedelta(days=reference_date.weekday())
        own_slots = {
            r.slot for r in self._reservations
            if r.is_confirmed and user_id is not None and r.user_id == user_id
        }
        hours = range(self.config.open_hour, self.config.close_hour_weekday)

        columns = []
        for offset in range(7):
            day = monday + timedelta(days=offset)
            open_hours = set(self.policy.operating_hours(day))
            column = DayColumn(day=day, is_operating_day=self.policy.is_operating_day(day))
            for hour in hours:
                if hour not in open_hours:
                    column.cells.append(GridCell(hour=hour, is_open=False))
                    continue
                column.cells.append(GridCell(
                    hour=hour,
                    is_open=True,
                    occupancy=self.occupancy(day, hour),
                    capacity=self.config.max_capacity_per_hour,
                    has_own_booking=(day, hour) in own_slots,
                ))
            columns.append(column)
        return columns


def _is_past(day: date, hour: int, now: Optional[datetime]) -> bool:
    if now is None:
        return False
    today = now.date()
    return day < today or (day == today and hour < now.hour)
