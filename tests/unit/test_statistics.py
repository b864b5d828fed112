"""
Unit tests for swim statistics and occupancy reporting.

Only completed sessions (checked in and out) count toward laps,
meters and minutes.
"""

from datetime import date, datetime
from uuid import uuid4

import pytest

from poolbook.core.scheduling.models import AttendanceRecord, ScheduleConfig
from poolbook.core.scheduling.statistics import ReportMode, StatisticsAggregator

from factories import SATURDAY, TUESDAY, WEDNESDAY, make_reservation

NOW = datetime(2026, 10, 22, 12, 0)


@pytest.fixture
def statistics(store, config):
    return StatisticsAggregator(store=store, config=config)


def add_swim(store, user_id, day, start, end, laps, user_name="Ana"):
    reservation = make_reservation(day=day, hour=start.hour, user_id=user_id, user_name=user_name)
    return store.add_session(reservation, check_in=start, check_out=end, laps=laps)


# ---------------------------------------------------------------------------
# Personal Statistics
# ---------------------------------------------------------------------------

class TestPersonalStats:

    @pytest.fixture(autouse=True)
    def history(self, store):
        add_swim(store, "u-1", TUESDAY, datetime(2026, 10, 20, 10), datetime(2026, 10, 20, 11), 20)
        add_swim(store, "u-1", WEDNESDAY, datetime(2026, 10, 21, 9), datetime(2026, 10, 21, 9, 30), 10)
        add_swim(store, "u-1", WEDNESDAY, datetime(2026, 10, 21, 11), datetime(2026, 10, 21, 11, 45), 15)
        add_swim(store, "u-1", date(2026, 10, 2), datetime(2026, 10, 2, 8), datetime(2026, 10, 2, 8, 20), 5)
        add_swim(store, "u-1", date(2026, 3, 10), datetime(2026, 3, 10, 8), datetime(2026, 3, 10, 8, 40), 8)
        add_swim(store, "u-2", TUESDAY, datetime(2026, 10, 20, 10), datetime(2026, 10, 20, 11), 99)

    def test_weekly_totals(self, statistics):
        weekly = statistics.personal_stats("u-1", now=NOW).weekly
        assert (weekly.laps, weekly.meters, weekly.minutes) == (45, 2250, 135)

    def test_monthly_totals(self, statistics):
        monthly = statistics.personal_stats("u-1", now=NOW).monthly
        assert (monthly.laps, monthly.minutes) == (50, 155)

    def test_yearly_totals(self, statistics):
        yearly = statistics.personal_stats("u-1", now=NOW).yearly
        assert (yearly.laps, yearly.meters, yearly.minutes) == (58, 2900, 195)

    def test_best_day_sums_sessions_of_the_day(self, statistics):
        stats = statistics.personal_stats("u-1", now=NOW)
        assert stats.best_day_date == WEDNESDAY
        assert stats.best_day_laps == 25
        assert stats.best_day_meters == 1250

    def test_open_sessions_are_ignored(self, store, statistics):
        reservation = make_reservation(day=WEDNESDAY, hour=12, user_id="u-1")
        store.add_session(reservation, check_in=datetime(2026, 10, 21, 12))
        assert statistics.personal_stats("u-1", now=NOW).weekly.laps == 45


class TestPersonalStatsEdges:

    def test_no_sessions(self, statistics):
        stats = statistics.personal_stats("nobody", now=NOW)
        assert stats.weekly.laps == 0
        assert stats.best_day_date is None
        assert stats.best_day_laps == 0

    def test_best_day_tie_keeps_first_date(self, store, statistics):
        add_swim(store, "u-1", TUESDAY, datetime(2026, 10, 20, 10), datetime(2026, 10, 20, 11), 20)
        add_swim(store, "u-1", WEDNESDAY, datetime(2026, 10, 21, 10), datetime(2026, 10, 21, 11), 20)
        assert statistics.personal_stats("u-1", now=NOW).best_day_date == TUESDAY

    def test_zero_lap_sessions_give_no_best_day(self, store, statistics):
        add_swim(store, "u-1", TUESDAY, datetime(2026, 10, 20, 10), datetime(2026, 10, 20, 11), 0)
        assert statistics.personal_stats("u-1", now=NOW).best_day_date is None

    def test_meters_follow_pool_length(self, store):
        add_swim(store, "u-1", TUESDAY, datetime(2026, 10, 20, 10), datetime(2026, 10, 20, 11), 4)
        statistics = StatisticsAggregator(store=store, config=ScheduleConfig(pool_length_meters=25))
        assert statistics.personal_stats("u-1", now=NOW).weekly.meters == 100


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------

class TestLeaderboard:

    def test_ties_keep_first_seen_order(self, store, statistics):
        add_swim(store, "a", TUESDAY, datetime(2026, 10, 20, 9), datetime(2026, 10, 20, 10), 40, "Ana")
        add_swim(store, "b", TUESDAY, datetime(2026, 10, 20, 9), datetime(2026, 10, 20, 10), 40, "Ben")
        add_swim(store, "c", TUESDAY, datetime(2026, 10, 20, 9), datetime(2026, 10, 20, 10), 10, "Cruz")

        board = statistics.leaderboard()

        assert [(e.rank, e.user_id) for e in board] == [(1, "a"), (2, "b"), (3, "c")]
        assert board[0].total_meters == 2000
        assert board[0].total_minutes == 60

    def test_sums_sessions_per_swimmer(self, store, statistics):
        add_swim(store, "a", TUESDAY, datetime(2026, 10, 20, 9), datetime(2026, 10, 20, 10), 10)
        add_swim(store, "a", WEDNESDAY, datetime(2026, 10, 21, 9), datetime(2026, 10, 21, 10), 15)
        assert statistics.leaderboard()[0].total_laps == 25

    def test_limited_to_top_ten(self, store, statistics):
        for n in range(12):
            add_swim(store, f"u-{n}", TUESDAY, datetime(2026, 10, 20, 9), datetime(2026, 10, 20, 10), n)
        board = statistics.leaderboard()
        assert len(board) == 10
        assert board[0].user_id == "u-11"

    def test_empty(self, statistics):
        assert statistics.leaderboard() == []


# ---------------------------------------------------------------------------
# Occupancy Reports
# ---------------------------------------------------------------------------

class TestOccupancyReport:

    def test_daily_no_shows(self, store, statistics):
        store.add(make_reservation(hour=9, head_count=5))

        report = statistics.occupancy_report(ReportMode.DAILY, TUESDAY)
        row = next(r for r in report.rows if r.hour == 9)

        assert row.label == "9:00"
        assert (row.reserved, row.attended, row.compliance) == (5, 0, 0.0)
        assert report.attendance_rate == 0.0
        assert report.no_show_rate == 100.0

    def test_daily_counts_head_count_of_arrivals(self, store, statistics):
        arrived = store.add(make_reservation(hour=9, head_count=4))
        store.add(make_reservation(hour=9, head_count=2, user_id="u-2"))
        store.add_record(AttendanceRecord(
            reservation_id=arrived.id, check_in_time=datetime(2026, 10, 20, 9, 5)
        ))

        report = statistics.occupancy_report(ReportMode.DAILY, TUESDAY)
        row = next(r for r in report.rows if r.hour == 9)

        assert (row.reserved, row.attended) == (6, 4)
        assert row.compliance == 66.7
        assert report.no_show_rate == 33.3

    def test_daily_rows_cover_operating_hours(self, statistics):
        report = statistics.occupancy_report(ReportMode.DAILY, SATURDAY)
        assert [row.label for row in report.rows][0] == "5:00"
        assert len(report.rows) == 9

    def test_weekly_rows_are_days(self, store, statistics):
        store.add(make_reservation(day=TUESDAY, hour=9, head_count=3))
        store.add(make_reservation(day=TUESDAY, hour=10, head_count=2))

        report = statistics.occupancy_report(ReportMode.WEEKLY, WEDNESDAY)

        assert len(report.rows) == 7
        assert report.rows[0].label == "2026-10-19"
        assert report.rows[1].reserved == 5

    def test_monthly_rows_cover_month(self, statistics):
        report = statistics.occupancy_report(ReportMode.MONTHLY, TUESDAY)
        assert len(report.rows) == 31
        assert report.rows[-1].label == "2026-10-31"

    def test_empty_report(self, statistics):
        report = statistics.occupancy_report(ReportMode.WEEKLY, TUESDAY)
        assert report.total_reserved == 0
        assert report.attendance_rate == 0.0
        assert report.no_show_rate == 100.0


class TestAttendanceLog:

    def test_latest_check_in_first(self, store, statistics):
        add_swim(store, "a", TUESDAY, datetime(2026, 10, 20, 9), datetime(2026, 10, 20, 10), 10, "Ana")
        add_swim(store, "b", WEDNESDAY, datetime(2026, 10, 21, 9), datetime(2026, 10, 21, 10), 12, "Ben")

        rows = statistics.attendance_log()

        assert [row.user_name for row in rows] == ["Ben", "Ana"]
        assert rows[0].meters == 600
        assert rows[0].duration_minutes == 60

    def test_deleted_reservation_placeholder(self, store, statistics):
        store.add_record(AttendanceRecord(
            reservation_id=uuid4(), check_in_time=datetime(2026, 10, 20, 9)
        ))
        row = statistics.attendance_log()[0]
        assert row.user_name == "Deleted user"
        assert row.role == "N/A"
        assert row.reservation_date is None
