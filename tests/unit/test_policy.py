"""
Unit tests for the schedule policy and the core value objects.

These tests verify the core business logic without touching
external services (no API calls, no database).
"""

from datetime import datetime
from uuid import uuid4

import pytest

from poolbook.core.scheduling.models import (
    AttendanceRecord,
    AttendanceState,
    LaneRange,
    Role,
    ScheduleConfig,
)
from poolbook.core.scheduling.policy import SchedulePolicy

from factories import MONDAY, SATURDAY, SUNDAY, TUESDAY, WEDNESDAY, make_reservation


# ---------------------------------------------------------------------------
# Schedule Policy Tests
# ---------------------------------------------------------------------------

class TestOperatingDays:
    """The pool opens Tuesday to Saturday."""

    def test_tuesday_to_saturday_are_open(self, config):
        policy = SchedulePolicy(config)
        assert policy.is_operating_day(TUESDAY)
        assert policy.is_operating_day(WEDNESDAY)
        assert policy.is_operating_day(SATURDAY)

    def test_sunday_and_monday_are_closed(self, config):
        policy = SchedulePolicy(config)
        assert not policy.is_operating_day(SUNDAY)
        assert not policy.is_operating_day(MONDAY)

    def test_closed_day_has_no_operating_hours(self, config):
        assert SchedulePolicy(config).operating_hours(MONDAY) == []


class TestClosingHour:
    """Saturday closes early."""

    def test_weekday_closes_at_twenty(self, config):
        assert SchedulePolicy(config).closing_hour(TUESDAY) == 20

    def test_saturday_closes_at_fourteen(self, config):
        assert SchedulePolicy(config).closing_hour(SATURDAY) == 14

    def test_operating_hours_run_from_open_to_closing(self, config):
        policy = SchedulePolicy(config)
        assert policy.operating_hours(TUESDAY) == list(range(5, 20))
        assert policy.operating_hours(SATURDAY) == list(range(5, 14))

    def test_custom_schedule_is_respected(self):
        config = ScheduleConfig(open_hour=7, close_hour_weekday=10, operating_weekdays=frozenset({0}))
        policy = SchedulePolicy(config)
        assert policy.operating_hours(MONDAY) == [7, 8, 9]
        assert policy.operating_hours(TUESDAY) == []


class TestPrivilegedHours:
    """Club hours are reserved for administrators and account holders."""

    @pytest.mark.parametrize("hour", [5, 6, 15, 16, 17])
    def test_privileged_hours(self, config, hour):
        assert SchedulePolicy(config).is_privileged_hour(hour)

    @pytest.mark.parametrize("role", [Role.ADMIN, Role.PRINCIPAL])
    def test_privileged_roles_can_use_club_hours(self, config, role):
        assert SchedulePolicy(config).can_use_hour(16, role)

    @pytest.mark.parametrize("role", [Role.DEPENDENT, Role.INDIVIDUAL])
    def test_other_roles_cannot_use_club_hours(self, config, role):
        assert not SchedulePolicy(config).can_use_hour(16, role)

    def test_everyone_can_use_regular_hours(self, config):
        policy = SchedulePolicy(config)
        assert all(policy.can_use_hour(9, role) for role in Role)


# ---------------------------------------------------------------------------
# Value Object Tests
# ---------------------------------------------------------------------------

class TestLaneRange:

    def test_label_lists_every_lane(self):
        assert LaneRange(start=3, end=5).label == "3, 4, 5"

    def test_from_lanes_uses_bounds(self):
        assert LaneRange.from_lanes([2, 1]) == LaneRange(start=1, end=2)

    def test_rejects_inverted_range(self):
        with pytest.raises(ValueError):
            LaneRange(start=3, end=2)

    def test_rejects_lane_zero(self):
        with pytest.raises(ValueError):
            LaneRange(start=0, end=1)


class TestReservation:

    def test_rejects_zero_head_count(self):
        with pytest.raises(ValueError, match="Head count"):
            make_reservation(head_count=0)

    def test_rejects_out_of_range_hour(self):
        with pytest.raises(ValueError, match="Hour"):
            make_reservation(hour=24)

    def test_starts_at_is_the_top_of_the_hour(self):
        reservation = make_reservation(day=TUESDAY, hour=9)
        assert reservation.starts_at == datetime(2026, 10, 20, 9, 0)

    def test_lane_label_matches_lane_range(self):
        reservation = make_reservation()
        reservation.lanes = LaneRange(start=2, end=3).lanes
        assert reservation.lane_label == LaneRange(start=2, end=3).label == "2, 3"

    def test_lane_label_empty_without_lanes(self):
        reservation = make_reservation()
        reservation.lanes = []
        assert reservation.lane_label == ""


class TestAttendanceRecord:

    def test_duration_rounds_half_up(self):
        """Exactly 30 seconds over a minute rounds up."""
        record = AttendanceRecord(
            reservation_id=uuid4(),
            check_in_time=datetime(2026, 10, 20, 10, 0, 0),
            check_out_time=datetime(2026, 10, 20, 10, 44, 30),
        )
        assert record.duration_minutes == 45

    def test_duration_rounds_down_below_half(self):
        record = AttendanceRecord(
            reservation_id=uuid4(),
            check_in_time=datetime(2026, 10, 20, 10, 0, 0),
            check_out_time=datetime(2026, 10, 20, 10, 44, 29),
        )
        assert record.duration_minutes == 44

    def test_duration_is_none_while_swimming(self):
        record = AttendanceRecord(reservation_id=uuid4(), check_in_time=datetime(2026, 10, 20, 10))
        assert record.duration_minutes is None
        assert record.state == AttendanceState.CHECKED_IN

    def test_check_out_requires_check_in(self):
        with pytest.raises(ValueError, match="requires a check-in"):
            AttendanceRecord(reservation_id=uuid4(), check_out_time=datetime(2026, 10, 20, 10))

    def test_negative_laps_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            AttendanceRecord(reservation_id=uuid4(), laps=-1)

    def test_distance_uses_pool_length(self):
        record = AttendanceRecord(reservation_id=uuid4(), laps=12)
        assert record.distance_meters(50) == 600
        assert record.distance_meters(25) == 300
