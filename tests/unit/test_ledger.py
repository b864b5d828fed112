"""Unit tests for the capacity ledger."""

from datetime import datetime

import pytest

from poolbook.core.scheduling.ledger import CapacityLedger, GridCell
from poolbook.core.scheduling.models import LaneRange, ReservationStatus, Role, ScheduleConfig

from factories import MONDAY, SATURDAY, TUESDAY, WEDNESDAY, make_reservation


class TestOccupancy:
    """Occupancy is the head count of confirmed reservations at a slot."""

    def test_sums_confirmed_head_counts(self, config):
        ledger = CapacityLedger(config, [
            make_reservation(hour=9, head_count=4),
            make_reservation(hour=9, head_count=3, user_id="u-2"),
            make_reservation(hour=10, head_count=8),
        ])
        assert ledger.occupancy(TUESDAY, 9) == 7
        assert ledger.occupancy(TUESDAY, 10) == 8

    def test_cancelled_reservations_do_not_count(self, config):
        ledger = CapacityLedger(config, [
            make_reservation(hour=9, head_count=4),
            make_reservation(hour=9, head_count=10, status=ReservationStatus.CANCELLED),
        ])
        assert ledger.occupancy(TUESDAY, 9) == 4

    def test_empty_slot_is_zero(self, config):
        assert CapacityLedger(config, []).occupancy(TUESDAY, 9) == 0

    def test_remaining_never_negative(self):
        config = ScheduleConfig(max_capacity_per_hour=5)
        ledger = CapacityLedger(config, [make_reservation(head_count=8)])
        assert ledger.remaining(TUESDAY, 9) == 0

    def test_fits_up_to_capacity(self, config):
        ledger = CapacityLedger(config, [make_reservation(head_count=48)])
        assert ledger.fits(TUESDAY, 9, 2)
        assert not ledger.fits(TUESDAY, 9, 3)


class TestLaneAssignment:
    """Lanes are bands of six swimmers placed after current occupants."""

    def test_empty_slot_large_group_spans_two_lanes(self, config):
        ledger = CapacityLedger(config, [])
        assert ledger.next_lane_range(TUESDAY, 9, 7) == LaneRange(start=1, end=2)

    def test_small_group_after_twelve_gets_lane_three(self, config):
        ledger = CapacityLedger(config, [make_reservation(head_count=12)])
        assert ledger.next_lane_range(TUESDAY, 9, 3) == LaneRange(start=3, end=3)

    def test_group_near_full_slot(self, config):
        ledger = CapacityLedger(config, [make_reservation(head_count=48)])
        assert ledger.next_lane_range(TUESDAY, 9, 2) == LaneRange(start=9, end=9)

    def test_single_swimmer_in_empty_slot(self, config):
        assert CapacityLedger(config, []).next_lane_range(TUESDAY, 9, 1).lanes == [1]

    def test_rejects_empty_group(self, config):
        with pytest.raises(ValueError):
            CapacityLedger(config, []).next_lane_range(TUESDAY, 9, 0)


class TestDaySlots:

    def test_lists_operating_hours_only(self, config):
        slots = CapacityLedger(config, []).day_slots(SATURDAY, Role.INDIVIDUAL)
        assert [slot.hour for slot in slots] == list(range(5, 14))

    def test_closed_day_has_no_slots(self, config):
        assert CapacityLedger(config, []).day_slots(MONDAY, Role.ADMIN) == []

    def test_privileged_hours_restricted_for_individuals(self, config):
        slots = {s.hour: s for s in CapacityLedger(config, []).day_slots(TUESDAY, Role.INDIVIDUAL)}
        assert slots[5].is_restricted
        assert not slots[5].is_bookable
        assert not slots[9].is_restricted

    def test_privileged_hours_open_for_principals(self, config):
        slots = {s.hour: s for s in CapacityLedger(config, []).day_slots(TUESDAY, Role.PRINCIPAL)}
        assert slots[5].is_privileged
        assert slots[5].is_bookable

    def test_full_slot_is_not_bookable(self, config):
        ledger = CapacityLedger(config, [make_reservation(hour=9, head_count=50)])
        slot = next(s for s in ledger.day_slots(TUESDAY, Role.ADMIN) if s.hour == 9)
        assert slot.is_full
        assert slot.percent_full == 100.0
        assert not slot.is_bookable

    def test_past_hours_flagged_relative_to_now(self, config):
        now = datetime(2026, 10, 20, 11, 30)
        slots = {s.hour: s for s in CapacityLedger(config, []).day_slots(TUESDAY, Role.ADMIN, now=now)}
        assert slots[10].is_past
        assert not slots[11].is_past
        assert not slots[12].is_past

    def test_percent_full_rounds_to_one_decimal(self, config):
        ledger = CapacityLedger(config, [make_reservation(hour=9, head_count=1)])
        slot = next(s for s in ledger.day_slots(TUESDAY, Role.ADMIN) if s.hour == 9)
        assert slot.percent_full == 2.0


class TestWeekGrid:

    def test_week_starts_on_monday(self, config):
        grid = CapacityLedger(config, []).week_grid(WEDNESDAY)
        assert grid[0].day == MONDAY
        assert len(grid) == 7

    def test_closed_days_have_closed_cells(self, config):
        grid = CapacityLedger(config, []).week_grid(TUESDAY)
        monday = grid[0]
        assert not monday.is_operating_day
        assert all(not cell.is_open for cell in monday.cells)

    def test_saturday_afternoon_is_closed(self, config):
        grid = CapacityLedger(config, []).week_grid(TUESDAY)
        saturday = {cell.hour: cell for cell in grid[5].cells}
        assert saturday[13].is_open
        assert not saturday[14].is_open

    def test_marks_own_bookings(self, config):
        ledger = CapacityLedger(config, [make_reservation(hour=9, user_id="me")])
        tuesday = {cell.hour: cell for cell in ledger.week_grid(TUESDAY, user_id="me")[1].cells}
        assert tuesday[9].has_own_booking
        assert not tuesday[10].has_own_booking


class TestGridCellLoad:

    @pytest.mark.parametrize("occupancy, expected", [
        (0, "low"),
        (25, "low"),
        (26, "medium"),
        (45, "medium"),
        (46, "high"),
    ])
    def test_traffic_light_thresholds(self, occupancy, expected):
        cell = GridCell(hour=9, is_open=True, occupancy=occupancy, capacity=50)
        assert cell.load == expected

    def test_closed_cell(self):
        assert GridCell(hour=9, is_open=False).load == "closed"
