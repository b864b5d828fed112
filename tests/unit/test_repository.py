"""
Tests for the Snowflake repository against the in-memory mock connection.

These exercise the SQL-to-domain translation without a real warehouse.
"""

from datetime import datetime

import pytest

from poolbook.core.scheduling.admission import BookingAdmission, SlotLockRegistry
from poolbook.core.scheduling.models import (
    AttendanceRecord,
    BookingRequest,
    MemberProfile,
    ReservationStatus,
    Role,
)
from poolbook.infrastructure.snowflake.client import MockSnowflakeConnection
from poolbook.infrastructure.snowflake.repositories.pool import (
    PoolRepository,
    from_db_category,
    to_db_category,
)

from factories import TUESDAY, make_reservation


@pytest.fixture
def repository():
    repository = PoolRepository(MockSnowflakeConnection())
    repository.ensure_schema()
    return repository


class TestRoleLabels:
    """The membership database stores Spanish category labels."""

    @pytest.mark.parametrize("label, role", [
        ("Administrador", Role.ADMIN),
        ("Principal", Role.PRINCIPAL),
        ("Dependiente", Role.DEPENDENT),
        ("Individual", Role.INDIVIDUAL),
        ("ADMIN", Role.ADMIN),
        (None, Role.INDIVIDUAL),
        ("Socio honorario", Role.INDIVIDUAL),
    ])
    def test_from_db_category(self, label, role):
        assert from_db_category(label) == role

    def test_round_trip_through_labels(self):
        assert all(from_db_category(to_db_category(role)) == role for role in Role)


class TestReservations:

    def test_insert_and_list(self, repository):
        reservation = make_reservation(role=Role.PRINCIPAL, head_count=7)
        reservation.lanes = [1, 2]
        repository.insert_reservation(reservation)

        [stored] = repository.list_reservations()

        assert stored.id == reservation.id
        assert stored.user_role == Role.PRINCIPAL
        assert stored.date == TUESDAY
        assert stored.lanes == [1, 2]
        assert stored.status == ReservationStatus.CONFIRMED

    def test_update_status(self, repository):
        reservation = make_reservation()
        repository.insert_reservation(reservation)

        repository.update_reservation_status(reservation.id, ReservationStatus.CANCELLED)

        assert repository.list_reservations()[0].status == ReservationStatus.CANCELLED

    def test_delete(self, repository):
        reservation = make_reservation()
        repository.insert_reservation(reservation)
        repository.delete_reservation(reservation.id)
        assert repository.list_reservations() == []

    def test_drives_admission(self, repository, config):
        admission = BookingAdmission(store=repository, config=config, locks=SlotLockRegistry())
        request = BookingRequest(
            date=TUESDAY, start_hour=9, head_count=3, user_id="u-1", user_name="Ana", duration_hours=2,
        )

        admission.commit(admission.pre_validate(request))

        assert sorted(r.hour for r in repository.list_reservations()) == [9, 10]


class TestAttendance:

    def test_upsert_replaces_existing_record(self, repository):
        reservation = make_reservation()
        repository.insert_reservation(reservation)
        opened = AttendanceRecord(reservation_id=reservation.id, check_in_time=datetime(2026, 10, 20, 9))
        repository.upsert_attendance(opened)

        closed = AttendanceRecord(
            id=opened.id,
            reservation_id=reservation.id,
            check_in_time=opened.check_in_time,
            check_out_time=datetime(2026, 10, 20, 10),
            laps=18,
        )
        repository.upsert_attendance(closed)

        [stored] = repository.list_attendance()
        assert stored.laps == 18
        assert stored.duration_minutes == 60


class TestMembers:

    def test_lookup_by_phone(self, repository):
        repository.save_member(MemberProfile(
            id="m-1", name="Ana", role=Role.DEPENDENT, phone="5551234567", status="Activo",
        ))

        member = repository.get_member_by_phone("5551234567")

        assert member.id == "m-1"
        assert member.role == Role.DEPENDENT
        assert member.status == "Activo"

    def test_unknown_phone(self, repository):
        assert repository.get_member_by_phone("000") is None

    def test_ping(self, repository):
        repository.ping()
