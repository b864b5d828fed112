"""
Test doubles and builders for the scheduling tests.

Dates are pinned to a known week of October 2026:
Sunday the 18th, Monday the 19th, Tuesday the 20th, Saturday the 24th.
"""

from dataclasses import replace
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from poolbook.core.scheduling.models import (
    AttendanceRecord,
    MemberProfile,
    Reservation,
    ReservationStatus,
    Role,
)

SUNDAY = date(2026, 10, 18)
MONDAY = date(2026, 10, 19)
TUESDAY = date(2026, 10, 20)
WEDNESDAY = date(2026, 10, 21)
SATURDAY = date(2026, 10, 24)


class InMemoryPoolStore:
    """
    PoolStore test double.

    ``fail_insert_on`` makes the n-th insert (1-based) raise, and
    ``fail_deletes`` makes every delete raise, to exercise rollback paths.
    """

    def __init__(self) -> None:
        self.reservations: dict[UUID, Reservation] = {}
        self.records: dict[UUID, AttendanceRecord] = {}
        self.members: list[MemberProfile] = []
        self.fail_insert_on: Optional[int] = None
        self.fail_deletes = False
        self.fail_reads = False
        self.insert_calls = 0

    def list_reservations(self) -> list[Reservation]:
        if self.fail_reads:
            raise ConnectionError("warehouse unavailable")
        return [replace(r, lanes=list(r.lanes)) for r in self.reservations.values()]

    def insert_reservation(self, reservation: Reservation) -> None:
        self.insert_calls += 1
        if self.fail_insert_on is not None and self.insert_calls == self.fail_insert_on:
            raise ConnectionError("insert failed")
        self.reservations[reservation.id] = reservation

    def update_reservation_status(self, reservation_id: UUID, status: ReservationStatus) -> None:
        self.reservations[reservation_id] = replace(self.reservations[reservation_id], status=status)

    def delete_reservation(self, reservation_id: UUID) -> None:
        if self.fail_deletes:
            raise ConnectionError("delete failed")
        self.reservations.pop(reservation_id, None)

    def list_attendance(self) -> list[AttendanceRecord]:
        return list(self.records.values())

    def upsert_attendance(self, record: AttendanceRecord) -> None:
        self.records[record.id] = record

    def list_members(self) -> list[MemberProfile]:
        return list(self.members)

    # Helpers for arranging state

    def add(self, reservation: Reservation) -> Reservation:
        self.reservations[reservation.id] = reservation
        return reservation

    def add_record(self, record: AttendanceRecord) -> AttendanceRecord:
        self.records[record.id] = record
        return record

    def add_session(
        self,
        reservation: Reservation,
        check_in: datetime,
        check_out: Optional[datetime] = None,
        laps: int = 0,
    ) -> AttendanceRecord:
        self.add(reservation)
        record = AttendanceRecord(
            reservation_id=reservation.id,
            check_in_time=check_in,
            check_out_time=check_out,
            laps=laps,
        )
        self.records[record.id] = record
        return record


def make_reservation(
    day: date = TUESDAY,
    hour: int = 9,
    head_count: int = 1,
    user_id: str = "u-1",
    user_name: str = "Ana",
    role: Role = Role.INDIVIDUAL,
    status: ReservationStatus = ReservationStatus.CONFIRMED,
) -> Reservation:
    return Reservation(
        user_id=user_id,
        user_name=user_name,
        user_role=role,
        date=day,
        hour=hour,
        head_count=head_count,
        status=status,
        lanes=[1],
        booking_code=f"ALB-{day.strftime('%Y%m%d')}-{hour:02d}-TEST",
    )
