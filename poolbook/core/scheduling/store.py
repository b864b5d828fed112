"""
Persistence collaborator interface.

Using a Protocol here means the engine doesn't know or care whether
reservations live in Snowflake, an in-memory dict, or a test double.
"""

from typing import Protocol
from uuid import UUID

from .models import AttendanceRecord, MemberProfile, Reservation, ReservationStatus


class PoolStore(Protocol):
    """Minimal data access needed by the scheduling engine."""

    def list_reservations(self) -> list[Reservation]:
        ...

    def insert_reservation(self, reservation: Reservation) -> None:
        ...

    def update_reservation_status(self, reservation_id: UUID, status: ReservationStatus) -> None:
        ...

    def delete_reservation(self, reservation_id: UUID) -> None:
        ...

    def list_attendance(self) -> list[AttendanceRecord]:
        ...

    def upsert_attendance(self, record: AttendanceRecord) -> None:
        ...

    def list_members(self) -> list[MemberProfile]:
        ...
