"""
Attendance tracking.

Each reservation hour moves PENDING -> CHECKED_IN -> CHECKED_OUT and never
back. Check-in is allowed from the reservation's start hour until the end
of the same day (late arrivals included). Arriving early for a future hour
is rejected, and so is checking in on a later day.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from .errors import (
    AlreadyCheckedOutError,
    CheckInMissingError,
    CheckInTooEarlyError,
    CheckInWindowClosedError,
    DuplicateCheckInError,
    InvalidRequestError,
    ReservationCancelledError,
    ReservationNotFoundError,
    translate_storage_errors,
)
from .models import AttendanceRecord, AttendanceState, Reservation, ScheduleConfig
from .store import PoolStore

logger = logging.getLogger(__name__)


@dataclass
class SheetEntry:
    """A reservation on the check-in desk sheet with its attendance."""
    reservation: Reservation
    record: Optional[AttendanceRecord]

    @property
    def state(self) -> AttendanceState:
        return self.record.state if self.record else AttendanceState.PENDING


class AttendanceTracker:
    """Records arrivals and departures against confirmed reservations."""

    def __init__(self, store: PoolStore, config: ScheduleConfig) -> None:
        self._store = store
        self.config = config

    def state(self, reservation_id: UUID) -> AttendanceState:
        record = self._record_for(reservation_id)
        return record.state if record else AttendanceState.PENDING

    def check_in(self, reservation_id: UUID, now: datetime) -> AttendanceRecord:
        """
        Open an attendance record stamped with ``now``.

        Arrivals are accepted from the start of the reserved hour until the
        end of that day. A second check-in for the same reservation is
        rejected and leaves the original timestamp untouched.
        """
        reservation = self._reservation(reservation_id)
        if not reservation.is_confirmed:
            raise ReservationCancelledError(
                "Cannot check in to a cancelled reservation",
                reservation_id=str(reservation_id),
            )
        if now < reservation.starts_at:
            raise CheckInTooEarlyError(
                f"Check-in opens at {reservation.hour}:00 on {reservation.date.isoformat()}",
                reservation_id=str(reservation_id),
                opens_at=reservation.starts_at.isoformat(),
            )
        if now.date() != reservation.date:
            raise CheckInWindowClosedError(
                f"Check-in for {reservation.date.isoformat()} closed at the end of that day",
                reservation_id=str(reservation_id),
                reservation_date=reservation.date.isoformat(),
            )

        existing = self._record_for(reservation_id)
        if existing is not None:
            logger.warning(
                "Duplicate check-in attempt",
                extra={"reservation_id": str(reservation_id)}
            )
            raise DuplicateCheckInError(
                "Reservation is already checked in",
                reservation_id=str(reservation_id),
                check_in_time=existing.check_in_time.isoformat() if existing.check_in_time else None,
            )

        record = AttendanceRecord(reservation_id=reservation_id, check_in_time=now)
        with translate_storage_errors("upsert_attendance", reservation_id=reservation_id):
            self._store.upsert_attendance(record)

        logger.info(
            "Checked in",
            extra={
                "reservation_id": str(reservation_id),
                "user_id": reservation.user_id,
                "lanes": reservation.lane_label,
            }
        )
        return record

    def check_out(self, reservation_id: UUID, laps: int, now: datetime) -> AttendanceRecord:
        """Close the attendance record with ``now`` and the swum lap count."""
        if laps < 0:
            raise InvalidRequestError("Lap count cannot be negative", laps=laps)

        self._reservation(reservation_id)
        record = self._record_for(reservation_id)
        if record is None or record.check_in_time is None:
            raise CheckInMissingError(
                "Reservation has not been checked in",
                reservation_id=str(reservation_id),
            )
        if record.check_out_time is not None:
            raise AlreadyCheckedOutError(
                "Reservation is already checked out",
                reservation_id=str(reservation_id),
            )
        if now < record.check_in_time:
            raise InvalidRequestError(
                "Check-out cannot precede check-in",
                check_in_time=record.check_in_time.isoformat(),
            )

        completed = AttendanceRecord(
            id=record.id,
            reservation_id=record.reservation_id,
            check_in_time=record.check_in_time,
            check_out_time=now,
            laps=laps,
        )
        with translate_storage_errors("upsert_attendance", reservation_id=reservation_id):
            self._store.upsert_attendance(completed)

        logger.info(
            "Checked out",
            extra={
                "reservation_id": str(reservation_id),
                "laps": laps,
                "duration_minutes": completed.duration_minutes,
            }
        )
        return completed

    def day_sheet(self, day: date, user_id: Optional[str] = None) -> list[SheetEntry]:
        """Confirmed reservations for ``day`` by hour, with attendance."""
        with translate_storage_errors("list_reservations"):
            reservations = self._store.list_reservations()
        records = self._records_by_reservation()

        entries = [
            SheetEntry(reservation=r, record=records.get(r.id))
            for r in reservations
            if r.date == day and r.is_confirmed
            and (user_id is None or r.user_id == user_id)
        ]
        entries.sort(key=lambda entry: entry.reservation.hour)
        return entries

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _reservation(self, reservation_id: UUID) -> Reservation:
        with translate_storage_errors("list_reservations"):
            reservations = self._store.list_reservations()
        for reservation in reservations:
            if reservation.id == reservation_id:
                return reservation
        raise ReservationNotFoundError(
            "Reservation not found",
            reservation_id=str(reservation_id),
        )

    def _record_for(self, reservation_id: UUID) -> Optional[AttendanceRecord]:
        return self._records_by_reservation().get(reservation_id)

    def _records_by_reservation(self) -> dict[UUID, AttendanceRecord]:
        with translate_storage_errors("list_attendance"):
            records = self._store.list_attendance()
        return {record.reservation_id: record for record in records}
