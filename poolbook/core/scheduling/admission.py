"""
Booking admission.

Admission is a two-phase protocol so the caller can show a confirmation
step in between:

1. ``pre_validate`` checks the request against the schedule policy and the
   capacity ledger and returns a BookingQuote (lane range + booking code).
2. ``commit`` writes one CONFIRMED Reservation per covered hour.

Commits for the same (date, hour) slots are serialized within the process
and, unless ``revalidate_on_commit`` is disabled, capacity is checked again
under the slot locks before anything is written. If an insert fails, the
hours already written for that booking are deleted before the error is
surfaced, so a booking is either wholly confirmed or wholly absent.
Serialization across processes is left to the data store.
"""

import logging
import secrets
import string
import threading
from contextlib import contextmanager
from datetime import date
from typing import Callable, Iterable, Iterator, Optional
from uuid import UUID

from .errors import (
    BeforeOpeningError,
    ClosedDayError,
    InvalidRequestError,
    OverCapacityError,
    PastClosingError,
    PrivilegedHourError,
    ReservationCancelledError,
    ReservationNotFoundError,
    StorageError,
    translate_storage_errors,
)
from .ledger import CapacityLedger
from .models import (
    BookingConfirmedEvent,
    BookingQuote,
    BookingRequest,
    CancellationEvent,
    Reservation,
    ReservationStatus,
    Role,
    ScheduleConfig,
)
from .policy import SchedulePolicy
from .store import PoolStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.digits + string.ascii_uppercase
CODE_SUFFIX_LENGTH = 4

CodeFactory = Callable[[BookingRequest], str]


def generate_booking_code(prefix: str, day: date, start_hour: int) -> str:
    """
    Shareable booking code, e.g. ``ALB-20240604-09-K3ZQ``.

    The random suffix is not checked for uniqueness against stored codes.
    """
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"{prefix}-{day.strftime('%Y%m%d')}-{start_hour:02d}-{suffix}"


class SlotLockRegistry:
    """Per-(date, hour) locks used to serialize commits in this process."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[date, int], threading.Lock] = {}

    def _lock_for(self, slot: tuple[date, int]) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(slot, threading.Lock())

    @contextmanager
    def hold(self, slots: Iterable[tuple[date, int]]) -> Iterator[None]:
        # Sorted acquisition order keeps overlapping bookings deadlock free
        locks = [self._lock_for(slot) for slot in sorted(set(slots))]
        for lock in locks:
            lock.acquire()
        try:
            yield
        finally:
            for lock in reversed(locks):
                lock.release()


_default_locks = SlotLockRegistry()


class BookingAdmission:
    """Validates, commits and cancels pool bookings."""

    def __init__(
        self,
        store: PoolStore,
        config: ScheduleConfig,
        locks: Optional[SlotLockRegistry] = None,
        code_factory: Optional[CodeFactory] = None,
    ) -> None:
        self._store = store
        self.config = config
        self.policy = SchedulePolicy(config)
        self._locks = locks or _default_locks
        self._code_factory = code_factory or (
            lambda request: generate_booking_code(
                config.booking_code_prefix, request.date, request.start_hour
            )
        )

    # -----------------------------------------------------------------------
    # Admission
    # -----------------------------------------------------------------------

    def pre_validate(self, request: BookingRequest) -> BookingQuote:
        """
        Check a request and price it with lanes and a booking code.

        Rules are applied in order and the first violation is raised:
        closed day, then opening and closing time over the whole span, then
        for every covered hour the privileged hour and capacity checks.
        Lanes come from the start hour's occupancy only and are shared by
        every hour of the booking.
        """
        self._validate_shape(request)
        ledger = self._ledger()
        self._apply_rules(request, ledger)

        lane_range = ledger.next_lane_range(request.date, request.start_hour, request.head_count)
        quote = BookingQuote(
            request=request,
            lane_range=lane_range,
            booking_code=self._code_factory(request),
        )

        logger.info(
            "Booking pre-validated",
            extra={
                "user_id": request.user_id,
                "date": request.date.isoformat(),
                "start_hour": request.start_hour,
                "duration_hours": request.duration_hours,
                "head_count": request.head_count,
                "lanes": lane_range.label,
                "booking_code": quote.booking_code,
            }
        )
        return quote

    def commit(self, quote: BookingQuote) -> list[Reservation]:
        """Write one CONFIRMED reservation per covered hour."""
        request = quote.request
        self._validate_shape(request)
        slots = [(request.date, hour) for hour in request.hours]

        with self._locks.hold(slots):
            if self.config.revalidate_on_commit:
                self._apply_rules(request, self._ledger())

            reservations = [
                Reservation(
                    user_id=request.user_id,
                    user_name=request.user_name,
                    user_role=request.user_role,
                    user_photo_url=request.user_photo_url,
                    date=request.date,
                    hour=hour,
                    head_count=request.head_count,
                    status=ReservationStatus.CONFIRMED,
                    lanes=quote.lane_range.lanes,
                    booking_code=quote.booking_code,
                )
                for hour in request.hours
            ]
            self._insert_all(reservations)

        logger.info(
            "Booking committed",
            extra={
                "booking_code": quote.booking_code,
                "user_id": request.user_id,
                "hours": len(reservations),
            }
        )
        return reservations

    # -----------------------------------------------------------------------
    # Administration
    # -----------------------------------------------------------------------

    def cancel(self, reservation_id: UUID) -> CancellationEvent:
        """
        Cancel a single reservation hour.

        Sibling hours of the same booking are left untouched. The returned
        event carries the owner's contact so the caller can notify them.
        """
        reservation = self.get_reservation(reservation_id)
        if not reservation.is_confirmed:
            raise ReservationCancelledError(
                "Reservation is already cancelled",
                reservation_id=str(reservation_id),
            )

        with translate_storage_errors("update_reservation_status", reservation_id=reservation_id):
            self._store.update_reservation_status(reservation_id, ReservationStatus.CANCELLED)
        reservation.status = ReservationStatus.CANCELLED

        contact = self._owner_contact(reservation.user_id)
        summary = (
            f"Pool booking {reservation.booking_code} on {reservation.date.isoformat()} "
            f"at {reservation.hour}:00 has been CANCELLED."
        )

        logger.info(
            "Reservation cancelled",
            extra={
                "reservation_id": str(reservation_id),
                "booking_code": reservation.booking_code,
                "has_contact": contact is not None,
            }
        )
        return CancellationEvent(reservation=reservation, owner_contact=contact, summary=summary)

    def purge(self, reservation_id: UUID) -> None:
        """Permanently delete a reservation (administrative only)."""
        self.get_reservation(reservation_id)
        with translate_storage_errors("delete_reservation", reservation_id=reservation_id):
            self._store.delete_reservation(reservation_id)
        logger.warning("Reservation purged", extra={"reservation_id": str(reservation_id)})

    def get_reservation(self, reservation_id: UUID) -> Reservation:
        with translate_storage_errors("list_reservations"):
            reservations = self._store.list_reservations()
        for reservation in reservations:
            if reservation.id == reservation_id:
                return reservation
        raise ReservationNotFoundError(
            "Reservation not found",
            reservation_id=str(reservation_id),
        )

    def list_reservations(
        self,
        day: Optional[date] = None,
        role: Optional[Role] = None,
        status: Optional[ReservationStatus] = None,
    ) -> list[Reservation]:
        """Filtered listing, newest date first and hours ascending."""
        with translate_storage_errors("list_reservations"):
            reservations = self._store.list_reservations()

        selected = [
            r for r in reservations
            if (day is None or r.date == day)
            and (role is None or r.user_role == role)
            and (status is None or r.status == status)
        ]
        selected.sort(key=lambda r: (-r.date.toordinal(), r.hour))
        return selected

    def confirmation_event(
        self,
        reservations: list[Reservation],
        contact: Optional[str],
    ) -> BookingConfirmedEvent:
        first = reservations[0]
        end_hour = reservations[-1].hour + 1
        summary = (
            f"Pool booking confirmed. Code: {first.booking_code}. "
            f"Lanes: {first.lane_label}. Date: {first.date.isoformat()}. "
            f"Time: {first.hour}:00 - {end_hour}:00"
        )
        return BookingConfirmedEvent(reservations=reservations, contact=contact, summary=summary)

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _ledger(self) -> CapacityLedger:
        with translate_storage_errors("list_reservations"):
            reservations = self._store.list_reservations()
        return CapacityLedger(self.config, reservations)

    def _validate_shape(self, request: BookingRequest) -> None:
        if request.head_count < 1:
            raise InvalidRequestError("Head count must be at least 1", head_count=request.head_count)
        if request.duration_hours < 1:
            raise InvalidRequestError(
                "Duration must be at least one hour",
                duration_hours=request.duration_hours,
            )
        if not 0 <= request.start_hour <= 23:
            raise InvalidRequestError("Start hour must be between 0 and 23", start_hour=request.start_hour)

    def _apply_rules(self, request: BookingRequest, ledger: CapacityLedger) -> None:
        day = request.date
        if not self.policy.is_operating_day(day):
            self._reject(request, "closed_day")
            raise ClosedDayError("The pool is closed on this day", date=day.isoformat())

        # The whole span must fall inside opening hours before any
        # per-hour rule is considered.
        opening = self.config.open_hour
        closing = self.policy.closing_hour(day)
        if request.start_hour < opening:
            self._reject(request, "before_opening", hour=request.start_hour)
            raise BeforeOpeningError(
                f"The pool opens at {opening}:00",
                hour=request.start_hour,
                open_hour=opening,
            )
        if request.hours[-1] >= closing:
            first_closed = max(request.start_hour, closing)
            self._reject(request, "past_closing", hour=first_closed)
            raise PastClosingError(
                f"Booking runs past closing time ({closing}:00)",
                hour=first_closed,
                closing_hour=closing,
            )

        capacity = self.config.max_capacity_per_hour
        for hour in request.hours:
            if not self.policy.can_use_hour(hour, request.user_role):
                self._reject(request, "privileged_hour", hour=hour)
                raise PrivilegedHourError(
                    f"{hour}:00 is reserved for clubs and account holders",
                    hour=hour,
                )
            if not ledger.fits(day, hour, request.head_count):
                remaining = capacity - ledger.occupancy(day, hour)
                self._reject(request, "over_capacity", hour=hour, remaining=remaining)
                raise OverCapacityError(
                    f"Not enough space at {hour}:00. Available: {remaining}",
                    hour=hour,
                    remaining=remaining,
                )

    def _insert_all(self, reservations: list[Reservation]) -> None:
        inserted: list[Reservation] = []
        for reservation in reservations:
            try:
                self._store.insert_reservation(reservation)
            except Exception as e:
                logger.error(
                    "Reservation insert failed, rolling back booking",
                    extra={
                        "booking_code": reservation.booking_code,
                        "hour": reservation.hour,
                        "inserted": len(inserted),
                        "error": str(e),
                    }
                )
                leftovers = self._compensate(inserted)
                raise StorageError(
                    "Failed to save the booking",
                    booking_code=reservation.booking_code,
                    rolled_back=len(inserted) - len(leftovers),
                    not_rolled_back=leftovers,
                ) from e
            inserted.append(reservation)

    def _compensate(self, inserted: list[Reservation]) -> list[str]:
        """Delete already-written hours; returns ids that could not be removed."""
        leftovers = []
        for reservation in inserted:
            try:
                self._store.delete_reservation(reservation.id)
            except Exception as e:
                logger.error(
                    "Failed to roll back reservation",
                    extra={"reservation_id": str(reservation.id), "error": str(e)}
                )
                leftovers.append(str(reservation.id))
        return leftovers

    def _owner_contact(self, user_id: str) -> Optional[str]:
        with translate_storage_errors("list_members"):
            members = self._store.list_members()
        for member in members:
            if member.id == user_id:
                return member.phone or None
        return None

    def _reject(self, request: BookingRequest, reason: str, **context) -> None:
        logger.info(
            "Booking rejected",
            extra={
                "reason": reason,
                "user_id": request.user_id,
                "date": request.date.isoformat(),
                "start_hour": request.start_hour,
                "head_count": request.head_count,
                **context,
            }
        )
