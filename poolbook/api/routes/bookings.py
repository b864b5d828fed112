"""
Booking API endpoints.

Booking is a two-step flow so the client can show a confirmation screen:

1. **Quote**: `POST /api/v1/bookings/quote` validates the request and
   returns the lanes and booking code the group would get.
2. **Commit**: `POST /api/v1/bookings` writes one reservation per hour.

Administrators can list, cancel and purge reservations. Scheduling
errors are turned into structured JSON responses by the handler in main.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.scheduling.errors import InvalidRequestError, translate_storage_errors
from ...core.scheduling.ledger import CapacityLedger
from ...core.scheduling.models import (
    BookingQuote,
    BookingRequest,
    LaneRange,
    Reservation,
    ReservationStatus,
    Role,
)
from ..dependencies import (
    AuthenticatedUser,
    BookingAdmissionDep,
    ClockDep,
    NotificationPublisherDep,
    PoolRepositoryDep,
    ScheduleConfigDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class BookingRequestBody(BaseModel):
    """A request for one or more consecutive hours."""
    date: date
    start_hour: int = Field(description="First hour of the booking (0-23)")
    duration_hours: int = Field(1, description="Number of consecutive hours")
    head_count: int = Field(description="Number of swimmers in the group")
    user_id: str = Field(min_length=1, description="Member identifier")
    user_name: str = Field(min_length=1, description="Member display name")
    user_role: Role = Field(Role.INDIVIDUAL, description="Member role")
    contact_phone: Optional[str] = Field(None, description="Phone for the confirmation SMS")
    user_photo_url: Optional[str] = Field(None, description="Member photo shown on the ticket")

    def to_domain(self) -> BookingRequest:
        return BookingRequest(
            date=self.date,
            start_hour=self.start_hour,
            duration_hours=self.duration_hours,
            head_count=self.head_count,
            user_id=self.user_id,
            user_name=self.user_name,
            user_role=self.user_role,
            contact_phone=self.contact_phone,
            user_photo_url=self.user_photo_url,
        )


class QuoteResponse(BaseModel):
    booking_code: str = Field(description="Shareable booking code")
    lanes: list[int] = Field(description="Assigned lane numbers")
    lane_label: str = Field(description="Lanes formatted for display")
    date: date
    start_hour: int
    duration_hours: int
    head_count: int


class CommitRequest(BookingRequestBody):
    """The original request plus the quote being accepted."""
    booking_code: str = Field(min_length=1, description="Code returned by the quote")
    lanes: list[int] = Field(min_length=1, description="Lanes returned by the quote")


class ReservationItem(BaseModel):
    id: UUID
    user_id: str
    user_name: str
    user_role: Role
    date: date
    hour: int
    head_count: int
    status: ReservationStatus
    lanes: list[int]
    booking_code: str

    @classmethod
    def from_domain(cls, reservation: Reservation) -> "ReservationItem":
        return cls(
            id=reservation.id,
            user_id=reservation.user_id,
            user_name=reservation.user_name,
            user_role=reservation.user_role,
            date=reservation.date,
            hour=reservation.hour,
            head_count=reservation.head_count,
            status=reservation.status,
            lanes=reservation.lanes,
            booking_code=reservation.booking_code,
        )


class BookingResponse(BaseModel):
    booking_code: str
    reservations: list[ReservationItem]
    notified: bool = Field(description="Whether a confirmation was handed to the SMS provider")


class CancellationResponse(BaseModel):
    reservation: ReservationItem
    summary: str
    notified: bool


class SlotItem(BaseModel):
    hour: int
    occupancy: int
    remaining: int
    capacity: int
    percent_full: float
    is_full: bool
    is_past: bool
    is_privileged: bool
    is_restricted: bool
    is_bookable: bool


class GridCellItem(BaseModel):
    hour: int
    is_open: bool
    occupancy: int
    capacity: int
    has_own_booking: bool
    load: str


class DayColumnItem(BaseModel):
    date: date
    is_operating_day: bool
    cells: list[GridCellItem]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/quote",
    response_model=QuoteResponse,
    status_code=status.HTTP_200_OK,
    summary="Pre-validate a booking",
    description="Check schedule and capacity rules and return the lanes and booking code",
)
async def quote_booking(
    body: BookingRequestBody,
    admission: BookingAdmissionDep,
    api_key: AuthenticatedUser = None,
) -> QuoteResponse:
    quote = admission.pre_validate(body.to_domain())

    return QuoteResponse(
        booking_code=quote.booking_code,
        lanes=quote.lane_range.lanes,
        lane_label=quote.lane_range.label,
        date=body.date,
        start_hour=body.start_hour,
        duration_hours=body.duration_hours,
        head_count=body.head_count,
    )


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Commit a booking",
    description="Write one confirmed reservation per hour for a previously quoted booking",
)
async def commit_booking(
    body: CommitRequest,
    admission: BookingAdmissionDep,
    publisher: NotificationPublisherDep,
    api_key: AuthenticatedUser = None,
) -> BookingResponse:
    """
    Commit a quoted booking.

    Capacity is re-checked at commit time, so a quote that has since been
    overtaken by other bookings is rejected with OVER_CAPACITY.
    """
    try:
        lane_range = LaneRange.from_lanes(body.lanes)
    except ValueError as e:
        raise InvalidRequestError(str(e), lanes=body.lanes)

    quote = BookingQuote(
        request=body.to_domain(),
        lane_range=lane_range,
        booking_code=body.booking_code,
    )
    reservations = admission.commit(quote)

    notified = False
    if body.contact_phone:
        event = admission.confirmation_event(reservations, body.contact_phone)
        notified = publisher.publish_confirmation(event)

    return BookingResponse(
        booking_code=quote.booking_code,
        reservations=[ReservationItem.from_domain(r) for r in reservations],
        notified=notified,
    )


@router.get(
    "",
    response_model=list[ReservationItem],
    summary="List reservations",
    description="Administrative listing, newest date first",
)
async def list_reservations(
    admission: BookingAdmissionDep,
    api_key: AuthenticatedUser = None,
    day: Optional[date] = Query(None, alias="date"),
    role: Optional[Role] = None,
    reservation_status: Optional[ReservationStatus] = Query(None, alias="status"),
) -> list[ReservationItem]:
    reservations = admission.list_reservations(day=day, role=role, status=reservation_status)
    return [ReservationItem.from_domain(r) for r in reservations]


@router.get(
    "/slots",
    response_model=list[SlotItem],
    summary="Daily availability",
    description="Occupancy and bookability of every operating hour of a day",
)
async def day_slots(
    repository: PoolRepositoryDep,
    config: ScheduleConfigDep,
    clock: ClockDep,
    api_key: AuthenticatedUser = None,
    day: date = Query(alias="date"),
    role: Role = Role.INDIVIDUAL,
) -> list[SlotItem]:
    with translate_storage_errors("list_reservations"):
        reservations = repository.list_reservations()
    ledger = CapacityLedger(config, reservations)
    return [
        SlotItem(
            hour=slot.hour,
            occupancy=slot.occupancy,
            remaining=slot.remaining,
            capacity=slot.capacity,
            percent_full=slot.percent_full,
            is_full=slot.is_full,
            is_past=slot.is_past,
            is_privileged=slot.is_privileged,
            is_restricted=slot.is_restricted,
            is_bookable=slot.is_bookable,
        )
        for slot in ledger.day_slots(day, role, now=clock())
    ]


@router.get(
    "/week",
    response_model=list[DayColumnItem],
    summary="Weekly schedule",
    description="Monday-first occupancy grid for the week containing the date",
)
async def week_grid(
    repository: PoolRepositoryDep,
    config: ScheduleConfigDep,
    api_key: AuthenticatedUser = None,
    day: date = Query(alias="date"),
    user_id: Optional[str] = None,
) -> list[DayColumnItem]:
    with translate_storage_errors("list_reservations"):
        reservations = repository.list_reservations()
    ledger = CapacityLedger(config, reservations)
    return [
        DayColumnItem(
            date=column.day,
            is_operating_day=column.is_operating_day,
            cells=[
                GridCellItem(
                    hour=cell.hour,
                    is_open=cell.is_open,
                    occupancy=cell.occupancy,
                    capacity=cell.capacity,
                    has_own_booking=cell.has_own_booking,
                    load=cell.load,
                )
                for cell in column.cells
            ],
        )
        for column in ledger.week_grid(day, user_id=user_id)
    ]


@router.post(
    "/{reservation_id}/cancel",
    response_model=CancellationResponse,
    summary="Cancel a reservation hour",
    description="Cancel one hour of a booking and notify the owner if a phone is on file",
)
async def cancel_reservation(
    reservation_id: UUID,
    admission: BookingAdmissionDep,
    publisher: NotificationPublisherDep,
    api_key: AuthenticatedUser = None,
) -> CancellationResponse:
    event = admission.cancel(reservation_id)

    notified = False
    if event.owner_contact:
        notified = publisher.publish_cancellation(event)

    return CancellationResponse(
        reservation=ReservationItem.from_domain(event.reservation),
        summary=event.summary,
        notified=notified,
    )


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Purge a reservation",
    description="Permanently delete a reservation record",
)
async def purge_reservation(
    reservation_id: UUID,
    admission: BookingAdmissionDep,
    api_key: AuthenticatedUser = None,
) -> None:
    admission.purge(reservation_id)
