"""
Attendance API endpoints.

Used by the check-in desk: mark arrivals and departures, show the day's
sheet, and export the attendance log as CSV.
"""

import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Query, Response
from pydantic import BaseModel, Field

from ...core.scheduling.attendance import SheetEntry
from ...core.scheduling.export import attendance_csv
from ...core.scheduling.models import AttendanceRecord, AttendanceState
from ..dependencies import (
    AttendanceTrackerDep,
    AuthenticatedUser,
    ClockDep,
    ScheduleConfigDep,
    StatisticsDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class CheckOutRequest(BaseModel):
    laps: int = Field(description="Laps swum during the session")


class AttendanceResponse(BaseModel):
    id: UUID
    reservation_id: UUID
    state: AttendanceState
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    laps: int
    duration_minutes: Optional[int]
    meters: int

    @classmethod
    def from_domain(cls, record: AttendanceRecord, pool_length: int) -> "AttendanceResponse":
        return cls(
            id=record.id,
            reservation_id=record.reservation_id,
            state=record.state,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            laps=record.laps,
            duration_minutes=record.duration_minutes,
            meters=record.distance_meters(pool_length),
        )


class SheetItem(BaseModel):
    reservation_id: UUID
    user_id: str
    user_name: str
    hour: int
    head_count: int
    lanes: str
    booking_code: str
    state: AttendanceState
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    laps: int

    @classmethod
    def from_entry(cls, entry: SheetEntry) -> "SheetItem":
        reservation, record = entry.reservation, entry.record
        return cls(
            reservation_id=reservation.id,
            user_id=reservation.user_id,
            user_name=reservation.user_name,
            hour=reservation.hour,
            head_count=reservation.head_count,
            lanes=reservation.lane_label,
            booking_code=reservation.booking_code,
            state=entry.state,
            check_in_time=record.check_in_time if record else None,
            check_out_time=record.check_out_time if record else None,
            laps=record.laps if record else 0,
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/{reservation_id}/check-in",
    response_model=AttendanceResponse,
    summary="Check in",
    description="Record the arrival time for a confirmed reservation",
)
async def check_in(
    reservation_id: UUID,
    tracker: AttendanceTrackerDep,
    config: ScheduleConfigDep,
    clock: ClockDep,
    api_key: AuthenticatedUser = None,
) -> AttendanceResponse:
    record = tracker.check_in(reservation_id, now=clock())
    return AttendanceResponse.from_domain(record, config.pool_length_meters)


@router.post(
    "/{reservation_id}/check-out",
    response_model=AttendanceResponse,
    summary="Check out",
    description="Record the departure time and laps swum",
)
async def check_out(
    reservation_id: UUID,
    body: CheckOutRequest,
    tracker: AttendanceTrackerDep,
    config: ScheduleConfigDep,
    clock: ClockDep,
    api_key: AuthenticatedUser = None,
) -> AttendanceResponse:
    record = tracker.check_out(reservation_id, laps=body.laps, now=clock())
    return AttendanceResponse.from_domain(record, config.pool_length_meters)


@router.get(
    "/day",
    response_model=list[SheetItem],
    summary="Check-in sheet",
    description="Confirmed reservations of a day with their attendance state",
)
async def day_sheet(
    tracker: AttendanceTrackerDep,
    api_key: AuthenticatedUser = None,
    day: date = Query(alias="date"),
    user_id: Optional[str] = None,
) -> list[SheetItem]:
    return [SheetItem.from_entry(entry) for entry in tracker.day_sheet(day, user_id=user_id)]


@router.get(
    "/export.csv",
    summary="Export attendance log",
    description="Every attendance record joined to its reservation, as CSV",
    response_class=Response,
)
async def export_attendance(
    statistics: StatisticsDep,
    api_key: AuthenticatedUser = None,
) -> Response:
    rows = statistics.attendance_log()
    logger.info("Exporting attendance log", extra={"rows": len(rows)})

    return Response(
        content=attendance_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="attendance.csv"'},
    )
