"""
Domain models for pool reservations and attendance.

These models represent the core scheduling concepts. They have no
dependencies on FastAPI, Snowflake or any transport. Role labels used by
the member database are translated at the repository edge, never here.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class Role(Enum):
    """Closed set of member roles."""
    ADMIN = "ADMIN"
    PRINCIPAL = "PRINCIPAL"    # Account holder / club representative
    DEPENDENT = "DEPENDENT"
    INDIVIDUAL = "INDIVIDUAL"

    @property
    def is_privileged(self) -> bool:
        """Privileged roles may book club-exclusive hours."""
        return self in (Role.ADMIN, Role.PRINCIPAL)


class ReservationStatus(Enum):
    """CONFIRMED may become CANCELLED; CANCELLED is terminal."""
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class AttendanceState(Enum):
    PENDING = "PENDING"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"


@dataclass(frozen=True)
class ScheduleConfig:
    """
    Facility schedule and capacity rules.

    Loaded once from settings and never mutated by the engine.
    Weekdays use ``date.weekday()`` numbering (Monday is 0).
    """
    open_hour: int = 5
    close_hour_weekday: int = 20
    close_hour_saturday: int = 14
    max_capacity_per_hour: int = 50
    privileged_hours: frozenset[int] = frozenset({5, 6, 15, 16, 17})
    operating_weekdays: frozenset[int] = frozenset({1, 2, 3, 4, 5})
    lane_size: int = 6
    pool_length_meters: int = 50
    booking_code_prefix: str = "ALB"
    leaderboard_size: int = 10
    revalidate_on_commit: bool = True

    def __post_init__(self) -> None:
        if self.lane_size < 1:
            raise ValueError("Lane size must be at least 1")
        if self.max_capacity_per_hour < 0:
            raise ValueError("Capacity cannot be negative")


def format_lanes(lanes: list[int]) -> str:
    return ", ".join(str(lane) for lane in lanes)


@dataclass(frozen=True)
class LaneRange:
    """An inclusive, contiguous band of lane numbers."""
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 1 or self.end < self.start:
            raise ValueError("Lane range must be positive and ordered")

    @property
    def lanes(self) -> list[int]:
        return list(range(self.start, self.end + 1))

    @property
    def label(self) -> str:
        """Display form used on tickets, e.g. "1, 2"."""
        return format_lanes(self.lanes)

    @classmethod
    def from_lanes(cls, lanes: list[int]) -> "LaneRange":
        if not lanes:
            raise ValueError("At least one lane is required")
        return cls(start=min(lanes), end=max(lanes))


@dataclass
class Reservation:
    """
    One confirmed (or cancelled) hour of pool time for a group.

    A multi-hour booking is stored as one Reservation per hour, all sharing
    the same booking code, head count and lanes.
    """
    user_id: str
    user_name: str
    date: date
    hour: int
    head_count: int
    user_role: Role = Role.INDIVIDUAL
    id: UUID = field(default_factory=uuid4)
    status: ReservationStatus = ReservationStatus.CONFIRMED
    lanes: list[int] = field(default_factory=list)
    booking_code: str = ""
    user_photo_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError("Hour must be between 0 and 23")
        if self.head_count < 1:
            raise ValueError("Head count must be positive")

    @property
    def is_confirmed(self) -> bool:
        return self.status == ReservationStatus.CONFIRMED

    @property
    def slot(self) -> tuple[date, int]:
        return (self.date, self.hour)

    @property
    def starts_at(self) -> datetime:
        """Wall-clock start of the reserved hour."""
        return datetime.combine(self.date, datetime.min.time()) + timedelta(hours=self.hour)

    @property
    def lane_label(self) -> str:
        return format_lanes(self.lanes)


@dataclass
class AttendanceRecord:
    """
    Check-in / check-out log for a single reservation hour.

    Absent check-in means the swimmer has not arrived. Laps are supplied
    at check-out.
    """
    reservation_id: UUID
    id: UUID = field(default_factory=uuid4)
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    laps: int = 0

    def __post_init__(self) -> None:
        if self.laps < 0:
            raise ValueError("Lap count cannot be negative")
        if self.check_out_time is not None:
            if self.check_in_time is None:
                raise ValueError("Check-out requires a check-in")
            if self.check_out_time < self.check_in_time:
                raise ValueError("Check-out must not be before check-in")

    @property
    def state(self) -> AttendanceState:
        if self.check_out_time is not None:
            return AttendanceState.CHECKED_OUT
        if self.check_in_time is not None:
            return AttendanceState.CHECKED_IN
        return AttendanceState.PENDING

    @property
    def is_complete(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is not None

    @property
    def duration_minutes(self) -> Optional[int]:
        """Elapsed minutes, rounded half up. None until checked out."""
        if not self.is_complete:
            return None
        elapsed = (self.check_out_time - self.check_in_time).total_seconds()
        return int(math.floor(elapsed / 60 + 0.5))

    def distance_meters(self, pool_length_meters: int = 50) -> int:
        return self.laps * pool_length_meters


@dataclass
class MemberProfile:
    """
    External member record.

    Owned by the membership system; we only read it for contact details
    and display-only account status.
    """
    id: str
    name: str
    role: Role = Role.INDIVIDUAL
    phone: Optional[str] = None
    email: Optional[str] = None
    status: Optional[str] = None
    last_payment_date: Optional[str] = None


@dataclass
class BookingRequest:
    """A member asking for ``duration_hours`` consecutive hours."""
    date: date
    start_hour: int
    head_count: int
    user_id: str
    user_name: str
    user_role: Role = Role.INDIVIDUAL
    duration_hours: int = 1
    contact_phone: Optional[str] = None
    user_photo_url: Optional[str] = None

    @property
    def hours(self) -> list[int]:
        return list(range(self.start_hour, self.start_hour + self.duration_hours))


@dataclass(frozen=True)
class BookingQuote:
    """Outcome of pre-validation, carried forward to commit."""
    request: BookingRequest
    lane_range: LaneRange
    booking_code: str


@dataclass
class CancellationEvent:
    """Emitted when an administrator cancels a reservation hour."""
    reservation: Reservation
    owner_contact: Optional[str]
    summary: str


@dataclass
class BookingConfirmedEvent:
    """Emitted after a booking is committed."""
    reservations: list[Reservation]
    contact: Optional[str]
    summary: str

    @property
    def booking_code(self) -> str:
        return self.reservations[0].booking_code if self.reservations else ""
