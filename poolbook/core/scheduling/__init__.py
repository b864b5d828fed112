"""
Reservation scheduling and attendance engine.

Contains the schedule policy, capacity ledger, booking admission,
attendance tracking and statistics aggregation.
"""

from .admission import BookingAdmission, SlotLockRegistry, generate_booking_code
from .attendance import AttendanceTracker, SheetEntry
from .errors import ErrorCode, SchedulingError, StorageError
from .ledger import CapacityLedger, DayColumn, GridCell, SlotAvailability
from .models import (
    AttendanceRecord,
    AttendanceState,
    BookingConfirmedEvent,
    BookingQuote,
    BookingRequest,
    CancellationEvent,
    LaneRange,
    MemberProfile,
    Reservation,
    ReservationStatus,
    Role,
    ScheduleConfig,
)
from .policy import SchedulePolicy
from .statistics import (
    AttendanceLogRow,
    LeaderboardEntry,
    OccupancyReport,
    PersonalStats,
    ReportMode,
    ReportRow,
    StatisticsAggregator,
    WindowTotals,
)
from .store import PoolStore

__all__ = [
    "AttendanceLogRow",
    "AttendanceRecord",
    "AttendanceState",
    "AttendanceTracker",
    "BookingAdmission",
    "BookingConfirmedEvent",
    "BookingQuote",
    "BookingRequest",
    "CancellationEvent",
    "CapacityLedger",
    "DayColumn",
    "ErrorCode",
    "GridCell",
    "LaneRange",
    "LeaderboardEntry",
    "MemberProfile",
    "OccupancyReport",
    "PersonalStats",
    "PoolStore",
    "ReportMode",
    "ReportRow",
    "Reservation",
    "ReservationStatus",
    "Role",
    "ScheduleConfig",
    "SchedulePolicy",
    "SchedulingError",
    "SheetEntry",
    "SlotAvailability",
    "SlotLockRegistry",
    "StatisticsAggregator",
    "StorageError",
    "WindowTotals",
    "generate_booking_code",
]
