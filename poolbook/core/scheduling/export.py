"""CSV export of the attendance log for operator download."""

import csv
import io
from datetime import datetime
from typing import Iterable, Optional

from .statistics import AttendanceLogRow

CSV_COLUMNS = [
    "user_name",
    "role",
    "reservation_date",
    "reservation_hour",
    "check_in",
    "check_out",
    "duration_minutes",
    "laps",
    "meters",
]


def attendance_csv(rows: Iterable[AttendanceLogRow]) -> str:
    """Render attendance log rows as CSV text with a header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for row in rows:
        writer.writerow([
            row.user_name,
            row.role,
            row.reservation_date.isoformat() if row.reservation_date else "",
            f"{row.reservation_hour}:00" if row.reservation_hour is not None else "",
            _timestamp(row.check_in_time),
            _timestamp(row.check_out_time),
            "" if row.duration_minutes is None else row.duration_minutes,
            row.laps,
            row.meters,
        ])
    return buffer.getvalue()


def _timestamp(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""
