"""Unit tests for the attendance CSV export."""

import csv
import io
from datetime import date, datetime
from uuid import uuid4

from poolbook.core.scheduling.export import CSV_COLUMNS, attendance_csv
from poolbook.core.scheduling.statistics import AttendanceLogRow


def log_row(**overrides) -> AttendanceLogRow:
    fields = dict(
        record_id=uuid4(),
        user_name="Ana, Jr.",
        role="INDIVIDUAL",
        reservation_date=date(2026, 10, 20),
        reservation_hour=9,
        check_in_time=datetime(2026, 10, 20, 9, 2),
        check_out_time=datetime(2026, 10, 20, 10, 0),
        duration_minutes=58,
        laps=20,
        meters=1000,
    )
    fields.update(overrides)
    return AttendanceLogRow(**fields)


class TestAttendanceCsv:

    def test_header_only_when_empty(self):
        assert attendance_csv([]) == ",".join(CSV_COLUMNS) + "\n"

    def test_formats_completed_session(self):
        parsed = list(csv.reader(io.StringIO(attendance_csv([log_row()]))))

        assert parsed[1] == [
            "Ana, Jr.",
            "INDIVIDUAL",
            "2026-10-20",
            "9:00",
            "2026-10-20T09:02:00",
            "2026-10-20T10:00:00",
            "58",
            "20",
            "1000",
        ]

    def test_open_session_leaves_blanks(self):
        row = log_row(check_out_time=None, duration_minutes=None, laps=0, meters=0)
        parsed = list(csv.reader(io.StringIO(attendance_csv([row]))))
        assert parsed[1][5] == ""
        assert parsed[1][6] == ""

    def test_deleted_reservation_row(self):
        row = log_row(user_name="Deleted user", role="N/A", reservation_date=None, reservation_hour=None)
        parsed = list(csv.reader(io.StringIO(attendance_csv([row]))))
        assert parsed[1][:4] == ["Deleted user", "N/A", "", ""]
