"""
Snowflake repository for reservations, attendance and members.

This module implements the repository pattern for pool data access.
The repository:
1. Translates between domain models and database rows
2. Encapsulates all SQL queries
3. Maps the member database's category labels to the core Role enum

The scheduling engine never writes SQL directly; it talks to the
PoolStore protocol, which this class satisfies.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, Protocol
from uuid import UUID

from poolbook.core.scheduling.models import (
    AttendanceRecord,
    MemberProfile,
    Reservation,
    ReservationStatus,
    Role,
)


logger = logging.getLogger(__name__)


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_base64: Optional[str] = None
    database: str = "POOLBOOK"
    schema: str = "SCHEDULING"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


# Member database category labels. Anything unrecognised is INDIVIDUAL.
_ROLE_TO_CATEGORY = {
    Role.ADMIN: "Administrador",
    Role.PRINCIPAL: "Principal",
    Role.DEPENDENT: "Dependiente",
    Role.INDIVIDUAL: "Individual",
}


def to_db_category(role: Role) -> str:
    return _ROLE_TO_CATEGORY[role]


def from_db_category(value: Optional[str]) -> Role:
    """Normalise any stored category or role label to a Role."""
    label = (value or "").upper()
    if "ADMIN" in label:
        return Role.ADMIN
    if "PRINCIPAL" in label:
        return Role.PRINCIPAL
    if "DEPENDENT" in label or "DEPENDIENTE" in label:
        return Role.DEPENDENT
    return Role.INDIVIDUAL


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS members (
        member_id VARCHAR PRIMARY KEY,
        full_name VARCHAR,
        category VARCHAR,
        phone VARCHAR,
        email VARCHAR,
        status VARCHAR,
        last_payment_date VARCHAR
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reservations (
        reservation_id VARCHAR PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        user_name VARCHAR,
        user_role VARCHAR,
        user_photo_url VARCHAR,
        reservation_date DATE NOT NULL,
        reservation_hour INTEGER NOT NULL,
        head_count INTEGER NOT NULL,
        status VARCHAR NOT NULL,
        lane_numbers VARCHAR,
        booking_code VARCHAR,
        created_at TIMESTAMP_NTZ DEFAULT CURRENT_TIMESTAMP()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS attendance_records (
        record_id VARCHAR PRIMARY KEY,
        reservation_id VARCHAR NOT NULL UNIQUE,
        check_in_time TIMESTAMP_NTZ,
        check_out_time TIMESTAMP_NTZ,
        laps INTEGER DEFAULT 0
    )
    """,
]


class PoolRepository:
    """
    Repository for pool scheduling persistence.

    Satisfies the core PoolStore protocol. Every write commits
    immediately; multi-row consistency for a booking is handled by the
    admission service.
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def ensure_schema(self) -> None:
        """Create tables if they don't exist."""
        cursor = self._conn.cursor()
        try:
            for statement in SCHEMA_STATEMENTS:
                cursor.execute(statement)
            self._conn.commit()
        finally:
            cursor.close()

    def ping(self) -> None:
        """Run a trivial query; raises if the warehouse is unreachable."""
        cursor = self._conn.cursor()
        try:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Reservations
    # -----------------------------------------------------------------------

    def list_reservations(self) -> list[Reservation]:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    reservation_id,
                    user_id,
                    user_name,
                    user_role,
                    user_photo_url,
                    reservation_date,
                    reservation_hour,
                    head_count,
                    status,
                    lane_numbers,
                    booking_code
                FROM reservations
            """)
            return [self._build_reservation(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    def insert_reservation(self, reservation: Reservation) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                INSERT INTO reservations (
                    reservation_id, user_id, user_name, user_role, user_photo_url,
                    reservation_date, reservation_hour, head_count, status,
                    lane_numbers, booking_code
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            """, (
                str(reservation.id),
                reservation.user_id,
                reservation.user_name,
                to_db_category(reservation.user_role),
                reservation.user_photo_url,
                reservation.date,
                reservation.hour,
                reservation.head_count,
                reservation.status.value,
                reservation.lane_label,
                reservation.booking_code,
            ))
            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to insert reservation",
                extra={"reservation_id": str(reservation.id), "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def update_reservation_status(self, reservation_id: UUID, status: ReservationStatus) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                UPDATE reservations
                SET status = %s
                WHERE reservation_id = %s
            """, (status.value, str(reservation_id)))
            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to update reservation status",
                extra={"reservation_id": str(reservation_id), "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    def delete_reservation(self, reservation_id: UUID) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                DELETE FROM reservations WHERE reservation_id = %s
            """, (str(reservation_id),))
            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to delete reservation",
                extra={"reservation_id": str(reservation_id), "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Attendance
    # -----------------------------------------------------------------------

    def list_attendance(self) -> list[AttendanceRecord]:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT record_id, reservation_id, check_in_time, check_out_time, laps
                FROM attendance_records
            """)
            return [self._build_attendance(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    def upsert_attendance(self, record: AttendanceRecord) -> None:
        """Insert a new record or add check-out fields to an existing one."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                MERGE INTO attendance_records AS target
                USING (
                    SELECT %s AS record_id, %s AS reservation_id,
                           %s AS check_in_time, %s AS check_out_time, %s AS laps
                ) AS source
                ON target.record_id = source.record_id
                WHEN MATCHED THEN UPDATE SET
                    check_in_time = source.check_in_time,
                    check_out_time = source.check_out_time,
                    laps = source.laps
                WHEN NOT MATCHED THEN INSERT (
                    record_id, reservation_id, check_in_time, check_out_time, laps
                ) VALUES (
                    source.record_id, source.reservation_id,
                    source.check_in_time, source.check_out_time, source.laps
                )
            """, (
                str(record.id),
                str(record.reservation_id),
                record.check_in_time,
                record.check_out_time,
                record.laps,
            ))
            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to save attendance record",
                extra={"reservation_id": str(record.reservation_id), "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Members (owned by the membership system, read-mostly)
    # -----------------------------------------------------------------------

    def list_members(self) -> list[MemberProfile]:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT member_id, full_name, category, phone, email, status, last_payment_date
                FROM members
            """)
            return [self._build_member(row) for row in cursor.fetchall()]

        finally:
            cursor.close()

    def get_member_by_phone(self, phone: str) -> Optional[MemberProfile]:
        """Look up the membership record for a phone number."""
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT member_id, full_name, category, phone, email, status, last_payment_date
                FROM members
                WHERE phone = %s
            """, (phone,))
            row = cursor.fetchone()
            return self._build_member(row) if row else None

        finally:
            cursor.close()

    def save_member(self, member: MemberProfile) -> None:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                MERGE INTO members AS target
                USING (
                    SELECT %s AS member_id, %s AS full_name, %s AS category,
                           %s AS phone, %s AS email, %s AS status, %s AS last_payment_date
                ) AS source
                ON target.member_id = source.member_id
                WHEN MATCHED THEN UPDATE SET
                    full_name = source.full_name,
                    category = source.category,
                    phone = source.phone,
                    email = source.email,
                    status = source.status,
                    last_payment_date = source.last_payment_date
                WHEN NOT MATCHED THEN INSERT (
                    member_id, full_name, category, phone, email, status, last_payment_date
                ) VALUES (
                    source.member_id, source.full_name, source.category, source.phone,
                    source.email, source.status, source.last_payment_date
                )
            """, (
                member.id,
                member.name,
                to_db_category(member.role),
                member.phone,
                member.email,
                member.status,
                member.last_payment_date,
            ))
            self._conn.commit()

        except Exception as e:
            logger.error(
                "Failed to save member",
                extra={"member_id": member.id, "error": str(e)}
            )
            raise
        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _build_reservation(self, row) -> Reservation:
        return Reservation(
            id=UUID(str(row[0])),
            user_id=str(row[1]),
            user_name=row[2] or "",
            user_role=from_db_category(row[3]),
            user_photo_url=row[4],
            date=_as_date(row[5]),
            hour=int(row[6]),
            head_count=int(row[7]),
            status=ReservationStatus(row[8]),
            lanes=_parse_lanes(row[9]),
            booking_code=row[10] or "",
        )

    def _build_attendance(self, row) -> AttendanceRecord:
        return AttendanceRecord(
            id=UUID(str(row[0])),
            reservation_id=UUID(str(row[1])),
            check_in_time=_as_datetime(row[2]),
            check_out_time=_as_datetime(row[3]),
            laps=int(row[4] or 0),
        )

    def _build_member(self, row) -> MemberProfile:
        return MemberProfile(
            id=str(row[0]),
            name=row[1] or "",
            role=from_db_category(row[2]),
            phone=row[3],
            email=row[4],
            status=row[5],
            last_payment_date=row[6],
        )


def _parse_lanes(raw: Any) -> list[int]:
    """Lane numbers are stored as a display string such as "1, 2"."""
    if raw is None:
        return []
    return [int(part) for part in str(raw).replace(" ", "").split(",") if part]


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))
