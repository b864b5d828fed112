"""
Snowflake database connection management.

Provides connection factory and context manager for Snowflake operations.
Includes mock mode with in-memory storage for local development.

Using the repository pattern means most code never touches this module
directly - it goes through PoolRepository which handles the translation
between domain models and database rows.
"""

import base64
import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from .repositories.pool import SnowflakeConfig, SnowflakeConnection

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """Raised when Snowflake connection fails."""
    pass


def _serialize_private_key(pem_bytes: bytes) -> bytes:
    """
    Convert a PEM private key to the DER/PKCS8 bytes snowflake-connector expects.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    private_key = serialization.load_pem_private_key(
        pem_bytes,
        password=None,  # No password on the key
        backend=default_backend()
    )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


def _load_private_key(config: SnowflakeConfig) -> Optional[bytes]:
    """Load the key from a file path or a base64 environment value."""
    if config.private_key_path:
        with open(config.private_key_path, 'rb') as key_file:
            return _serialize_private_key(key_file.read())
    if config.private_key_base64:
        return _serialize_private_key(base64.b64decode(config.private_key_base64))
    return None


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Supports both password and key-pair authentication:
    - If a private key (path or base64) is set, uses key-pair auth
    - Otherwise, uses password auth

    Usage:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            # do work
            conn.commit()
    """
    try:
        import snowflake.connector
    except ImportError:
        raise ImportError(
            "snowflake-connector-python is required. "
            "Install with: pip install snowflake-connector-python"
        )

    connect_params = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
        'role': config.role,
        'client_session_keep_alive': True,
    }

    private_key = _load_private_key(config)
    if private_key:
        logger.info("Using key-pair authentication for Snowflake")
        connect_params['private_key'] = private_key
    elif config.password:
        logger.info("Using password authentication for Snowflake")
        connect_params['password'] = config.password
    else:
        raise SnowflakeConnectionError(
            "Either password or a private key must be provided"
        )

    try:
        conn = snowflake.connector.connect(**connect_params)
    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}") from e

    logger.debug(
        "Established Snowflake connection",
        extra={
            "account": config.account,
            "database": config.database,
            "schema": config.schema,
        }
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Closed Snowflake connection")
        except Exception as e:
            logger.warning(
                "Error closing Snowflake connection",
                extra={"error": str(e)}
            )


# ---------------------------------------------------------------------------
# Mock Connection for Local Development
# ---------------------------------------------------------------------------

class MockSnowflakeCursor:
    """
    Mock Snowflake cursor for testing.

    Implements just enough of the cursor interface to support
    PoolRepository operations without a real database. Rows are kept as
    tuples in the same column order the repository selects them.
    """

    def __init__(self, storage: dict, lock: threading.Lock) -> None:
        self._storage = storage
        self._lock = lock
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        """
        Execute a query against mock storage.

        Statements are dispatched by pattern matching on the SQL text.
        """
        logger.debug(
            "Mock cursor execute",
            extra={"query": query.strip()[:100], "params": params}
        )

        query_upper = " ".join(query.upper().split())
        params = params or ()
        self._results = []
        self._rowcount = 0

        with self._lock:
            if query_upper.startswith('CREATE TABLE'):
                return self
            if query_upper.startswith('INSERT INTO RESERVATIONS'):
                self._put('reservations', params)
            elif query_upper.startswith('UPDATE RESERVATIONS'):
                self._update_status(params)
            elif query_upper.startswith('DELETE FROM RESERVATIONS'):
                removed = self._storage['reservations'].pop(str(params[0]), None)
                self._rowcount = 1 if removed else 0
            elif query_upper.startswith('MERGE INTO ATTENDANCE_RECORDS'):
                self._put('attendance_records', params)
            elif query_upper.startswith('MERGE INTO MEMBERS'):
                self._put('members', params)
            elif query_upper.startswith('SELECT'):
                self._handle_select(query_upper, params)

        return self

    def _put(self, table: str, params: tuple) -> None:
        self._storage[table][str(params[0])] = tuple(params)
        self._rowcount = 1

    def _update_status(self, params: tuple) -> None:
        status, reservation_id = params
        row = self._storage['reservations'].get(str(reservation_id))
        if row is None:
            return
        # status is the ninth selected column
        self._storage['reservations'][str(reservation_id)] = row[:8] + (status,) + row[9:]
        self._rowcount = 1

    def _handle_select(self, query: str, params: tuple) -> None:
        if 'FROM RESERVATIONS' in query:
            self._results = list(self._storage['reservations'].values())
        elif 'FROM ATTENDANCE_RECORDS' in query:
            self._results = list(self._storage['attendance_records'].values())
        elif 'FROM MEMBERS' in query:
            members = list(self._storage['members'].values())
            if 'WHERE PHONE' in query:
                members = [row for row in members if row[3] == params[0]]
            self._results = members
        else:
            # Connectivity checks such as SELECT 1
            self._results = [(1,)]

    def fetchone(self):
        """Fetch one row from results."""
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        """Fetch all rows from results."""
        return list(self._results)

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass

    @property
    def rowcount(self) -> int:
        """Return number of rows affected."""
        return self._rowcount


class MockSnowflakeConnection:
    """
    Mock Snowflake connection for local development.

    Stores data in memory using a simple dictionary structure.
    This enables exercising the full API without a real database.

    Not suitable for production, but perfect for:
    - Local development
    - Unit tests
    - CI/CD environments
    """

    def __init__(self) -> None:
        # In-memory storage: {table_name: {id: row_tuple}}
        self._storage: dict[str, dict[str, tuple]] = {
            'reservations': {},
            'attendance_records': {},
            'members': {},
        }
        self._lock = threading.Lock()

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        """Create a mock cursor."""
        return MockSnowflakeCursor(self._storage, self._lock)

    def commit(self) -> None:
        """Commit transaction (no-op for mock, always auto-commits)."""
        logger.debug("Mock connection commit")

    def close(self) -> None:
        """Close connection (no-op for mock)."""
        logger.debug("Mock connection close")


@contextmanager
def get_mock_snowflake_connection() -> Generator[MockSnowflakeConnection, None, None]:
    """
    Provide mock Snowflake connection for local development.

    Returns a connection that stores data in memory.
    """
    conn = MockSnowflakeConnection()
    try:
        yield conn
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

@contextmanager
def create_snowflake_connection(
    config: Optional[SnowflakeConfig] = None,
    mock_mode: bool = False,
) -> Generator[SnowflakeConnection, None, None]:
    """
    Create Snowflake connection based on configuration.

    Factory function that returns either a real or mock connection
    depending on mock_mode flag.

    Args:
        config: Snowflake configuration (required if not mock_mode)
        mock_mode: If True, return mock connection for testing

    Yields:
        SnowflakeConnection implementation (real or mock)
    """
    if mock_mode:
        with get_mock_snowflake_connection() as conn:
            yield conn
    else:
        if config is None:
            raise ValueError("config is required when not in mock mode")

        with get_snowflake_connection(config) as conn:
            yield conn
