"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is centralized
- Resource lifecycle (connections, clients) is managed properly

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from datetime import datetime
from typing import Annotated, Callable, Generator

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.scheduling.admission import BookingAdmission
from ..core.scheduling.attendance import AttendanceTracker
from ..core.scheduling.models import ScheduleConfig
from ..core.scheduling.statistics import StatisticsAggregator
from ..infrastructure.notifications.client import (
    NotificationConfig,
    NotificationPublisher,
    create_notification_publisher,
)
from ..infrastructure.snowflake.client import create_snowflake_connection
from ..infrastructure.snowflake.repositories.pool import PoolRepository, SnowflakeConfig

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Global mock instances (shared across requests in mock mode)
_mock_snowflake_connection = None
_mock_notification_publisher = None

Clock = Callable[[], datetime]


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

async def verify_api_key(
    settings: Annotated[Settings, Depends(get_settings)],
    api_key: str = Security(api_key_header),
) -> str:
    """
    Validate API key from request header.

    Raises 403 if key is invalid or missing.
    """
    if not api_key:
        logger.warning("Request missing API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="API key required. Provide X-API-Key header.",
        )

    if api_key not in settings.api_keys_list:
        logger.warning(
            "Invalid API key attempt",
            extra={"key_prefix": api_key[:8] if api_key else ""}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Clock and schedule
# ---------------------------------------------------------------------------

def get_clock() -> Clock:
    """
    Provide the current-time source.

    Facility time is naive local time. Tests override this dependency to
    pin "now".
    """
    return datetime.now


def get_schedule_config(
    settings: Annotated[Settings, Depends(get_settings)],
) -> ScheduleConfig:
    return settings.schedule_config()


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

def get_pool_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[PoolRepository, None, None]:
    """
    Provide PoolRepository with database connection.

    This is a generator function (yields instead of returns) because
    we need to manage the connection lifecycle:
    1. Create connection
    2. Create repository
    3. Yield repository (FastAPI injects it)
    4. Close connection (cleanup after request)

    In mock mode, we reuse the same connection across requests
    so that data persists during the process lifetime.
    """
    global _mock_snowflake_connection

    if settings.snowflake_mock_mode:
        if _mock_snowflake_connection is None:
            from ..infrastructure.snowflake.client import MockSnowflakeConnection
            _mock_snowflake_connection = MockSnowflakeConnection()
            logger.info("Created shared mock Snowflake connection")

        yield PoolRepository(_mock_snowflake_connection)
    else:
        config = SnowflakeConfig(
            account=settings.snowflake_account,
            user=settings.snowflake_user,
            password=settings.snowflake_password or None,
            private_key_path=settings.snowflake_private_key_path,
            private_key_base64=settings.snowflake_private_key_base64,
            database=settings.snowflake_database,
            schema=settings.snowflake_schema,
            warehouse=settings.snowflake_warehouse,
            role=settings.snowflake_role,
        )

        with create_snowflake_connection(config=config) as conn:
            repo = PoolRepository(conn)
            logger.debug("Created PoolRepository with Snowflake connection")
            yield repo


def get_notification_publisher(
    settings: Annotated[Settings, Depends(get_settings)],
) -> NotificationPublisher:
    """
    Provide the notification publisher.

    In mock mode, one in-memory publisher is shared across requests.
    """
    global _mock_notification_publisher

    if settings.notifications_mock_mode:
        if _mock_notification_publisher is None:
            _mock_notification_publisher = create_notification_publisher(mock_mode=True)
        return _mock_notification_publisher

    config = NotificationConfig(
        region=settings.sns_region,
        topic_arn=settings.sns_topic_arn,
        sms_enabled=settings.sns_sms_enabled,
    )
    return create_notification_publisher(config=config)


# ---------------------------------------------------------------------------
# Engine Services
# ---------------------------------------------------------------------------

def get_booking_admission(
    repository: Annotated[PoolRepository, Depends(get_pool_repository)],
    config: Annotated[ScheduleConfig, Depends(get_schedule_config)],
) -> BookingAdmission:
    return BookingAdmission(store=repository, config=config)


def get_attendance_tracker(
    repository: Annotated[PoolRepository, Depends(get_pool_repository)],
    config: Annotated[ScheduleConfig, Depends(get_schedule_config)],
) -> AttendanceTracker:
    return AttendanceTracker(store=repository, config=config)


def get_statistics(
    repository: Annotated[PoolRepository, Depends(get_pool_repository)],
    config: Annotated[ScheduleConfig, Depends(get_schedule_config)],
) -> StatisticsAggregator:
    return StatisticsAggregator(store=repository, config=config)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
ClockDep = Annotated[Clock, Depends(get_clock)]
ScheduleConfigDep = Annotated[ScheduleConfig, Depends(get_schedule_config)]
PoolRepositoryDep = Annotated[PoolRepository, Depends(get_pool_repository)]
NotificationPublisherDep = Annotated[NotificationPublisher, Depends(get_notification_publisher)]
BookingAdmissionDep = Annotated[BookingAdmission, Depends(get_booking_admission)]
AttendanceTrackerDep = Annotated[AttendanceTracker, Depends(get_attendance_tracker)]
StatisticsDep = Annotated[StatisticsAggregator, Depends(get_statistics)]
