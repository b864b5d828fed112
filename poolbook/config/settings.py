"""
Application configuration using Pydantic settings.

Configuration is loaded from environment variables with sensible defaults.
Using Pydantic's BaseSettings means we get:
- Type validation at startup (fail fast if config is wrong)
- Documentation of what's required vs optional
- Easy testing with different configurations

Mock modes enable local development without external services.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.scheduling.models import ScheduleConfig


def _parse_int_list(raw: str) -> list[int]:
    return [int(item.strip()) for item in raw.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    For lists (like api_keys), use comma-separated values in env.
    """

    # API Configuration
    api_title: str = "Poolbook API"
    api_version: str = "v1"
    api_keys: str = Field(
        default="dev-key-1,dev-key-2",
        description="Comma-separated API keys. Using a list enables key rotation without downtime."
    )

    # Pool Schedule
    pool_open_hour: int = Field(default=5, ge=0, le=23, description="First bookable hour")
    pool_close_hour_weekday: int = Field(
        default=20, ge=0, le=24,
        description="Closing hour Tuesday to Friday (bookings must end by then)"
    )
    pool_close_hour_saturday: int = Field(default=14, ge=0, le=24, description="Saturday closing hour")
    pool_max_capacity_per_hour: int = Field(
        default=50, ge=0,
        description="Maximum swimmers in the water during one hour"
    )
    pool_privileged_hours: str = Field(
        default="5,6,15,16,17",
        description="Comma-separated hours reserved for clubs and account holders"
    )
    pool_operating_weekdays: str = Field(
        default="1,2,3,4,5",
        description="Comma-separated weekdays the pool opens (0=Monday ... 6=Sunday)"
    )
    pool_lane_size: int = Field(default=6, ge=1, description="Swimmers per lane band")
    pool_length_meters: int = Field(default=50, ge=1, description="Length of one lap")
    booking_code_prefix: str = Field(default="ALB", description="Facility prefix on booking codes")
    leaderboard_size: int = Field(default=10, ge=1, description="Entries shown on the leaderboard")
    revalidate_on_commit: bool = Field(
        default=True,
        description="Re-check capacity under slot locks when a quoted booking is committed"
    )

    # Snowflake Configuration
    snowflake_account: str = Field(
        default="",
        description="Snowflake account identifier"
    )
    snowflake_user: str = Field(
        default="",
        description="Snowflake service account username"
    )
    snowflake_password: str = Field(
        default="",
        description="Snowflake service account password"
    )
    snowflake_private_key_path: Optional[str] = Field(
        default=None,
        description="Path to RSA private key file for key-pair authentication"
    )
    snowflake_private_key_base64: Optional[str] = Field(
        default=None,
        description="Base64-encoded private key (for deployment, alternative to file path)"
    )
    snowflake_database: str = Field(
        default="POOLBOOK",
        description="Snowflake database name"
    )
    snowflake_schema: str = Field(
        default="SCHEDULING",
        description="Snowflake schema name"
    )
    snowflake_warehouse: str = Field(
        default="COMPUTE_WH",
        description="Snowflake warehouse for query execution"
    )
    snowflake_role: Optional[str] = Field(
        default=None,
        description="Snowflake role to use (optional)"
    )
    snowflake_mock_mode: bool = Field(
        default=False,
        description="Use in-memory mock instead of real Snowflake connection. Enables local dev without DB."
    )

    # Notifications (AWS SNS)
    sns_region: str = Field(default="us-east-1", description="AWS region for SNS")
    sns_topic_arn: Optional[str] = Field(
        default=None,
        description="Topic for booking events. When unset, SMS is sent directly to the member phone."
    )
    sns_sms_enabled: bool = Field(default=True, description="Send SMS to members with a phone on file")
    notifications_mock_mode: bool = Field(
        default=False,
        description="Record notifications in memory instead of publishing to SNS"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000",
        description="Comma-separated list of allowed CORS origins. Use * for development only."
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def api_keys_list(self) -> list[str]:
        """Parse comma-separated API keys into a list."""
        return [key.strip() for key in self.api_keys.split(",") if key.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def privileged_hours_set(self) -> frozenset[int]:
        return frozenset(_parse_int_list(self.pool_privileged_hours))

    @property
    def operating_weekdays_set(self) -> frozenset[int]:
        return frozenset(_parse_int_list(self.pool_operating_weekdays))

    def schedule_config(self) -> ScheduleConfig:
        """Build the immutable schedule rules consumed by the core."""
        return ScheduleConfig(
            open_hour=self.pool_open_hour,
            close_hour_weekday=self.pool_close_hour_weekday,
            close_hour_saturday=self.pool_close_hour_saturday,
            max_capacity_per_hour=self.pool_max_capacity_per_hour,
            privileged_hours=self.privileged_hours_set,
            operating_weekdays=self.operating_weekdays_set,
            lane_size=self.pool_lane_size,
            pool_length_meters=self.pool_length_meters,
            booking_code_prefix=self.booking_code_prefix,
            leaderboard_size=self.leaderboard_size,
            revalidate_on_commit=self.revalidate_on_commit,
        )

    def validate_required_fields(self) -> list[str]:
        """
        Validate that required fields are set based on mock mode settings.

        Returns list of missing required fields.
        This is separate from Pydantic validation because requirements
        depend on whether we're in mock mode.
        """
        missing = []

        # Snowflake only required if not in mock mode
        if not self.snowflake_mock_mode:
            if not self.snowflake_account:
                missing.append("SNOWFLAKE_ACCOUNT")
            if not self.snowflake_user:
                missing.append("SNOWFLAKE_USER")
            # Need either password or private key
            if (
                not self.snowflake_password
                and not self.snowflake_private_key_path
                and not self.snowflake_private_key_base64
            ):
                missing.append("SNOWFLAKE_PASSWORD or SNOWFLAKE_PRIVATE_KEY_PATH")

        if not self.notifications_mock_mode and not self.sns_region:
            missing.append("SNS_REGION")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache means we only load settings once per process.
    This is safe because settings don't change during runtime.
    For tests, you can call get_settings.cache_clear() to reset.
    """
    return Settings()
