"""
Repository pattern implementations for Snowflake.

Repositories translate between domain models and database representations.
"""

from .pool import PoolRepository, SnowflakeConfig

__all__ = ["PoolRepository", "SnowflakeConfig"]
