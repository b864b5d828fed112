"""
Poolbook - reservation scheduling and attendance for a swimming pool.

This package contains the complete application:
- core: Framework-agnostic scheduling engine
- infrastructure: Snowflake persistence and SNS notifications
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
