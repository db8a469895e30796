"""
Application configuration using Pydantic settings.

Configuration comes from environment variables with sensible defaults,
including billing rate overrides and Snowflake mock mode.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
