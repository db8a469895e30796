"""
Repository pattern implementations for Snowflake.

Repositories translate between database rows and domain snapshots.
"""

from .activity import ActivityRepository, CoachNotFoundError

__all__ = ["ActivityRepository", "CoachNotFoundError"]
