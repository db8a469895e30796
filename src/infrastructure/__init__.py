"""
Infrastructure layer - external service integrations.

- snowflake: read-only access to coaches, sessions and competition
  assignments held by the scheduling side of the club app

These wrappers translate between external formats and our domain models.
"""
