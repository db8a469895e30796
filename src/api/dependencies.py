"""
FastAPI dependency injection.

Dependencies provide instances of services, clients, and configuration
to route handlers. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Dependencies can be overridden in tests
- Configuration is centralized
- Resource lifecycle (connections) is managed properly

Each dependency is a function that FastAPI calls when needed.
"""

import logging
from typing import Annotated, Generator

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ..config.settings import Settings, get_settings
from ..core.invoicing.engine import InvoiceEngine
from ..core.invoicing.rates import RateTable
from ..infrastructure.snowflake.client import get_snowflake_connection
from ..infrastructure.snowflake.repositories.activity import (
    ActivityRepository,
    SnowflakeConfig,
)

logger = logging.getLogger(__name__)

# API Key security scheme
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

# Shared mock connection so seeded data persists across requests
_mock_snowflake_connection = None


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
            extra={"key_prefix": api_key[:8]}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key",
        )

    return api_key


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_mock_connection():
    """The process-wide in-memory connection used in mock mode."""
    global _mock_snowflake_connection

    if _mock_snowflake_connection is None:
        from ..infrastructure.snowflake.client import MockSnowflakeConnection
        _mock_snowflake_connection = MockSnowflakeConnection()
        logger.info("Created shared mock Snowflake connection")

    return _mock_snowflake_connection


def get_activity_repository(
    settings: Annotated[Settings, Depends(get_settings)],
) -> Generator[ActivityRepository, None, None]:
    """
    Provide ActivityRepository with database connection.

    This is a generator function (yields instead of returns) because
    we need to manage the connection lifecycle:
    1. Create connection
    2. Create repository
    3. Yield repository (FastAPI injects it)
    4. Close connection (cleanup after request)

    In mock mode, we reuse the same connection across requests
    so that seeded data persists.
    """
    if settings.snowflake_mock_mode:
        yield ActivityRepository(get_mock_connection())
        return

    config = SnowflakeConfig(
        account=settings.snowflake_account,
        user=settings.snowflake_user,
        password=settings.snowflake_password or None,
        private_key_path=settings.snowflake_private_key_path,
        database=settings.snowflake_database,
        schema=settings.snowflake_schema,
        warehouse=settings.snowflake_warehouse,
        role=settings.snowflake_role,
    )

    with get_snowflake_connection(config) as conn:
        logger.debug("Created ActivityRepository with Snowflake connection")
        yield ActivityRepository(conn)


def get_rate_table(
    settings: Annotated[Settings, Depends(get_settings)],
) -> RateTable:
    """Default tier rates, repriced by any configured overrides."""
    return RateTable.with_overrides(
        settings.hourly_rate_overrides,
        writing_fraction=settings.session_writing_fraction,
    )


def get_invoice_engine(
    rate_table: Annotated[RateTable, Depends(get_rate_table)],
) -> InvoiceEngine:
    """The engine is stateless, so a new instance per request is fine."""
    return InvoiceEngine(rate_table)


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
AuthenticatedUser = Annotated[str, Depends(verify_api_key)]
ActivityRepositoryDep = Annotated[ActivityRepository, Depends(get_activity_repository)]
RateTableDep = Annotated[RateTable, Depends(get_rate_table)]
InvoiceEngineDep = Annotated[InvoiceEngine, Depends(get_invoice_engine)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
