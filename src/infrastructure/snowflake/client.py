"""
Snowflake database connection management.

Provides a context manager for real Snowflake connections and the
in-memory mock that backs mock mode. Mock mode keeps one shared mock
connection per process (see api/dependencies.get_mock_connection).

Using the repository pattern means most code never touches this module
directly - it goes through ActivityRepository which handles the translation
between database rows and the invoice engine's snapshot types.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from .repositories.activity import (
    ASSIGNMENT_COLUMNS,
    COACH_COLUMNS,
    SESSION_COLUMNS,
    SnowflakeConfig,
    SnowflakeConnection,
    as_date_string,
)

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(Exception):
    """Raised when Snowflake connection fails."""
    pass


def _load_private_key(key_path: str):
    """
    Load private key from file for key-pair authentication.

    Snowflake requires the private key as a bytes object, not a file path.
    This function reads the key file and returns it in the format
    snowflake-connector expects.
    """
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    with open(key_path, 'rb') as key_file:
        private_key = serialization.load_pem_private_key(
            key_file.read(),
            password=None,  # No password on the key
            backend=default_backend()
        )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Provide Snowflake connection with automatic cleanup.

    Supports both password and key-pair authentication:
    - If private_key_path is set, uses key-pair auth
    - Otherwise, uses password auth

    Usage:
        with get_snowflake_connection(config) as conn:
            cursor = conn.cursor()
            # do work
    """
    import snowflake.connector

    conn = None
    try:
        connect_params = {
            'account': config.account,
            'user': config.user,
            'database': config.database,
            'schema': config.schema,
            'warehouse': config.warehouse,
            'role': config.role,
            'client_session_keep_alive': True,
        }

        if config.private_key_path:
            logger.info("Using key-pair authentication for Snowflake")
            connect_params['private_key'] = _load_private_key(config.private_key_path)
        elif config.password:
            logger.info("Using password authentication for Snowflake")
            connect_params['password'] = config.password
        else:
            raise SnowflakeConnectionError(
                "Either password or private_key_path must be provided"
            )

        conn = snowflake.connector.connect(**connect_params)

        logger.debug(
            "Established Snowflake connection",
            extra={
                "account": config.account,
                "database": config.database,
                "schema": config.schema,
            }
        )

    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}") from e

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

    Implements just enough of the cursor interface to support the
    ActivityRepository SELECTs without a real database. Queries are
    recognised by the table they read from.
    """

    def __init__(self, storage: dict) -> None:
        self._storage = storage
        self._results: list = []

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        logger.debug(
            "Mock cursor execute",
            extra={"query": query[:100], "params": params}
        )

        query_upper = query.upper()
        params = params or ()

        if 'FROM COACHES' in query_upper:
            self._select_coach(params)
        elif 'FROM SWIMMING_SESSIONS' in query_upper:
            self._select_sessions(params)
        elif 'FROM COMPETITION_COACHING' in query_upper:
            self._select_assignments(params)
        else:
            self._results = []

        return self

    @staticmethod
    def _in_window(value, params: tuple) -> bool:
        if len(params) < 3:
            return True
        return params[1] <= as_date_string(value) <= params[2]

    def _select_coach(self, params: tuple) -> None:
        coach = self._storage['coaches'].get(str(params[0])) if params else None
        self._results = [tuple(coach.get(c) for c in COACH_COLUMNS)] if coach else []

    def _select_sessions(self, params: tuple) -> None:
        if not params:
            self._results = []
            return

        coach_id = str(params[0])
        rows = []
        for session in self._storage['swimming_sessions'].values():
            involved = coach_id in (
                session.get('lead_coach_id'),
                session.get('second_coach_id'),
                session.get('helper_id'),
                session.get('set_writer_id'),
            )
            if involved and self._in_window(session.get('session_date'), params):
                rows.append(tuple(session.get(c) for c in SESSION_COLUMNS))

        self._results = sorted(rows, key=lambda r: (as_date_string(r[1]), str(r[2])))

    def _select_assignments(self, params: tuple) -> None:
        if not params:
            self._results = []
            return

        coach_id = str(params[0])
        rows = []
        for assignment in self._storage['competition_coaching'].values():
            if assignment.get('coach_id') != coach_id:
                continue
            blocks = self._storage['competition_time_blocks'].get(assignment['coaching_id'], [])
            for block in sorted(blocks, key=lambda b: b['block_index']):
                if not self._in_window(block.get('block_date'), params):
                    continue
                record = {**assignment, **block}
                rows.append(tuple(record.get(c) for c in ASSIGNMENT_COLUMNS))

        self._results = sorted(rows, key=lambda r: (str(r[0]), r[5]))

    def fetchone(self):
        """Fetch one row from results."""
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        """Fetch all rows from results."""
        return self._results

    def close(self) -> None:
        """Close cursor (no-op for mock)."""
        pass


class MockSnowflakeConnection:
    """
    Mock Snowflake connection for local development.

    Stores roster data in memory using a simple dictionary structure.
    This enables testing the full API without a real database.

    Not suitable for production, but perfect for:
    - Local development
    - Unit tests
    - CI/CD environments
    """

    def __init__(self) -> None:
        # In-memory storage: {table_name: {id: row_dict}}
        self._storage: dict[str, dict] = {
            'coaches': {},
            'swimming_sessions': {},
            'competition_coaching': {},
            'competition_time_blocks': {},  # coaching_id -> [block rows]
        }

        logger.info("Initialized mock Snowflake connection (in-memory)")

    def cursor(self) -> MockSnowflakeCursor:
        """Create a mock cursor."""
        return MockSnowflakeCursor(self._storage)

    def commit(self) -> None:
        """Commit transaction (no-op for mock, reads only)."""
        logger.debug("Mock connection commit")

    def close(self) -> None:
        """Close connection (no-op for mock)."""
        logger.debug("Mock connection close")

    # Helper methods for seeding local data and tests
    def _add_coach(self, coach: dict) -> None:
        self._storage['coaches'][str(coach['coach_id'])] = coach

    def _add_session(self, session: dict) -> None:
        self._storage['swimming_sessions'][str(session['session_id'])] = session

    def _add_assignment(self, assignment: dict, blocks: list[dict]) -> None:
        """Add an assignment with blocks given as {block_date, start_time, end_time}."""
        coaching_id = str(assignment['coaching_id'])
        self._storage['competition_coaching'][coaching_id] = assignment
        self._storage['competition_time_blocks'][coaching_id] = [
            {**block, 'block_index': index}
            for index, block in enumerate(blocks)
        ]

    def _clear(self) -> None:
        """Clear all mock storage (for test cleanup)."""
        for table in self._storage.values():
            table.clear()
