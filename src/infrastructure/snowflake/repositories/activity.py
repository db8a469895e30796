"""
Snowflake repository for coaching activity.

Reads the three collections the invoice engine needs: the coach, the
sessions the coach is on, and the coach's competition assignments with
their time blocks. Read-only: scheduling owns these tables, invoicing only
takes snapshots of them.

Rows are translated into the engine's snapshot types here, including the
one conversion that matters most: dates become "YYYY-MM-DD" strings and
times become "HH:MM" strings before they reach the engine.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional, Protocol

from src.core.invoicing.models import (
    Coach,
    CoachAssignment,
    Session,
    TimeBlock,
)

logger = logging.getLogger(__name__)


class SnowflakeConnection(Protocol):
    """
    Protocol for Snowflake connections.

    Using a protocol means tests can provide a mock without
    importing the actual snowflake-connector-python.
    """

    def cursor(self): ...
    def commit(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Configuration for Snowflake connection."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    database: str = "SWIMCLUB"
    schema: str = "ROSTER"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


class CoachNotFoundError(Exception):
    """Raised when a requested coach doesn't exist."""
    pass


# Column order of each SELECT below. The mock cursor builds its rows
# from these so the two can't disagree.
COACH_COLUMNS = ("coach_id", "first_name", "last_name", "level")

SESSION_COLUMNS = (
    "session_id",
    "session_date",
    "start_time",
    "end_time",
    "squad_id",
    "squad_name",
    "lead_coach_id",
    "second_coach_id",
    "helper_id",
    "set_writer_id",
)

ASSIGNMENT_COLUMNS = (
    "coaching_id",
    "competition_id",
    "coach_id",
    "competition_name",
    "location_name",
    "block_index",
    "block_date",
    "start_time",
    "end_time",
)


def as_date_string(value) -> str:
    """DATE columns come back as date objects; the engine wants strings."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return "" if value is None else str(value)


def as_clock_string(value) -> str:
    """TIME columns come back as time objects; keep seconds only if set."""
    if isinstance(value, time):
        return value.strftime("%H:%M:%S" if value.second else "%H:%M")
    return "" if value is None else str(value)


class ActivityRepository:
    """
    Repository for the coaching activity behind an invoice.

    Each method corresponds to one collection the engine consumes:
    - get_coach: the coach and their qualification level
    - list_sessions_for_coach: sessions where the coach coaches or writes
    - list_assignments_for_coach: competition assignments and time blocks

    Date windows are optional and inclusive. They only narrow the fetch;
    month membership is still decided by the engine.
    """

    def __init__(self, connection: SnowflakeConnection) -> None:
        self._conn = connection

    def get_coach(self, coach_id: str) -> Coach:
        cursor = self._conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    c.coach_id,
                    c.first_name,
                    c.last_name,
                    c.level
                FROM coaches c
                WHERE c.coach_id = %s
            """, (coach_id,))

            row = cursor.fetchone()
            if not row:
                raise CoachNotFoundError(f"Coach {coach_id} not found")

            record = dict(zip(COACH_COLUMNS, row))
            return Coach(
                id=str(record["coach_id"]),
                first_name=record["first_name"] or "",
                last_name=record["last_name"] or "",
                qualification_level=record["level"] or "No qualification",
            )

        finally:
            cursor.close()

    def list_sessions_for_coach(
        self,
        coach_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[Session]:
        cursor = self._conn.cursor()

        try:
            params: tuple = (coach_id,)
            window_filter = ""
            if start_date and end_date:
                window_filter = "AND s.session_date BETWEEN %s AND %s"
                params = (coach_id, start_date, end_date)

            cursor.execute(f"""
                SELECT
                    s.session_id,
                    s.session_date,
                    s.start_time,
                    s.end_time,
                    s.squad_id,
                    q.squad_name,
                    s.lead_coach_id,
                    s.second_coach_id,
                    s.helper_id,
                    s.set_writer_id
                FROM swimming_sessions s
                LEFT JOIN squads q ON s.squad_id = q.squad_id
                WHERE %s IN (s.lead_coach_id, s.second_coach_id, s.helper_id, s.set_writer_id)
                {window_filter}
                ORDER BY s.session_date, s.start_time
            """, params)

            rows = cursor.fetchall()
            sessions = [self._build_session(row) for row in rows]

            logger.debug(
                "Loaded sessions for coach",
                extra={"coach_id": coach_id, "count": len(sessions)}
            )

            return sessions

        finally:
            cursor.close()

    def list_assignments_for_coach(
        self,
        coach_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[CoachAssignment]:
        cursor = self._conn.cursor()

        try:
            params: tuple = (coach_id,)
            window_filter = ""
            if start_date and end_date:
                window_filter = "AND b.block_date BETWEEN %s AND %s"
                params = (coach_id, start_date, end_date)

            cursor.execute(f"""
                SELECT
                    cc.coaching_id,
                    cc.competition_id,
                    cc.coach_id,
                    comp.competition_name,
                    loc.pool_name AS location_name,
                    b.block_index,
                    b.block_date,
                    b.start_time,
                    b.end_time
                FROM competition_coaching cc
                JOIN competition_time_blocks b ON b.coaching_id = cc.coaching_id
                LEFT JOIN competitions comp ON cc.competition_id = comp.competition_id
                LEFT JOIN locations loc ON comp.location_id = loc.location_id
                WHERE cc.coach_id = %s
                {window_filter}
                ORDER BY cc.coaching_id, b.block_index
            """, params)

            rows = cursor.fetchall()
            assignments = self._build_assignments(rows)

            logger.debug(
                "Loaded competition assignments for coach",
                extra={"coach_id": coach_id, "count": len(assignments)}
            )

            return assignments

        finally:
            cursor.close()

    # -----------------------------------------------------------------------
    # Private Methods
    # -----------------------------------------------------------------------

    def _build_session(self, row: tuple) -> Session:
        record = dict(zip(SESSION_COLUMNS, row))
        return Session(
            id=str(record["session_id"]),
            date=as_date_string(record["session_date"]),
            start_time=as_clock_string(record["start_time"]),
            end_time=as_clock_string(record["end_time"]),
            squad_id=str(record["squad_id"]),
            squad_name=record["squad_name"],
            lead_coach_id=str(record["lead_coach_id"]),
            second_coach_id=record["second_coach_id"],
            helper_id=record["helper_id"],
            set_writer_id=str(record["set_writer_id"]),
        )

    def _build_assignments(self, rows: list[tuple]) -> list[CoachAssignment]:
        """Fold one-row-per-block results back into assignments."""
        headers: dict[str, dict] = {}
        blocks: dict[str, list[TimeBlock]] = {}

        for row in rows:
            record = dict(zip(ASSIGNMENT_COLUMNS, row))
            coaching_id = str(record["coaching_id"])
            if coaching_id not in headers:
                headers[coaching_id] = record
                blocks[coaching_id] = []
            blocks[coaching_id].append(TimeBlock(
                date=as_date_string(record["block_date"]),
                start_time=as_clock_string(record["start_time"]),
                end_time=as_clock_string(record["end_time"]),
            ))

        return [
            CoachAssignment(
                id=coaching_id,
                competition_id=str(record["competition_id"]),
                coach_id=str(record["coach_id"]),
                time_blocks=tuple(blocks[coaching_id]),
                competition_name=record["competition_name"],
                location_name=record["location_name"],
            )
            for coaching_id, record in headers.items()
        ]
