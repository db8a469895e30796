"""
Shared fixtures for the invoicing tests.

The roster used throughout: a Level 2 coach ("c-sam") billed at £17/hour,
plus a second coach who writes most of the sets.
"""

import pytest

from src.core.invoicing.models import (
    Coach,
    CoachAssignment,
    Session,
    TimeBlock,
)
from src.core.invoicing.rates import RateTable


def _make_session(session_id: str, date: str, start: str, end: str, **roles) -> Session:
    """Session with sensible defaults; pass lead/second/helper/writer to override."""
    return Session(
        id=session_id,
        date=date,
        start_time=start,
        end_time=end,
        squad_id=roles.get("squad_id", "sq-junior"),
        squad_name=roles.get("squad_name", "Junior Squad"),
        lead_coach_id=roles.get("lead", "c-other"),
        second_coach_id=roles.get("second"),
        helper_id=roles.get("helper"),
        set_writer_id=roles.get("writer", "c-other"),
    )


@pytest.fixture
def coach() -> Coach:
    return Coach(
        id="c-sam",
        first_name="Sam",
        last_name="Reed",
        qualification_level="Level 2",
    )


@pytest.fixture
def volunteer() -> Coach:
    return Coach(
        id="c-vol",
        first_name="Alex",
        last_name="Hart",
        qualification_level="No qualification",
    )


@pytest.fixture
def rate_table() -> RateTable:
    return RateTable()


@pytest.fixture
def january_sessions() -> list[Session]:
    """
    One 1.5h lead session and one session Sam only wrote, both in January,
    plus a February session that must never show up in January.
    """
    return [
        _make_session("s-lead", "2024-01-09", "09:00", "10:30", lead="c-sam"),
        _make_session("s-written", "2024-01-11", "18:00", "19:00", writer="c-sam"),
        _make_session("s-feb", "2024-02-06", "09:00", "10:00", lead="c-sam"),
    ]


@pytest.fixture
def january_assignment() -> CoachAssignment:
    """A single 4h competition block in January."""
    return CoachAssignment(
        id="a-county",
        competition_id="m-county",
        coach_id="c-sam",
        competition_name="County Championships",
        location_name="Central Pool",
        time_blocks=(TimeBlock(date="2024-01-20", start_time="08:00", end_time="12:00"),),
    )


@pytest.fixture
def straddling_assignment() -> CoachAssignment:
    """A meet running 31 January to 2 February, two hours a day."""
    return CoachAssignment(
        id="a-winter",
        competition_id="m-winter",
        coach_id="c-sam",
        competition_name="Winter Open",
        time_blocks=(
            TimeBlock(date="2024-01-31", start_time="09:00", end_time="11:00"),
            TimeBlock(date="2024-02-01", start_time="09:00", end_time="11:00"),
            TimeBlock(date="2024-02-02", start_time="09:00", end_time="11:00"),
        ),
    )


@pytest.fixture
def make_session():
    return _make_session
