"""
Activity selectors.

Each selector narrows a raw collection down to what one coach can invoice
for one month. They are independent of each other and of the rates: the
builder decides what the selected activity is worth.

A record that does not involve the coach is dropped silently, which is the
normal case when scanning every session in the club. A record that involves
the coach but carries an unusable date is dropped too, but reported through
the optional ``issues`` list so the invoice shows it is incomplete.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from .exceptions import MalformedDate
from .models import (
    CoachAssignment,
    CoachingRole,
    DataQualityIssue,
    Session,
    TimeBlock,
    YearMonth,
)
from .periods import in_month

logger = logging.getLogger(__name__)

DEFAULT_ROLE_PRIORITY: tuple[CoachingRole, ...] = (
    CoachingRole.LEAD,
    CoachingRole.SECOND,
    CoachingRole.HELPER,
)


@dataclass(frozen=True)
class TaggedSession:
    """A coached session plus the role shown for it on the invoice."""
    session: Session
    role: CoachingRole


@dataclass(frozen=True)
class CompetitionBlock:
    """One in-month time block from a coach's competition assignment."""
    assignment: CoachAssignment
    block_index: int
    block: TimeBlock


def tag_role(
    session: Session,
    coach_id: str,
    priority: Sequence[CoachingRole] = DEFAULT_ROLE_PRIORITY,
) -> Optional[CoachingRole]:
    """
    Pick the one role to display for a coach holding several.

    Display only. Pay never depends on the role, or on how many roles the
    coach holds in the same session.
    """
    held = session.roles_for(coach_id)
    for role in priority:
        if role in held:
            return role
    return None


def _date_in_month(
    date_string: str,
    period: YearMonth,
    record_type: str,
    record_id: str,
    issues: Optional[list[DataQualityIssue]],
) -> bool:
    try:
        return in_month(date_string, period)
    except MalformedDate as e:
        logger.warning(
            "Excluding record with malformed date",
            extra={"record_type": record_type, "record_id": record_id, "error": str(e)}
        )
        if issues is not None:
            issues.append(DataQualityIssue(
                record_type=record_type,
                record_id=record_id,
                error=type(e).__name__,
                message=str(e),
            ))
        return False


def select_coaching_sessions(
    coach_id: str,
    year: int,
    month: int,
    sessions: Iterable[Session],
    issues: Optional[list[DataQualityIssue]] = None,
    role_priority: Sequence[CoachingRole] = DEFAULT_ROLE_PRIORITY,
) -> list[TaggedSession]:
    """In-month sessions where the coach is lead, second or helper."""
    period = YearMonth(year, month)
    selected = []
    seen: set[str] = set()

    for session in sessions:
        if session.id in seen:
            continue
        role = tag_role(session, coach_id, role_priority)
        if role is None:
            continue
        if not _date_in_month(session.date, period, "session", session.id, issues):
            continue
        seen.add(session.id)
        selected.append(TaggedSession(session=session, role=role))

    return selected


def select_written_sessions(
    coach_id: str,
    year: int,
    month: int,
    sessions: Iterable[Session],
    issues: Optional[list[DataQualityIssue]] = None,
) -> list[Session]:
    """In-month sessions the coach wrote the set for."""
    period = YearMonth(year, month)
    selected = []
    seen: set[str] = set()

    for session in sessions:
        if session.id in seen or session.set_writer_id != coach_id:
            continue
        if not _date_in_month(session.date, period, "session", session.id, issues):
            continue
        seen.add(session.id)
        selected.append(session)

    return selected


def select_competition_blocks(
    coach_id: str,
    year: int,
    month: int,
    assignments: Iterable[CoachAssignment],
    issues: Optional[list[DataQualityIssue]] = None,
) -> list[CompetitionBlock]:
    """
    The coach's competition time blocks dated in the month.

    Selection is per block, not per competition: a meet running from the
    31st to the 2nd bills its first day to one month and the rest to the next.
    """
    period = YearMonth(year, month)
    selected = []
    seen: set[str] = set()

    for assignment in assignments:
        if assignment.id in seen or assignment.coach_id != coach_id:
            continue
        seen.add(assignment.id)

        for index, block in enumerate(assignment.time_blocks):
            record_id = f"{assignment.id}#{index}"
            if not _date_in_month(block.date, period, "competition_block", record_id, issues):
                continue
            selected.append(CompetitionBlock(
                assignment=assignment,
                block_index=index,
                block=block,
            ))

    return selected
