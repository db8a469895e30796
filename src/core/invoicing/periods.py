"""
Month keys and the available-months index.

month_key() is the only place that decides which month an activity belongs
to. It slices the date string instead of parsing it, so a block dated the
1st can never slide into the previous month through a timezone conversion.
"""

import logging
import re
from typing import Iterable

from .exceptions import MalformedDate
from .models import CoachAssignment, Session, YearMonth

logger = logging.getLogger(__name__)

_ISO_DATE = re.compile(r"^[1-9]\d{3}-(0[1-9]|1[0-2])-\d{2}")


def month_key(date_string: str) -> str:
    """'2024-01-31' -> '2024-01'"""
    if not isinstance(date_string, str) or len(date_string) < 10:
        raise MalformedDate(f"Expected YYYY-MM-DD, got {date_string!r}")
    if not _ISO_DATE.match(date_string):
        raise MalformedDate(f"Expected YYYY-MM-DD, got {date_string!r}")
    return date_string[:7]


def in_month(date_string: str, period: YearMonth) -> bool:
    """Raises MalformedDate for unusable dates; callers decide what to skip."""
    return month_key(date_string) == period.key


def available_months(
    coach_id: str,
    sessions: Iterable[Session],
    assignments: Iterable[CoachAssignment],
) -> list[YearMonth]:
    """
    Every month in which the coach has something to invoice, newest first.

    Counts sessions where the coach holds any role, writer included, and
    every competition block of the coach's assignments. An empty list
    means no invoice history yet.
    """
    keys: set[str] = set()

    for session in sessions:
        if not session.involves(coach_id):
            continue
        try:
            keys.add(month_key(session.date))
        except MalformedDate as e:
            logger.warning(
                "Skipping session with malformed date",
                extra={"session_id": session.id, "error": str(e)}
            )

    for assignment in assignments:
        if assignment.coach_id != coach_id:
            continue
        for block in assignment.time_blocks:
            try:
                keys.add(month_key(block.date))
            except MalformedDate as e:
                logger.warning(
                    "Skipping competition block with malformed date",
                    extra={"coaching_id": assignment.id, "error": str(e)}
                )

    months = [YearMonth.from_key(key) for key in keys]
    return sorted(months, key=lambda m: (m.year, m.month), reverse=True)
