"""
Invoice engine service.

Wires the selectors and the builder together behind two calls the outer
layers need: "what months can I invoice?" and "give me the invoice for
this month". Callers must pass fully loaded collections; the engine does
no I/O of its own.
"""

import logging
from typing import Iterable, Sequence

from .builder import build_invoice
from .models import (
    Coach,
    CoachAssignment,
    CoachingRole,
    DataQualityIssue,
    Invoice,
    Session,
    YearMonth,
)
from .periods import available_months
from .rates import RateTable
from .selectors import (
    DEFAULT_ROLE_PRIORITY,
    select_coaching_sessions,
    select_competition_blocks,
    select_written_sessions,
)

logger = logging.getLogger(__name__)


class InvoiceEngine:
    """
    Stateless apart from its rate table, so calling it twice with the same
    snapshots gives the same invoice.
    """

    def __init__(
        self,
        rate_table: RateTable,
        role_priority: Sequence[CoachingRole] = DEFAULT_ROLE_PRIORITY,
    ) -> None:
        self._rate_table = rate_table
        self._role_priority = tuple(role_priority)

    @property
    def rate_table(self) -> RateTable:
        return self._rate_table

    def invoice_for(
        self,
        coach: Coach,
        year: int,
        month: int,
        sessions: Iterable[Session],
        assignments: Iterable[CoachAssignment],
    ) -> Invoice:
        """
        Build the invoice for one coach and month.

        A record involving the coach whose date is malformed has no knowable
        month, so it is reported in ``issues`` on every month's invoice and
        each of them is marked incomplete until the record is corrected.
        """
        sessions = list(sessions)
        issues: list[DataQualityIssue] = []

        coaching = select_coaching_sessions(
            coach.id, year, month, sessions,
            issues=issues,
            role_priority=self._role_priority,
        )
        # Coaching already reported any bad dates for sessions it saw
        writing_issues: list[DataQualityIssue] = []
        written = select_written_sessions(coach.id, year, month, sessions, issues=writing_issues)
        reported = {issue.record_id for issue in issues}
        issues.extend(i for i in writing_issues if i.record_id not in reported)

        blocks = select_competition_blocks(coach.id, year, month, assignments, issues=issues)

        invoice = build_invoice(
            coach=coach,
            year=year,
            month=month,
            coaching_sessions=coaching,
            writing_sessions=written,
            competition_blocks=blocks,
            rate_table=self._rate_table,
            issues=issues,
        )

        logger.info(
            "Built invoice",
            extra={
                "coach_id": coach.id,
                "period": invoice.period.key,
                "total_hours": invoice.totals.total_hours,
                "sessions_written": invoice.totals.total_sessions_written,
                "issues": len(invoice.issues),
            }
        )

        return invoice

    def available_months(
        self,
        coach_id: str,
        sessions: Iterable[Session],
        assignments: Iterable[CoachAssignment],
    ) -> list[YearMonth]:
        return available_months(coach_id, sessions, assignments)
