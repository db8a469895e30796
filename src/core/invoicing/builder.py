"""
Invoice assembly.

Turns selected activity into an Invoice: hours per category, earnings per
category, the line items behind them, and the grand total. Accumulation
uses unrounded floats; rounding is left to Invoice.to_dict().
"""

import logging
from typing import Optional, Sequence

from .exceptions import InvalidTimeRange
from .models import (
    Coach,
    CoachingSummary,
    CompetitionLine,
    DataQualityIssue,
    Invoice,
    InvoiceRates,
    InvoiceTotals,
    Session,
    SessionLine,
    SessionWritingSummary,
    WritingLine,
    YearMonth,
)
from .rates import RateTable
from .selectors import CompetitionBlock, TaggedSession
from .timing import duration_hours, parse_clock_time

logger = logging.getLogger(__name__)


def _skip_invalid_range(
    issues: list[DataQualityIssue],
    record_type: str,
    record_id: str,
    error: InvalidTimeRange,
) -> None:
    logger.warning(
        "Excluding record with invalid time range",
        extra={"record_type": record_type, "record_id": record_id, "error": str(error)}
    )
    issues.append(DataQualityIssue(
        record_type=record_type,
        record_id=record_id,
        error=type(error).__name__,
        message=str(error),
    ))


def build_invoice(
    coach: Coach,
    year: int,
    month: int,
    coaching_sessions: Sequence[TaggedSession],
    writing_sessions: Sequence[Session],
    competition_blocks: Sequence[CompetitionBlock],
    rate_table: RateTable,
    issues: Optional[list[DataQualityIssue]] = None,
) -> Invoice:
    """
    Build the invoice for one coach and month.

    Raises UnknownQualificationTier before doing any work if the coach's
    level has no rate. Sessions or blocks with an invalid time range are
    left out of every total and listed in ``Invoice.issues``.

    Deterministic: the same inputs always give an equal invoice.
    """
    period = YearMonth(year, month)
    hourly_rate = rate_table.rate_for(coach.qualification_level)
    writing_rate = rate_table.writing_rate_for(coach.qualification_level)
    issues = list(issues or [])

    session_lines = []
    session_hours = 0.0
    for tagged in coaching_sessions:
        session = tagged.session
        try:
            duration = duration_hours(session.start_time, session.end_time)
        except InvalidTimeRange as e:
            _skip_invalid_range(issues, "session", session.id, e)
            continue
        session_hours += duration
        session_lines.append(SessionLine(
            session_id=session.id,
            session_date=session.date,
            squad_id=session.squad_id,
            squad_name=session.squad_name,
            start_time=session.start_time,
            end_time=session.end_time,
            duration=duration,
            role=tagged.role,
        ))

    competition_lines = []
    competition_hours = 0.0
    for selected in competition_blocks:
        block = selected.block
        try:
            duration = duration_hours(block.start_time, block.end_time)
        except InvalidTimeRange as e:
            record_id = f"{selected.assignment.id}#{selected.block_index}"
            _skip_invalid_range(issues, "competition_block", record_id, e)
            continue
        competition_hours += duration
        competition_lines.append(CompetitionLine(
            coaching_id=selected.assignment.id,
            competition_id=selected.assignment.competition_id,
            competition_name=selected.assignment.competition_name,
            location_name=selected.assignment.location_name,
            coaching_date=block.date,
            start_time=block.start_time,
            end_time=block.end_time,
            duration=duration,
            block_index=selected.block_index,
        ))

    writing_lines = [
        WritingLine(
            session_id=session.id,
            session_date=session.date,
            squad_id=session.squad_id,
            squad_name=session.squad_name,
        )
        for session in writing_sessions
    ]

    # Times may lack a leading zero ("9:00"), so order by clock value
    session_lines.sort(key=lambda line: (line.session_date, parse_clock_time(line.start_time), line.session_id))
    competition_lines.sort(key=lambda line: (line.coaching_date, parse_clock_time(line.start_time), line.coaching_id))
    writing_lines.sort(key=lambda line: (line.session_date, line.session_id))

    coaching = CoachingSummary(
        session_hours=session_hours,
        competition_hours=competition_hours,
        sessions=session_lines,
        competitions=competition_lines,
    )
    coaching.earnings = coaching.total_hours * hourly_rate

    session_writing = SessionWritingSummary(sessions=writing_lines)
    session_writing.earnings = session_writing.count * writing_rate

    totals = InvoiceTotals(
        total_earnings=coaching.earnings + session_writing.earnings,
        total_hours=coaching.total_hours,
        total_sessions_written=session_writing.count,
    )

    return Invoice(
        coach_id=coach.id,
        coach_name=coach.full_name,
        qualification_level=coach.qualification_level,
        year=period.year,
        month=period.month,
        rates=InvoiceRates(hourly_rate=hourly_rate, session_writing_rate=writing_rate),
        coaching=coaching,
        session_writing=session_writing,
        totals=totals,
        issues=issues,
    )
