"""
Coach invoice API endpoints.

Serves the monthly invoice for a coach, the months that have anything to
invoice, and a CSV export of an invoice.

Every request loads the coach, their sessions and their competition
assignments in full before the engine runs, so an invoice is never built
from partial data. Two outcomes must stay distinguishable for the client:
- a month with no activity is a normal 200 with zero totals
- a computation that cannot run (no rate for the tier) is a 500
"""

import calendar
import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Path, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from ...core.invoicing.engine import InvoiceEngine
from ...core.invoicing.exceptions import UnknownQualificationTier
from ...core.invoicing.export import export_filename, to_csv
from ...core.invoicing.models import Invoice
from ...infrastructure.snowflake.repositories.activity import (
    ActivityRepository,
    CoachNotFoundError,
)
from ..dependencies import (
    ActivityRepositoryDep,
    AuthenticatedUser,
    InvoiceEngineDep,
    SettingsDep,
)

logger = logging.getLogger(__name__)

router = APIRouter()

YearParam = Annotated[int, Path(ge=1000, le=9999, description="Four-digit year")]
MonthParam = Annotated[int, Path(ge=1, le=12, description="Month number, 1-12")]


# ---------------------------------------------------------------------------
# Response Models
# ---------------------------------------------------------------------------

class RatesModel(BaseModel):
    hourly_rate: float
    session_writing_rate: float


class SessionLineModel(BaseModel):
    session_id: str
    session_date: str
    squad_id: str
    squad_name: str | None = None
    start_time: str
    end_time: str
    duration: float
    role: str = Field(description="lead, second or helper (display only)")


class CompetitionLineModel(BaseModel):
    coaching_id: str
    competition_id: str
    competition_name: str | None = None
    location_name: str | None = None
    coaching_date: str
    start_time: str
    end_time: str
    duration: float


class WritingLineModel(BaseModel):
    session_id: str
    session_date: str
    squad_id: str
    squad_name: str | None = None


class BreakdownModel(BaseModel):
    session_hours: float
    competition_hours: float


class CoachingModel(BaseModel):
    total_hours: float
    breakdown: BreakdownModel
    sessions: list[SessionLineModel]
    competitions: list[CompetitionLineModel]
    earnings: float


class SessionWritingModel(BaseModel):
    count: int
    sessions: list[WritingLineModel]
    earnings: float


class TotalsModel(BaseModel):
    total_earnings: float
    total_hours: float
    total_sessions_written: int


class IssueModel(BaseModel):
    record_type: str
    record_id: str
    error: str
    message: str


class InvoiceResponse(BaseModel):
    """A coach's invoice for one month, rounded to 2 decimal places."""
    status: str = Field(description="'complete', or 'incomplete' when records were skipped")
    has_activity: bool = Field(description="False for a month with nothing to invoice")
    coach_id: str
    coach_name: str
    qualification_level: str
    year: int
    month: int
    rates: RatesModel
    coaching: CoachingModel
    session_writing: SessionWritingModel
    totals: TotalsModel
    issues: list[IssueModel] = Field(description="Records excluded from the totals")


class MonthOption(BaseModel):
    year: int
    month: int
    key: str = Field(description="YYYY-MM")
    label: str = Field(description="e.g. 'January 2024'")


class AvailableMonthsResponse(BaseModel):
    coach_id: str
    months: list[MonthOption] = Field(description="Most recent first")
    total: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _month_window(year: int, month: int) -> tuple[str, str]:
    last_day = calendar.monthrange(year, month)[1]
    return f"{year:04d}-{month:02d}-01", f"{year:04d}-{month:02d}-{last_day:02d}"


def _load_invoice(
    coach_id: str,
    year: int,
    month: int,
    repository: ActivityRepository,
    engine: InvoiceEngine,
) -> Invoice:
    try:
        coach = repository.get_coach(coach_id)
    except CoachNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Coach not found"
        )

    start_date, end_date = _month_window(year, month)
    try:
        sessions = repository.list_sessions_for_coach(coach_id, start_date, end_date)
        assignments = repository.list_assignments_for_coach(coach_id, start_date, end_date)
    except Exception as e:
        logger.error(
            "Failed to load coaching activity",
            extra={"coach_id": coach_id, "error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load coaching activity"
        )

    try:
        return engine.invoice_for(coach, year, month, sessions, assignments)
    except UnknownQualificationTier as e:
        logger.error(
            "No rate for coach qualification level",
            extra={
                "coach_id": coach_id,
                "qualification_level": coach.qualification_level,
                "error": str(e),
            }
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Coaching rates not configured for this qualification level"
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "/{coach_id}/months",
    response_model=AvailableMonthsResponse,
    status_code=status.HTTP_200_OK,
    summary="List invoiceable months",
    description="Months containing any session or competition activity for the coach",
)
async def list_available_months(
    coach_id: str,
    api_key: AuthenticatedUser = None,
    repository: ActivityRepositoryDep = None,
    engine: InvoiceEngineDep = None,
) -> AvailableMonthsResponse:
    """
    Build the month selector for a coach.

    An empty list is a valid answer: the coach has no invoice history yet.
    """
    try:
        repository.get_coach(coach_id)
    except CoachNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Coach not found"
        )

    try:
        sessions = repository.list_sessions_for_coach(coach_id)
        assignments = repository.list_assignments_for_coach(coach_id)
    except Exception as e:
        logger.error(
            "Failed to load coaching activity",
            extra={"coach_id": coach_id, "error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load coaching activity"
        )

    months = engine.available_months(coach_id, sessions, assignments)

    return AvailableMonthsResponse(
        coach_id=coach_id,
        months=[
            MonthOption(year=m.year, month=m.month, key=m.key, label=m.label)
            for m in months
        ],
        total=len(months),
    )


@router.get(
    "/{coach_id}/{year}/{month}",
    response_model=InvoiceResponse,
    status_code=status.HTTP_200_OK,
    summary="Get monthly invoice",
    description="Coaching hours, competition hours, sessions written and earnings for one month",
)
async def get_invoice(
    coach_id: str,
    year: YearParam,
    month: MonthParam,
    api_key: AuthenticatedUser = None,
    repository: ActivityRepositoryDep = None,
    engine: InvoiceEngineDep = None,
) -> InvoiceResponse:
    logger.info(
        "Generating invoice",
        extra={"coach_id": coach_id, "year": year, "month": month}
    )

    invoice = _load_invoice(coach_id, year, month, repository, engine)

    if not invoice.is_complete:
        logger.warning(
            "Invoice is incomplete",
            extra={"coach_id": coach_id, "skipped_records": len(invoice.issues)}
        )

    return InvoiceResponse(
        status="complete" if invoice.is_complete else "incomplete",
        has_activity=invoice.has_activity,
        **invoice.to_dict(),
    )


@router.get(
    "/{coach_id}/{year}/{month}/export",
    status_code=status.HTTP_200_OK,
    summary="Export monthly invoice as CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
async def export_invoice(
    coach_id: str,
    year: YearParam,
    month: MonthParam,
    settings: SettingsDep,
    api_key: AuthenticatedUser = None,
    repository: ActivityRepositoryDep = None,
    engine: InvoiceEngineDep = None,
) -> Response:
    invoice = _load_invoice(coach_id, year, month, repository, engine)

    return Response(
        content=to_csv(invoice, currency_symbol=settings.currency_symbol),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(invoice)}"'},
    )
