"""
Coaching rate endpoints.

Read-only view of the tier rates the invoice engine bills with, so coaches
can see how their invoice figures are derived.
"""

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from ..dependencies import AuthenticatedUser, RateTableDep

router = APIRouter()


class TierRate(BaseModel):
    qualification_level: str
    hourly_rate: float
    session_writing_rate: float = Field(description="Flat fee per session written")


class RatesResponse(BaseModel):
    session_writing_fraction: float
    rates: list[TierRate]


@router.get(
    "",
    response_model=RatesResponse,
    status_code=status.HTTP_200_OK,
    summary="List coaching rates",
    description="Hourly and session-writing rates per qualification level, highest level first",
)
async def list_rates(
    api_key: AuthenticatedUser = None,
    rate_table: RateTableDep = None,
) -> RatesResponse:
    return RatesResponse(
        session_writing_fraction=rate_table.writing_fraction,
        rates=[
            TierRate(
                qualification_level=tier.value,
                hourly_rate=round(rate_table.rate_for(tier), 2),
                session_writing_rate=round(rate_table.writing_rate_for(tier), 2),
            )
            for tier in rate_table.tiers()
        ],
    )
