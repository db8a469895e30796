"""
Qualification-tier billing rates.

Coaching is paid by the hour at a rate set by the coach's tier. Writing a
session set is a flat fee per session, fixed at a fraction of the hourly
rate, so the two rates can never drift apart.
"""

from typing import Mapping, Optional

from .exceptions import UnknownQualificationTier
from .models import QualificationTier

DEFAULT_HOURLY_RATES: dict[QualificationTier, float] = {
    QualificationTier.LEVEL_3: 20.00,
    QualificationTier.LEVEL_2: 17.00,
    QualificationTier.LEVEL_1: 14.00,
    QualificationTier.NO_QUALIFICATION: 0.00,
}

SESSION_WRITING_FRACTION = 0.5


class RateTable:
    """
    Static lookup from tier to hourly rate.

    The unqualified tier resolves to zero. That is a valid rate, not an
    error: volunteers still get an invoice, it just totals zero.
    """

    def __init__(
        self,
        hourly_rates: Optional[Mapping[QualificationTier, float]] = None,
        writing_fraction: float = SESSION_WRITING_FRACTION,
    ) -> None:
        rates = dict(DEFAULT_HOURLY_RATES if hourly_rates is None else hourly_rates)
        for tier, rate in rates.items():
            if rate < 0:
                raise ValueError(f"Hourly rate for {tier.value} cannot be negative")
        if writing_fraction < 0:
            raise ValueError("Session writing fraction cannot be negative")

        self._hourly_rates = rates
        self._writing_fraction = writing_fraction

    @classmethod
    def with_overrides(
        cls,
        overrides: Mapping[str, float],
        writing_fraction: float = SESSION_WRITING_FRACTION,
    ) -> "RateTable":
        """Default table with some tiers repriced, keyed by level string."""
        rates = dict(DEFAULT_HOURLY_RATES)
        for level, rate in overrides.items():
            rates[QualificationTier.parse(level)] = float(rate)
        return cls(rates, writing_fraction=writing_fraction)

    @property
    def writing_fraction(self) -> float:
        return self._writing_fraction

    def rate_for(self, level: "str | QualificationTier") -> float:
        tier = QualificationTier.parse(level)
        if tier not in self._hourly_rates:
            raise UnknownQualificationTier(f"No rate configured for {tier.value}")
        return self._hourly_rates[tier]

    def writing_rate_for(self, level: "str | QualificationTier") -> float:
        return self.rate_for(level) * self._writing_fraction

    def tiers(self) -> list[QualificationTier]:
        """Configured tiers in rank order."""
        return [tier for tier in QualificationTier if tier in self._hourly_rates]
