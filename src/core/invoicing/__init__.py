"""
Coach invoicing logic.

Contains the domain models, the selectors and builder that turn a coach's
activity into a monthly invoice, and the export views.
"""

from .engine import InvoiceEngine
from .exceptions import (
    InvalidTimeRange,
    InvoicingError,
    MalformedDate,
    UnknownQualificationTier,
)
from .models import (
    Coach,
    CoachAssignment,
    CoachingRole,
    DataQualityIssue,
    Invoice,
    QualificationTier,
    Session,
    TimeBlock,
    YearMonth,
)
from .rates import RateTable

__all__ = [
    "Coach",
    "CoachAssignment",
    "CoachingRole",
    "DataQualityIssue",
    "Invoice",
    "QualificationTier",
    "Session",
    "TimeBlock",
    "YearMonth",
    "InvoiceEngine",
    "RateTable",
    "InvoicingError",
    "InvalidTimeRange",
    "MalformedDate",
    "UnknownQualificationTier",
]
