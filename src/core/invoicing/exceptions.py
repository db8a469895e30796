"""
Errors raised by the invoicing engine.

Two kinds of failure exist, and callers must treat them differently:
- Record-level problems (InvalidTimeRange, MalformedDate) exclude one
  line item. The rest of the invoice is still produced.
- UnknownQualificationTier means no rate exists, so no total can be
  produced at all.
"""


class InvoicingError(Exception):
    """Base class for all invoicing errors."""
    pass


class InvalidTimeRange(InvoicingError):
    """Raised when a session or time block ends at or before it starts."""
    pass


class MalformedDate(InvoicingError):
    """Raised when a date is not a YYYY-MM-DD string."""
    pass


class UnknownQualificationTier(InvoicingError):
    """Raised when a coach's qualification level has no billing rate."""
    pass
