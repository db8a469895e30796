"""
Domain models for coach invoicing.

The input types (Coach, Session, CoachAssignment, TimeBlock) are read-only
snapshots of records owned by the scheduling side of the club app. The
engine never mutates them. Dates stay as "YYYY-MM-DD" strings on purpose:
month membership is decided by the string prefix, never by a parsed date
object and its local-timezone fields.

The output type is Invoice. It keeps full-precision figures; to_dict() is
the presentation boundary where everything is rounded to 2 decimals.
"""

import calendar
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .exceptions import UnknownQualificationTier


class QualificationTier(Enum):
    """Coach certification levels, highest first."""
    LEVEL_3 = "Level 3"
    LEVEL_2 = "Level 2"
    LEVEL_1 = "Level 1"
    NO_QUALIFICATION = "No qualification"  # Volunteers, billed at zero

    @classmethod
    def parse(cls, value: "str | QualificationTier") -> "QualificationTier":
        """
        Resolve a stored level string to a tier.

        Stored values are inconsistent in case ("No qualification" vs
        "No Qualification"), so matching ignores case and extra spaces.
        """
        if isinstance(value, cls):
            return value

        normalised = " ".join(str(value or "").split()).lower()
        for tier in cls:
            if tier.value.lower() == normalised:
                return tier

        raise UnknownQualificationTier(f"Unknown qualification level: {value!r}")


class CoachingRole(Enum):
    """The on-deck role a coach holds in a session."""
    LEAD = "lead"
    SECOND = "second"
    HELPER = "helper"


# ---------------------------------------------------------------------------
# Input snapshots
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coach:
    id: str
    first_name: str = ""
    last_name: str = ""
    qualification_level: str = QualificationTier.NO_QUALIFICATION.value

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Session:
    """A scheduled squad session."""
    id: str
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    end_time: str
    squad_id: str
    lead_coach_id: str
    set_writer_id: str
    second_coach_id: Optional[str] = None
    helper_id: Optional[str] = None
    squad_name: Optional[str] = None

    def roles_for(self, coach_id: str) -> set[CoachingRole]:
        """Every coaching role the coach holds here (writing is not a role)."""
        roles = set()
        if self.lead_coach_id == coach_id:
            roles.add(CoachingRole.LEAD)
        if self.second_coach_id and self.second_coach_id == coach_id:
            roles.add(CoachingRole.SECOND)
        if self.helper_id and self.helper_id == coach_id:
            roles.add(CoachingRole.HELPER)
        return roles

    def involves(self, coach_id: str) -> bool:
        """True if the coach coaches or wrote this session."""
        return bool(self.roles_for(coach_id)) or self.set_writer_id == coach_id


@dataclass(frozen=True)
class TimeBlock:
    """One contiguous coaching interval on a single day of a competition."""
    date: str
    start_time: str
    end_time: str


@dataclass(frozen=True)
class CoachAssignment:
    """A coach's assignment to one competition, possibly across many days."""
    id: str
    competition_id: str
    coach_id: str
    time_blocks: tuple[TimeBlock, ...] = ()
    competition_name: Optional[str] = None
    location_name: Optional[str] = None


@dataclass(frozen=True)
class YearMonth:
    """An invoice period."""
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1000 <= self.year <= 9999:
            raise ValueError("Year must have four digits")
        if not 1 <= self.month <= 12:
            raise ValueError("Month must be between 1 and 12")

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        """Display label, e.g. 'January 2024'."""
        return f"{calendar.month_name[self.month]} {self.year}"

    @classmethod
    def from_key(cls, key: str) -> "YearMonth":
        year, month = key.split("-")
        return cls(year=int(year), month=int(month))


# ---------------------------------------------------------------------------
# Invoice output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataQualityIssue:
    """
    A record that was left out of an invoice.

    Surfaced alongside the invoice so it is visibly incomplete instead of
    silently short.
    """
    record_type: str  # "session" or "competition_block"
    record_id: str
    error: str  # exception class name
    message: str


@dataclass(frozen=True)
class SessionLine:
    session_id: str
    session_date: str
    squad_id: str
    start_time: str
    end_time: str
    duration: float
    role: CoachingRole
    squad_name: Optional[str] = None


@dataclass(frozen=True)
class CompetitionLine:
    coaching_id: str
    competition_id: str
    coaching_date: str
    start_time: str
    end_time: str
    duration: float
    block_index: int = 0
    competition_name: Optional[str] = None
    location_name: Optional[str] = None


@dataclass(frozen=True)
class WritingLine:
    session_id: str
    session_date: str
    squad_id: str
    squad_name: Optional[str] = None


@dataclass(frozen=True)
class InvoiceRates:
    hourly_rate: float
    session_writing_rate: float


@dataclass
class CoachingSummary:
    session_hours: float = 0.0
    competition_hours: float = 0.0
    sessions: list[SessionLine] = field(default_factory=list)
    competitions: list[CompetitionLine] = field(default_factory=list)
    earnings: float = 0.0

    @property
    def total_hours(self) -> float:
        return self.session_hours + self.competition_hours


@dataclass
class SessionWritingSummary:
    sessions: list[WritingLine] = field(default_factory=list)
    earnings: float = 0.0

    @property
    def count(self) -> int:
        return len(self.sessions)


@dataclass
class InvoiceTotals:
    total_earnings: float = 0.0
    total_hours: float = 0.0
    total_sessions_written: int = 0


@dataclass
class Invoice:
    """
    A coach's monthly invoice.

    Built fresh for every request and never persisted by the engine.
    """
    coach_id: str
    coach_name: str
    qualification_level: str
    year: int
    month: int
    rates: InvoiceRates
    coaching: CoachingSummary = field(default_factory=CoachingSummary)
    session_writing: SessionWritingSummary = field(default_factory=SessionWritingSummary)
    totals: InvoiceTotals = field(default_factory=InvoiceTotals)
    issues: list[DataQualityIssue] = field(default_factory=list)

    @property
    def period(self) -> YearMonth:
        return YearMonth(self.year, self.month)

    @property
    def is_complete(self) -> bool:
        """False when at least one record had to be skipped."""
        return not self.issues

    @property
    def has_activity(self) -> bool:
        return bool(
            self.coaching.sessions
            or self.coaching.competitions
            or self.session_writing.sessions
        )

    def to_dict(self) -> dict:
        """Presentation form: every hour and currency figure rounded to 2 dp."""
        return {
            "coach_id": self.coach_id,
            "coach_name": self.coach_name,
            "qualification_level": self.qualification_level,
            "year": self.year,
            "month": self.month,
            "rates": {
                "hourly_rate": _round(self.rates.hourly_rate),
                "session_writing_rate": _round(self.rates.session_writing_rate),
            },
            "coaching": {
                "total_hours": _round(self.coaching.total_hours),
                "breakdown": {
                    "session_hours": _round(self.coaching.session_hours),
                    "competition_hours": _round(self.coaching.competition_hours),
                },
                "sessions": [
                    {
                        "session_id": line.session_id,
                        "session_date": line.session_date,
                        "squad_id": line.squad_id,
                        "squad_name": line.squad_name,
                        "start_time": line.start_time,
                        "end_time": line.end_time,
                        "duration": _round(line.duration),
                        "role": line.role.value,
                    }
                    for line in self.coaching.sessions
                ],
                "competitions": [
                    {
                        "coaching_id": line.coaching_id,
                        "competition_id": line.competition_id,
                        "competition_name": line.competition_name,
                        "location_name": line.location_name,
                        "coaching_date": line.coaching_date,
                        "start_time": line.start_time,
                        "end_time": line.end_time,
                        "duration": _round(line.duration),
                    }
                    for line in self.coaching.competitions
                ],
                "earnings": _round(self.coaching.earnings),
            },
            "session_writing": {
                "count": self.session_writing.count,
                "sessions": [
                    {
                        "session_id": line.session_id,
                        "session_date": line.session_date,
                        "squad_id": line.squad_id,
                        "squad_name": line.squad_name,
                    }
                    for line in self.session_writing.sessions
                ],
                "earnings": _round(self.session_writing.earnings),
            },
            "totals": {
                "total_earnings": _round(self.totals.total_earnings),
                "total_hours": _round(self.totals.total_hours),
                "total_sessions_written": self.totals.total_sessions_written,
            },
            "issues": [
                {
                    "record_type": issue.record_type,
                    "record_id": issue.record_id,
                    "error": issue.error,
                    "message": issue.message,
                }
                for issue in self.issues
            ],
        }


def _round(value: float) -> float:
    return round(value, 2)
