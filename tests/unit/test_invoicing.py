"""
Unit tests for invoice selection, assembly and export.

Everything runs against in-memory snapshots; no database is involved.
"""

import pytest

from src.core.invoicing.builder import build_invoice
from src.core.invoicing.engine import InvoiceEngine
from src.core.invoicing.exceptions import UnknownQualificationTier
from src.core.invoicing.export import (
    DISPLAY_HEADERS,
    display_rows,
    export_filename,
    export_rows,
    to_csv,
)
from src.core.invoicing.models import (
    Coach,
    CoachAssignment,
    CoachingRole,
    TimeBlock,
)
from src.core.invoicing.selectors import (
    select_coaching_sessions,
    select_competition_blocks,
    select_written_sessions,
    tag_role,
)


@pytest.fixture
def engine(rate_table) -> InvoiceEngine:
    return InvoiceEngine(rate_table)


@pytest.fixture
def january_invoice(engine, coach, january_sessions, january_assignment):
    return engine.invoice_for(coach, 2024, 1, january_sessions, [january_assignment])


# ---------------------------------------------------------------------------
# Selector Tests
# ---------------------------------------------------------------------------

class TestSelectCoachingSessions:
    """Tests for picking the sessions a coach is paid hours for."""

    def test_only_in_month_coached_sessions(self, january_sessions):
        selected = select_coaching_sessions("c-sam", 2024, 1, january_sessions)

        assert [t.session.id for t in selected] == ["s-lead"]
        assert selected[0].role is CoachingRole.LEAD

    def test_writer_only_session_is_not_coaching(self, make_session):
        session = make_session("s1", "2024-01-09", "09:00", "10:00", writer="c-sam")

        assert select_coaching_sessions("c-sam", 2024, 1, [session]) == []

    def test_repeated_record_counted_once(self, make_session):
        session = make_session("s1", "2024-01-09", "09:00", "10:00", lead="c-sam")

        selected = select_coaching_sessions("c-sam", 2024, 1, [session, session])

        assert len(selected) == 1

    def test_distinct_sessions_at_same_time_both_count(self, make_session):
        sessions = [
            make_session("s1", "2024-01-09", "09:00", "10:00", lead="c-sam"),
            make_session("s2", "2024-01-09", "09:00", "10:00", helper="c-sam"),
        ]

        assert len(select_coaching_sessions("c-sam", 2024, 1, sessions)) == 2

    def test_malformed_date_is_reported(self, make_session):
        issues = []
        session = make_session("s1", "09/01/2024", "09:00", "10:00", lead="c-sam")

        assert select_coaching_sessions("c-sam", 2024, 1, [session], issues=issues) == []
        assert len(issues) == 1
        assert issues[0].record_id == "s1"
        assert issues[0].error == "MalformedDate"

    def test_malformed_date_on_unrelated_session_is_silent(self, make_session):
        issues = []
        session = make_session("s1", "garbage", "09:00", "10:00")

        select_coaching_sessions("c-sam", 2024, 1, [session], issues=issues)

        assert issues == []


class TestTagRole:
    """Tests for choosing the displayed role."""

    def test_lead_wins_by_default(self, make_session):
        session = make_session("s1", "2024-01-09", "09:00", "10:00",
                               lead="c-sam", second="c-sam", helper="c-sam")

        assert tag_role(session, "c-sam") is CoachingRole.LEAD

    def test_priority_can_be_overridden(self, make_session):
        session = make_session("s1", "2024-01-09", "09:00", "10:00", lead="c-sam", helper="c-sam")
        priority = (CoachingRole.HELPER, CoachingRole.SECOND, CoachingRole.LEAD)

        assert tag_role(session, "c-sam", priority) is CoachingRole.HELPER

    def test_no_role_for_writer_only(self, make_session):
        session = make_session("s1", "2024-01-09", "09:00", "10:00", writer="c-sam")

        assert tag_role(session, "c-sam") is None


class TestSelectWrittenSessions:
    """Tests for picking sessions the coach wrote."""

    def test_counts_writer_regardless_of_coaching_role(self, make_session):
        sessions = [
            make_session("s1", "2024-01-09", "09:00", "10:00", writer="c-sam"),
            make_session("s2", "2024-01-10", "09:00", "10:00", lead="c-sam", writer="c-sam"),
            make_session("s3", "2024-01-11", "09:00", "10:00", lead="c-sam"),
        ]

        written = select_written_sessions("c-sam", 2024, 1, sessions)

        assert [s.id for s in written] == ["s1", "s2"]

    def test_other_months_excluded(self, january_sessions):
        written = select_written_sessions("c-sam", 2024, 2, january_sessions)

        assert written == []


class TestSelectCompetitionBlocks:
    """Tests for per-block competition selection."""

    def test_blocks_split_across_months(self, straddling_assignment):
        january = select_competition_blocks("c-sam", 2024, 1, [straddling_assignment])
        february = select_competition_blocks("c-sam", 2024, 2, [straddling_assignment])

        assert [b.block.date for b in january] == ["2024-01-31"]
        assert [b.block.date for b in february] == ["2024-02-01", "2024-02-02"]
        assert [b.block_index for b in february] == [1, 2]

    def test_other_coaches_assignment_ignored(self, january_assignment):
        assert select_competition_blocks("c-other", 2024, 1, [january_assignment]) == []

    def test_repeated_assignment_counted_once(self, january_assignment):
        selected = select_competition_blocks(
            "c-sam", 2024, 1, [january_assignment, january_assignment]
        )

        assert len(selected) == 1

    def test_malformed_block_date_reported_with_block_index(self):
        issues = []
        assignment = CoachAssignment(
            id="a1", competition_id="m1", coach_id="c-sam",
            time_blocks=(
                TimeBlock("2024-01-20", "08:00", "10:00"),
                TimeBlock("20/01/2024", "13:00", "15:00"),
            ),
        )

        selected = select_competition_blocks("c-sam", 2024, 1, [assignment], issues=issues)

        assert len(selected) == 1
        assert issues[0].record_type == "competition_block"
        assert issues[0].record_id == "a1#1"


# ---------------------------------------------------------------------------
# Invoice Tests
# ---------------------------------------------------------------------------

class TestInvoiceTotals:
    """Tests for hours and earnings arithmetic."""

    def test_level_two_month(self, january_invoice):
        """
        1.5h lead session + 4h competition at £17, plus one set written
        at £8.50: £93.50 + £8.50 = £102.00.
        """
        data = january_invoice.to_dict()

        assert data["rates"] == {"hourly_rate": 17.0, "session_writing_rate": 8.5}
        assert data["coaching"]["total_hours"] == 5.5
        assert data["coaching"]["breakdown"] == {"session_hours": 1.5, "competition_hours": 4.0}
        assert data["coaching"]["earnings"] == 93.5
        assert data["session_writing"]["count"] == 1
        assert data["session_writing"]["earnings"] == 8.5
        assert data["totals"] == {
            "total_earnings": 102.0,
            "total_hours": 5.5,
            "total_sessions_written": 1,
        }

    def test_line_items_behind_the_totals(self, january_invoice):
        data = january_invoice.to_dict()

        assert data["coaching"]["sessions"][0]["session_id"] == "s-lead"
        assert data["coaching"]["sessions"][0]["role"] == "lead"
        assert data["coaching"]["sessions"][0]["duration"] == 1.5
        assert data["coaching"]["competitions"][0]["competition_name"] == "County Championships"
        assert data["session_writing"]["sessions"][0]["session_id"] == "s-written"

    def test_multiple_roles_pay_once(self, engine, coach, make_session):
        """Lead, second and helper in one session is still one hour of pay."""
        session = make_session("s1", "2024-01-09", "09:00", "10:00",
                               lead="c-sam", second="c-sam", helper="c-sam", writer="c-sam")

        invoice = engine.invoice_for(coach, 2024, 1, [session], [])

        assert invoice.coaching.total_hours == 1.0
        assert invoice.coaching.earnings == 17.0
        assert invoice.session_writing.count == 1
        assert invoice.totals.total_earnings == 25.5

    def test_totals_are_sum_of_categories(self, engine, make_session):
        """Thirds of an hour do not round-trip exactly, so compare unrounded."""
        coach = Coach(id="c-sam", qualification_level="Level 3")
        sessions = [
            make_session(f"s{day}", f"2024-01-{day:02d}", "09:00", "09:20", lead="c-sam", writer="c-sam")
            for day in range(1, 4)
        ]

        invoice = engine.invoice_for(coach, 2024, 1, sessions, [])

        assert invoice.coaching.total_hours == pytest.approx(1.0)
        assert invoice.coaching.earnings == pytest.approx(invoice.coaching.total_hours * 20.0)
        assert invoice.totals.total_earnings == pytest.approx(
            invoice.coaching.earnings + invoice.session_writing.earnings
        )
        assert invoice.to_dict()["totals"]["total_earnings"] == 50.0

    def test_unqualified_coach_earns_zero(self, engine, volunteer, make_session):
        session = make_session("s1", "2024-01-09", "09:00", "11:00", lead="c-vol", writer="c-vol")

        invoice = engine.invoice_for(volunteer, 2024, 1, [session], [])

        assert invoice.coaching.total_hours == 2.0
        assert invoice.totals.total_earnings == 0.0
        assert invoice.has_activity

    def test_unknown_tier_is_fatal(self, engine):
        coach = Coach(id="c-x", qualification_level="Level 9")

        with pytest.raises(UnknownQualificationTier):
            engine.invoice_for(coach, 2024, 1, [], [])

    def test_same_inputs_same_invoice(self, engine, coach, january_sessions, january_assignment):
        first = engine.invoice_for(coach, 2024, 1, january_sessions, [january_assignment])
        second = engine.invoice_for(coach, 2024, 1, january_sessions, [january_assignment])

        assert first == second


class TestInvoiceEdgeCases:
    """Tests for empty months, boundaries and bad records."""

    def test_empty_month_is_a_zero_invoice(self, engine, coach, january_sessions, january_assignment):
        invoice = engine.invoice_for(coach, 2024, 3, january_sessions, [january_assignment])

        assert not invoice.has_activity
        assert invoice.is_complete
        assert invoice.totals.total_earnings == 0.0
        assert invoice.totals.total_hours == 0.0
        assert invoice.coaching.sessions == []

    def test_competition_hours_follow_block_dates(self, engine, coach, straddling_assignment):
        january = engine.invoice_for(coach, 2024, 1, [], [straddling_assignment])
        february = engine.invoice_for(coach, 2024, 2, [], [straddling_assignment])

        assert january.coaching.competition_hours == 2.0
        assert february.coaching.competition_hours == 4.0

    def test_invalid_time_range_skipped_and_reported(self, engine, coach, make_session):
        sessions = [
            make_session("s-ok", "2024-01-09", "09:00", "10:00", lead="c-sam"),
            make_session("s-bad", "2024-01-10", "10:00", "09:00", lead="c-sam"),
        ]

        invoice = engine.invoice_for(coach, 2024, 1, sessions, [])

        assert invoice.coaching.session_hours == 1.0
        assert [line.session_id for line in invoice.coaching.sessions] == ["s-ok"]
        assert not invoice.is_complete
        assert invoice.issues[0].record_id == "s-bad"
        assert invoice.issues[0].error == "InvalidTimeRange"

    def test_invalid_competition_block_skipped(self, engine, coach):
        assignment = CoachAssignment(
            id="a1", competition_id="m1", coach_id="c-sam",
            time_blocks=(
                TimeBlock("2024-01-20", "08:00", "10:00"),
                TimeBlock("2024-01-21", "14:00", "14:00"),
            ),
        )

        invoice = engine.invoice_for(coach, 2024, 1, [], [assignment])

        assert invoice.coaching.competition_hours == 2.0
        assert invoice.issues[0].record_id == "a1#1"

    def test_bad_date_reported_once_for_coach_and_writer(self, engine, coach, make_session):
        session = make_session("s1", "not-a-date", "09:00", "10:00", lead="c-sam", writer="c-sam")

        invoice = engine.invoice_for(coach, 2024, 1, [session], [])

        assert len(invoice.issues) == 1
        assert invoice.to_dict()["issues"][0]["error"] == "MalformedDate"

    def test_lines_sorted_by_date(self, engine, coach, make_session):
        sessions = [
            make_session("s2", "2024-01-20", "09:00", "10:00", lead="c-sam"),
            make_session("s1", "2024-01-05", "18:00", "19:00", lead="c-sam"),
            make_session("s3", "2024-01-05", "07:00", "08:00", lead="c-sam"),
        ]

        invoice = engine.invoice_for(coach, 2024, 1, sessions, [])

        assert [line.session_id for line in invoice.coaching.sessions] == ["s3", "s1", "s2"]

    def test_single_digit_hours_sort_by_clock_value(self, engine, coach, make_session):
        """Unpadded 9:00 comes before 10:00, unlike a plain text comparison."""
        sessions = [
            make_session("s-late", "2024-03-05", "10:00", "11:00", lead="c-sam"),
            make_session("s-early", "2024-03-05", "9:00", "9:45", lead="c-sam"),
        ]
        assignment = CoachAssignment(
            id="a1", competition_id="m1", coach_id="c-sam",
            time_blocks=(
                TimeBlock("2024-03-09", "13:00", "15:00"),
                TimeBlock("2024-03-09", "8:30", "11:00"),
            ),
        )

        invoice = engine.invoice_for(coach, 2024, 3, sessions, [assignment])

        assert [line.start_time for line in invoice.coaching.sessions] == ["9:00", "10:00"]
        assert [line.start_time for line in invoice.coaching.competitions] == ["8:30", "13:00"]

    def test_malformed_date_marks_every_month_incomplete(self, engine, coach, make_session):
        """The record's month is unknowable, so no month can claim to be complete."""
        sessions = [
            make_session("s-ok", "2024-03-05", "09:00", "10:00", lead="c-sam"),
            make_session("s-slashes", "2023/07/01", "09:00", "10:00", lead="c-sam"),
        ]

        march = engine.invoice_for(coach, 2024, 3, sessions, [])
        april = engine.invoice_for(coach, 2024, 4, sessions, [])

        assert not march.is_complete
        assert not april.is_complete
        assert [issue.record_id for issue in march.issues] == ["s-slashes"]
        assert march.coaching.session_hours == 1.0

    def test_builder_takes_issues_from_selection(self, coach, rate_table):
        invoice = build_invoice(
            coach=coach,
            year=2024,
            month=1,
            coaching_sessions=[],
            writing_sessions=[],
            competition_blocks=[],
            rate_table=rate_table,
        )

        assert invoice.is_complete
        assert invoice.coach_name == "Sam Reed"
        assert invoice.period.label == "January 2024"


class TestAvailableMonthsViaEngine:
    """Tests for the engine's month selector."""

    def test_lists_months_newest_first(self, engine, january_sessions, straddling_assignment):
        months = engine.available_months("c-sam", january_sessions, [straddling_assignment])

        assert [m.key for m in months] == ["2024-02", "2024-01"]


# ---------------------------------------------------------------------------
# Export Tests
# ---------------------------------------------------------------------------

class TestExport:
    """Tests for the CSV summary and the line-item table."""

    def test_csv_summary(self, january_invoice):
        csv_text = to_csv(january_invoice)
        lines = csv_text.splitlines()

        assert lines[0] == "Invoice Data"
        assert "Coach,Sam Reed" in lines
        assert "Month,January 2024" in lines
        assert "Hourly Rate,£17.00" in lines
        assert "Total Hours,5.50" in lines
        assert "Sessions Written,1" in lines
        assert lines[-1] == "Total Earnings,£102.00"

    def test_currency_symbol_is_configurable(self, january_invoice):
        rows = export_rows(january_invoice, currency_symbol="$")

        assert ["Total Earnings", "$102.00"] in rows

    def test_filename_carries_the_month(self, january_invoice):
        assert export_filename(january_invoice) == "invoice-2024-01.csv"

    def test_display_rows_in_date_order(self, january_invoice):
        rows = display_rows(january_invoice)

        assert len(DISPLAY_HEADERS) == len(rows[0])
        assert [row[1] for row in rows] == ["Session", "Session Written", "Competition"]
        assert rows[0][2] == "Junior Squad (lead coach)"
        assert rows[0][3] == "09:00-10:30"
        assert rows[1][4] == ""
        assert rows[2][4] == "4.00"

    def test_display_rows_order_unpadded_times(self, engine, coach, make_session):
        sessions = [
            make_session("s-late", "2024-03-05", "10:00", "11:00", lead="c-sam"),
            make_session("s-early", "2024-03-05", "9:00", "9:45", lead="c-sam", writer="c-sam"),
        ]

        rows = display_rows(engine.invoice_for(coach, 2024, 3, sessions, []))

        assert [(row[1], row[3]) for row in rows] == [
            ("Session Written", ""),
            ("Session", "9:00-9:45"),
            ("Session", "10:00-11:00"),
        ]
