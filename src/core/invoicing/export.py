"""
Flat export and display views of an invoice.

Both read from Invoice.to_dict(), so they show exactly the rounded figures
the API returns.
"""

import csv
import io

from .models import Invoice
from .timing import parse_clock_time


def _money(value: float, currency_symbol: str) -> str:
    return f"{currency_symbol}{value:.2f}"


def _hours(value: float) -> str:
    return f"{value:.2f}"


def export_rows(invoice: Invoice, currency_symbol: str = "£") -> list[list[str]]:
    """One row per figure, grouped by category with blank separator rows."""
    data = invoice.to_dict()
    coaching = data["coaching"]
    writing = data["session_writing"]

    return [
        ["Invoice Data"],
        ["Coach", data["coach_name"]],
        ["Qualification Level", data["qualification_level"]],
        ["Month", invoice.period.label],
        [],
        ["Rates"],
        ["Hourly Rate", _money(data["rates"]["hourly_rate"], currency_symbol)],
        ["Session Writing Rate", _money(data["rates"]["session_writing_rate"], currency_symbol)],
        [],
        ["Coaching Hours"],
        ["Total Hours", _hours(coaching["total_hours"])],
        ["Session Hours", _hours(coaching["breakdown"]["session_hours"])],
        ["Competition Hours", _hours(coaching["breakdown"]["competition_hours"])],
        ["Coaching Earnings", _money(coaching["earnings"], currency_symbol)],
        [],
        ["Session Writing"],
        ["Sessions Written", str(writing["count"])],
        ["Writing Earnings", _money(writing["earnings"], currency_symbol)],
        [],
        ["Total Earnings", _money(data["totals"]["total_earnings"], currency_symbol)],
    ]


def to_csv(invoice: Invoice, currency_symbol: str = "£") -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(export_rows(invoice, currency_symbol))
    return buffer.getvalue()


def export_filename(invoice: Invoice) -> str:
    return f"invoice-{invoice.period.key}.csv"


DISPLAY_HEADERS = ["Date", "Type", "Description", "Time", "Hours"]


def display_rows(invoice: Invoice) -> list[list[str]]:
    """
    Every line item in one table, ordered by date then start time.

    Written sessions have no hours of their own; their Time and Hours cells
    are blank and they sort ahead of timed rows on the same date.
    """
    data = invoice.to_dict()
    keyed = []

    for line in data["coaching"]["sessions"]:
        keyed.append(((line["session_date"], parse_clock_time(line["start_time"])), [
            line["session_date"],
            "Session",
            f"{line['squad_name'] or line['squad_id']} ({line['role']} coach)",
            f"{line['start_time']}-{line['end_time']}",
            _hours(line["duration"]),
        ]))

    for line in data["coaching"]["competitions"]:
        keyed.append(((line["coaching_date"], parse_clock_time(line["start_time"])), [
            line["coaching_date"],
            "Competition",
            line["competition_name"] or line["competition_id"],
            f"{line['start_time']}-{line['end_time']}",
            _hours(line["duration"]),
        ]))

    for line in data["session_writing"]["sessions"]:
        keyed.append(((line["session_date"], -1.0), [
            line["session_date"],
            "Session Written",
            line["squad_name"] or line["squad_id"],
            "",
            "",
        ]))

    keyed.sort(key=lambda item: item[0])
    return [row for _, row in keyed]
