#!/usr/bin/env python3
"""
Generate a coach's monthly invoice from a JSON snapshot.

Useful for payroll runs and for checking figures without the API. The
snapshot holds the same three collections the API loads from Snowflake:

    {
      "coaches": [{"id": "c1", "first_name": "Sam", "last_name": "Reed",
                   "qualification_level": "Level 2"}],
      "sessions": [{"id": "s1", "date": "2024-01-09", "start_time": "09:00",
                    "end_time": "10:30", "squad_id": "sq1",
                    "lead_coach_id": "c1", "set_writer_id": "c2"}],
      "assignments": [{"id": "a1", "competition_id": "m1", "coach_id": "c1",
                       "time_blocks": [{"date": "2024-01-20",
                                        "start_time": "08:00",
                                        "end_time": "12:00"}]}]
    }

Usage:
    python scripts/generate_invoice.py snapshot.json --coach c1 --list-months
    python scripts/generate_invoice.py snapshot.json --coach c1 --year 2024 --month 1
    python scripts/generate_invoice.py snapshot.json --coach c1 --year 2024 --month 1 --format csv

Rate overrides and the currency symbol come from the same settings as the
API (.env or environment).
"""

import json
import sys
from pathlib import Path

# Add project root to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from src.config.settings import get_settings
from src.core.invoicing import (
    Coach,
    CoachAssignment,
    InvoiceEngine,
    InvoicingError,
    RateTable,
    Session,
    TimeBlock,
)
from src.core.invoicing.export import DISPLAY_HEADERS, display_rows, to_csv


def load_snapshot(filepath: Path) -> tuple[list[Coach], list[Session], list[CoachAssignment]]:
    """Read coaches, sessions and assignments from a snapshot file."""
    with open(filepath, 'r', encoding='utf-8') as f:
        data = json.load(f)

    coaches = [Coach(**coach) for coach in data.get('coaches', [])]
    sessions = [Session(**session) for session in data.get('sessions', [])]
    assignments = [
        CoachAssignment(
            **{key: value for key, value in assignment.items() if key != 'time_blocks'},
            time_blocks=tuple(TimeBlock(**block) for block in assignment.get('time_blocks', [])),
        )
        for assignment in data.get('assignments', [])
    ]

    return coaches, sessions, assignments


def print_table(invoice) -> None:
    rows = [DISPLAY_HEADERS] + display_rows(invoice)
    widths = [max(len(row[i]) for row in rows) for i in range(len(DISPLAY_HEADERS))]
    for row in rows:
        print("  ".join(cell.ljust(width) for cell, width in zip(row, widths)))


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Generate a monthly coaching invoice')
    parser.add_argument('snapshot', type=Path, help='JSON snapshot of coaches, sessions and assignments')
    parser.add_argument('--coach', required=True, help='Coach ID')
    parser.add_argument('--year', type=int, help='Invoice year (YYYY)')
    parser.add_argument('--month', type=int, help='Invoice month (1-12)')
    parser.add_argument('--format', choices=['json', 'csv', 'table'], default='json')
    parser.add_argument('--list-months', action='store_true', help='List months with activity and exit')
    args = parser.parse_args()

    if not args.snapshot.exists():
        print(f"ERROR: Cannot find {args.snapshot}")
        sys.exit(1)

    coaches, sessions, assignments = load_snapshot(args.snapshot)

    settings = get_settings()
    engine = InvoiceEngine(RateTable.with_overrides(
        settings.hourly_rate_overrides,
        writing_fraction=settings.session_writing_fraction,
    ))

    if args.list_months:
        months = engine.available_months(args.coach, sessions, assignments)
        if not months:
            print("No coaching activity found.")
        for month in months:
            print(f"{month.key}  {month.label}")
        sys.exit(0)

    if args.year is None or args.month is None:
        print("ERROR: --year and --month are required unless --list-months is given")
        sys.exit(1)

    coach = next((c for c in coaches if c.id == args.coach), None)
    if coach is None:
        print(f"ERROR: Coach {args.coach} not found in snapshot")
        sys.exit(1)

    try:
        invoice = engine.invoice_for(coach, args.year, args.month, sessions, assignments)
    except (InvoicingError, ValueError) as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    if args.format == 'csv':
        sys.stdout.write(to_csv(invoice, currency_symbol=settings.currency_symbol))
    elif args.format == 'table':
        print_table(invoice)
    else:
        print(json.dumps(invoice.to_dict(), indent=2))

    for issue in invoice.issues:
        print(f"[WARN] Skipped {issue.record_type} {issue.record_id}: {issue.message}", file=sys.stderr)

    sys.exit(0 if invoice.is_complete else 2)


if __name__ == '__main__':
    main()
