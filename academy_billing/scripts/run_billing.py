"""
Run (or preview) the monthly billing for a date. Safe to re-run: students already
billed for the month are skipped.

Usage: python -m academy_billing.scripts.run_billing [--date YYYY-MM-DD] [--preview] [--create-tables]
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from academy_billing.api.v1.billing.service import preview_billing, run_billing
from academy_billing.core.config import settings
from academy_billing.core.enums import BillingOutcome
from academy_billing.core.logging import configure_logging
from academy_billing.db.session import AsyncSessionLocal, create_tables, engine


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Monthly student fee billing")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Billing reference date (YYYY-MM-DD); defaults to today's UTC date",
    )
    parser.add_argument("--preview", action="store_true", help="Show what would be billed without writing")
    parser.add_argument("--create-tables", action="store_true", help="Create missing tables before running")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    run_date = args.date or datetime.now(timezone.utc).date()
    try:
        if args.create_tables:
            await create_tables()

        if args.preview:
            async with AsyncSessionLocal() as session:
                preview = await preview_billing(session, run_date)
            print(f"Preview for {preview.month_year}: {preview.students_to_bill} student(s) to bill, "
                  f"{preview.unbillable} without a fee catalog entry, total {preview.total_to_bill}")
            for item in preview.items:
                amount = item.fee_amount if item.fee_amount is not None else "-"
                print(f"  {item.student_name} ({item.student_id}): {amount}  {item.reason}")
            return 0

        summary = await run_billing(AsyncSessionLocal, run_date)
        print(f"Billing {summary.month_year}: processed={summary.processed} skipped={summary.skipped} "
              f"unbillable={summary.unbillable} failed={summary.failed} total_billed={summary.total_billed}")
        for result in summary.results:
            if result.outcome == BillingOutcome.FAILED:
                print(f"  FAILED {result.student_id}: {result.reason}", file=sys.stderr)
        return 1 if summary.failed else 0
    finally:
        await engine.dispose()


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    configure_logging(settings.log_level)
    sys.exit(asyncio.run(_run(args)))


if __name__ == "__main__":
    main()
