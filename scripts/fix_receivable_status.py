"""
One-off script: analyse and fix receivable statuses against their expected dates.

Rule: expected_date <= today -> Received, expected_date > today -> Pending.
Cancelled and reconciled receivables are left alone. Receivables promoted to
Received get actual_date = expected_date.

Run from repo root with venv active:

    python scripts/fix_receivable_status.py --dry-run
    python scripts/fix_receivable_status.py --unit U1
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from almanac import Database, EventStore, RefType, StatusReconciler, plan_corrections
from almanac.types import DateRange, EventFilters
from almanac.utils.dates import parse_date
from almanac.utils.dates import today as local_today

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def load_receivables(db: Database, store: EventStore, unit_id: str | None) -> list:
    """All active receivables, projected into events."""
    rows = await db.get_active_obligations(RefType.RECEIVABLE.value, unit_id)
    units = sorted({row["unit_id"] for row in rows})
    events = []
    for unit in units:
        unit_rows = [row for row in rows if row["unit_id"] == unit]
        start = min(row["expected_date"] for row in unit_rows)
        end = max(row["expected_date"] for row in unit_rows)
        events.extend(
            await store.query(
                unit,
                DateRange(parse_date(start), parse_date(end)),
                EventFilters.build(types=[RefType.RECEIVABLE]),
            )
        )
    return events


async def main() -> int:
    parser = argparse.ArgumentParser(description="Fix receivable statuses based on expected dates")
    parser.add_argument("--dry-run", action="store_true", help="Only report, do not write")
    parser.add_argument("--unit", default=None, help="Restrict to one unit id")
    parser.add_argument("--db", default=None, help="Database path (default: ALMANAC_DB_PATH)")
    args = parser.parse_args()

    db = Database(args.db)
    await db.connect()
    try:
        today = local_today()
        store = EventStore(db)
        logger.info(f"Today: {today.isoformat()}")

        receivables = await load_receivables(db, store, args.unit)
        logger.info(f"Active receivables: {len(receivables)}")

        corrections = plan_corrections(receivables, today)
        logger.info(f"Correct status: {len(receivables) - len(corrections)}")
        logger.info(f"Incorrect status: {len(corrections)}")

        if not corrections:
            logger.info("All receivables have the correct status")
            return 0

        for index, correction in enumerate(corrections, start=1):
            logger.info(
                f"{index}. {correction.id} | {correction.from_status.value} -> {correction.to_status.value}"
            )

        if args.dry_run:
            logger.info("Dry run: nothing written")
            return 0

        report = await StatusReconciler(store, today=lambda: today).apply(corrections)
        logger.info(f"Corrected: {report.corrected}")
        logger.info(f"Errors: {len(report.failed)}")
        logger.info(f"Processed: {report.attempted}")
        return 1 if report.partial_failure else 0
    finally:
        await db.close()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
