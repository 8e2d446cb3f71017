"""
Status reconciler - self-healing pass over receivable/payable statuses.

Rule: a receivable or payable that is neither Cancelled nor Reconciled is
Settled when its expected date is on or before today, Pending otherwise.
The rule overrides whatever status was persisted. When it promotes an event
to Settled it assumes on-time settlement (actual_date = expected_date).

Corrections are applied one at a time; a failing item is logged and
reported, and the batch moves on.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from almanac.errors import AlmanacError
from almanac.store import EventStore
from almanac.types import (
    Correction,
    EventStatus,
    FailedCorrection,
    FinancialEvent,
    RefType,
    ReconciliationReport,
)
from almanac.utils.dates import today as local_today

logger = logging.getLogger(__name__)

RECONCILED_TYPES = frozenset({RefType.RECEIVABLE, RefType.PAYABLE})
EXEMPT_STATUSES = frozenset({EventStatus.CANCELLED, EventStatus.RECONCILED})


def expected_status(event: FinancialEvent, today: date) -> Optional[EventStatus]:
    """Status the event should have, or None when the event is exempt."""
    if event.ref_type not in RECONCILED_TYPES or event.status in EXEMPT_STATUSES:
        return None
    return EventStatus.SETTLED if event.expected_date <= today else EventStatus.PENDING


def plan_corrections(events: Iterable[FinancialEvent], today: date) -> list[Correction]:
    """Minimal set of corrections that bring the batch in line with the date rule."""
    corrections = []
    seen: set[tuple[RefType, str]] = set()
    for event in events:
        if event.key in seen:
            continue
        seen.add(event.key)

        target = expected_status(event, today)
        if target is None or target == event.status:
            continue
        corrections.append(
            Correction(
                id=event.id,
                ref_type=event.ref_type,
                from_status=event.status,
                to_status=target,
                actual_date=event.expected_date if target == EventStatus.SETTLED else None,
            )
        )
    return corrections


class StatusReconciler:
    """Applies date-based status corrections against an event store."""

    def __init__(self, store: EventStore, today=None):
        self._store = store
        self._today = today or local_today

    async def apply(self, corrections: list[Correction]) -> ReconciliationReport:
        """Apply corrections sequentially. Per-item failures are collected, not raised."""
        report = ReconciliationReport(corrections=list(corrections))
        for correction in corrections:
            try:
                updated = await self._store.mutate(
                    correction.id,
                    correction.ref_type,
                    correction.to_status,
                    settled_date=correction.actual_date,
                )
            except AlmanacError as e:
                logger.error(f"Failed to correct {correction.ref_type.value} {correction.id}: {e}")
                report.failed.append(FailedCorrection(correction.id, correction.ref_type, str(e)))
                continue
            except Exception as e:
                logger.exception(f"Unexpected error correcting {correction.ref_type.value} {correction.id}")
                report.failed.append(FailedCorrection(correction.id, correction.ref_type, str(e) or type(e).__name__))
                continue

            if not updated:
                logger.error(f"Failed to correct {correction.ref_type.value} {correction.id}: record not found")
                report.failed.append(FailedCorrection(correction.id, correction.ref_type, "not_found"))
                continue

            report.corrected += 1
            logger.debug(
                f"Corrected {correction.ref_type.value} {correction.id}: "
                f"{correction.from_status.value} -> {correction.to_status.value}"
            )

        if corrections:
            logger.info(f"Reconciliation finished: {report.corrected} corrected, {len(report.failed)} failed")
        return report

    async def reconcile_batch(
        self, events: Iterable[FinancialEvent], today: Optional[date] = None
    ) -> ReconciliationReport:
        """Plan and apply corrections for a batch of events."""
        corrections = plan_corrections(events, today or self._today())
        return await self.apply(corrections)
