"""Summaries of financial events for calendar and dashboard views.

All functions are pure. Amounts are summed as Decimals, so results do not
depend on the order of the input list.

Settled and Reconciled events count as settled money, Pending and Overdue
as planned money. Cancelled events are counted but never contribute to
totals.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from almanac.types import EventStatus, FinancialEvent, RefType
from almanac.utils.formatting import month_name

ZERO = Decimal("0")


@dataclass(frozen=True)
class DailySummary:
    day: date
    receivable_total: Decimal = ZERO
    payable_total: Decimal = ZERO
    compensation_total: Decimal = ZERO
    net_balance: Decimal = ZERO
    total_events: int = 0
    counts: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "day": self.day.isoformat(),
            "receivable_total": str(self.receivable_total),
            "payable_total": str(self.payable_total),
            "compensation_total": str(self.compensation_total),
            "net_balance": str(self.net_balance),
            "total_events": self.total_events,
            "counts": {k.value: v for k, v in self.counts.items()},
        }


@dataclass
class MonthlySummary:
    month: int
    month_name: str
    total_events: int = 0
    planned_receivable: Decimal = ZERO
    settled_receivable: Decimal = ZERO
    planned_payable: Decimal = ZERO
    settled_payable: Decimal = ZERO
    overdue_count: int = 0

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "month_name": self.month_name,
            "total_events": self.total_events,
            "planned_receivable": str(self.planned_receivable),
            "settled_receivable": str(self.settled_receivable),
            "planned_payable": str(self.planned_payable),
            "settled_payable": str(self.settled_payable),
            "overdue_count": self.overdue_count,
        }


@dataclass(frozen=True)
class CategorySummary:
    category: str
    status: EventStatus
    count: int
    total_amount: Decimal
    event_ids: tuple = ()

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "status": self.status.value,
            "count": self.count,
            "total_amount": str(self.total_amount),
            "event_ids": list(self.event_ids),
        }


@dataclass(frozen=True)
class FinancialSummary:
    total_events: int = 0
    receivables_planned: Decimal = ZERO
    receivables_settled: Decimal = ZERO
    payables_planned: Decimal = ZERO
    payables_settled: Decimal = ZERO
    projected_balance: Decimal = ZERO
    settled_balance: Decimal = ZERO
    overdue_count: int = 0

    def to_dict(self) -> dict:
        return {
            "total_events": self.total_events,
            "receivables_planned": str(self.receivables_planned),
            "receivables_settled": str(self.receivables_settled),
            "payables_planned": str(self.payables_planned),
            "payables_settled": str(self.payables_settled),
            "projected_balance": str(self.projected_balance),
            "settled_balance": str(self.settled_balance),
            "overdue_count": self.overdue_count,
        }


def _bucket(event: FinancialEvent) -> str | None:
    """'settled', 'planned', or None for cancelled events."""
    if event.status == EventStatus.CANCELLED:
        return None
    return "settled" if event.status.is_settled else "planned"


def daily_summary(events: Iterable[FinancialEvent], day: date) -> DailySummary:
    """Totals and per-type counts for events falling on one day."""
    totals = {ref_type: ZERO for ref_type in RefType}
    counts = {ref_type: 0 for ref_type in RefType}
    total_events = 0
    for event in events:
        if event.expected_date != day:
            continue
        total_events += 1
        counts[event.ref_type] += 1
        if _bucket(event) is not None:
            totals[event.ref_type] += event.amount

    return DailySummary(
        day=day,
        receivable_total=totals[RefType.RECEIVABLE],
        payable_total=totals[RefType.PAYABLE],
        compensation_total=totals[RefType.COMPENSATION],
        net_balance=totals[RefType.RECEIVABLE] - totals[RefType.PAYABLE],
        total_events=total_events,
        counts=counts,
    )


def monthly_summary(events: Iterable[FinancialEvent], year: int, locale: str = "pt_BR") -> list[MonthlySummary]:
    """Twelve buckets (index 0 = January) of planned/settled totals for a year."""
    months = [MonthlySummary(month=i + 1, month_name=month_name(i + 1, locale)) for i in range(12)]
    for event in events:
        if event.expected_date.year != year:
            continue
        bucket = months[event.expected_date.month - 1]
        bucket.total_events += 1
        if event.is_overdue:
            bucket.overdue_count += 1

        kind = _bucket(event)
        if kind is None:
            continue
        if event.ref_type == RefType.RECEIVABLE:
            if kind == "settled":
                bucket.settled_receivable += event.amount
            else:
                bucket.planned_receivable += event.amount
        elif event.ref_type == RefType.PAYABLE:
            if kind == "settled":
                bucket.settled_payable += event.amount
            else:
                bucket.planned_payable += event.amount
    return months


def category_summary(events: Iterable[FinancialEvent]) -> list[CategorySummary]:
    """Count and total per (category, status), sorted by category then status."""
    groups: dict[tuple[str, EventStatus], list[FinancialEvent]] = defaultdict(list)
    for event in events:
        category = event.category or event.ref_type.value
        groups[(category, event.status)].append(event)

    result = []
    for (category, status), members in sorted(groups.items(), key=lambda item: (item[0][0], item[0][1].value)):
        result.append(
            CategorySummary(
                category=category,
                status=status,
                count=len(members),
                total_amount=sum((e.amount for e in members), ZERO),
                event_ids=tuple(sorted(f"{e.ref_type.value}:{e.id}" for e in members)),
            )
        )
    return result


def overall_summary(events: Iterable[FinancialEvent]) -> FinancialSummary:
    """Planned vs settled totals and balances for a set of events."""
    total_events = 0
    overdue_count = 0
    sums = defaultdict(lambda: ZERO)
    for event in events:
        total_events += 1
        if event.is_overdue:
            overdue_count += 1
        kind = _bucket(event)
        if kind is None or event.ref_type == RefType.COMPENSATION:
            continue
        sums[(event.ref_type, kind)] += event.amount

    receivables_planned = sums[(RefType.RECEIVABLE, "planned")]
    receivables_settled = sums[(RefType.RECEIVABLE, "settled")]
    payables_planned = sums[(RefType.PAYABLE, "planned")]
    payables_settled = sums[(RefType.PAYABLE, "settled")]

    return FinancialSummary(
        total_events=total_events,
        receivables_planned=receivables_planned,
        receivables_settled=receivables_settled,
        payables_planned=payables_planned,
        payables_settled=payables_settled,
        projected_balance=(receivables_planned + receivables_settled) - (payables_planned + payables_settled),
        settled_balance=receivables_settled - payables_settled,
        overdue_count=overdue_count,
    )
