"""Core types for financial events.

One unified status state machine is shared by the three obligation kinds.
Receivables and payables persist different labels for the same semantic
state, so the vocabulary table below is the only place those labels live.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import MAXYEAR, MINYEAR, date
from decimal import Decimal
from enum import Enum
from typing import Optional

from almanac.errors import ValidationError


class RefType(str, Enum):
    """Kind of obligation an event projects."""

    RECEIVABLE = "Receivable"
    PAYABLE = "Payable"
    COMPENSATION = "Compensation"

    @classmethod
    def parse(cls, value: "RefType | str") -> "RefType":
        if isinstance(value, RefType):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == normalized or member.name.lower() == normalized:
                return member
        # Legacy names used by the revenue/expense tables
        if normalized in ("revenue", "receber"):
            return cls.RECEIVABLE
        if normalized in ("expense", "pagar"):
            return cls.PAYABLE
        if normalized in ("compensacao", "compensação"):
            return cls.COMPENSATION
        raise ValidationError(f"Unknown event type: {value!r}")


class EventStatus(str, Enum):
    """Unified lifecycle status of a financial event."""

    PENDING = "Pending"
    SETTLED = "Settled"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"
    RECONCILED = "Reconciled"

    @classmethod
    def parse(cls, value: "EventStatus | str") -> "EventStatus":
        if isinstance(value, EventStatus):
            return value
        normalized = str(value or "").strip().lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValidationError(f"Unknown event status: {value!r}")

    @property
    def is_closed(self) -> bool:
        return self in CLOSED_STATUSES

    @property
    def is_settled(self) -> bool:
        return self in SETTLED_STATUSES


CLOSED_STATUSES = frozenset({EventStatus.SETTLED, EventStatus.CANCELLED, EventStatus.RECONCILED})
SETTLED_STATUSES = frozenset({EventStatus.SETTLED, EventStatus.RECONCILED})
OPEN_STATUSES = frozenset({EventStatus.PENDING, EventStatus.OVERDUE})

# Persisted labels per (ref_type, status). The first label is the one written.
STATUS_LABELS: dict[RefType, dict[EventStatus, tuple[str, ...]]] = {
    RefType.RECEIVABLE: {
        EventStatus.PENDING: ("Pendente", "Previsto", "Pending"),
        EventStatus.SETTLED: ("Recebido", "Received", "Efetivo"),
        EventStatus.OVERDUE: ("Atrasado", "Overdue"),
        EventStatus.CANCELLED: ("Cancelado", "Cancelled"),
        EventStatus.RECONCILED: ("Conciliado", "Reconciled"),
    },
    RefType.PAYABLE: {
        EventStatus.PENDING: ("Pendente", "Previsto", "Pending"),
        EventStatus.SETTLED: ("Pago", "Paid", "Efetivo"),
        EventStatus.OVERDUE: ("Atrasado", "Overdue"),
        EventStatus.CANCELLED: ("Cancelado", "Cancelled"),
        EventStatus.RECONCILED: ("Conciliado", "Reconciled"),
    },
    RefType.COMPENSATION: {
        EventStatus.PENDING: ("Previsto", "Pendente", "Pending"),
        EventStatus.SETTLED: ("Efetivo", "Settled"),
        EventStatus.OVERDUE: ("Atrasado", "Overdue"),
        EventStatus.CANCELLED: ("Cancelado", "Cancelled"),
        EventStatus.RECONCILED: ("Conciliado", "Reconciled"),
    },
}

_LABEL_LOOKUP: dict[RefType, dict[str, EventStatus]] = {
    ref_type: {label.lower(): status for status, labels in table.items() for label in labels}
    for ref_type, table in STATUS_LABELS.items()
}


def status_from_label(ref_type: RefType, label: str) -> EventStatus:
    """Map a persisted status label to the unified status."""
    status = _LABEL_LOOKUP[ref_type].get(str(label or "").strip().lower())
    if status is None:
        raise ValidationError(f"Unknown {ref_type.value} status label: {label!r}")
    return status


def label_for_status(ref_type: RefType, status: EventStatus) -> str:
    """Canonical persisted label for a unified status."""
    return STATUS_LABELS[ref_type][status][0]


def labels_for_status(ref_type: RefType, status: EventStatus) -> tuple[str, ...]:
    return STATUS_LABELS[ref_type][status]


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range."""

    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValidationError(f"Invalid date range: {self.start} is after {self.end}")

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def for_day(cls, day: date) -> "DateRange":
        return cls(day, day)

    @classmethod
    def for_year(cls, year: int) -> "DateRange":
        if not MINYEAR <= year <= MAXYEAR:
            raise ValidationError(f"year must be between {MINYEAR} and {MAXYEAR}, got {year}")
        return cls(date(year, 1, 1), date(year, 12, 31))


@dataclass(frozen=True)
class EventFilters:
    """Query filters. Empty allow-lists mean "all"."""

    account_id: Optional[str] = None
    types: tuple[RefType, ...] = ()
    statuses: tuple[EventStatus, ...] = ()

    @classmethod
    def build(cls, account_id=None, types=None, statuses=None) -> "EventFilters":
        return cls(
            account_id=account_id or None,
            types=tuple(sorted({RefType.parse(t) for t in types or ()}, key=lambda t: t.value)),
            statuses=tuple(sorted({EventStatus.parse(s) for s in statuses or ()}, key=lambda s: s.value)),
        )

    def as_dict(self) -> dict:
        return {
            "account_id": self.account_id,
            "types": sorted(t.value for t in self.types),
            "statuses": sorted(s.value for s in self.statuses),
        }


@dataclass(frozen=True)
class FinancialEvent:
    """A dated obligation projected from a receivable, payable or compensation."""

    id: str
    ref_type: RefType
    unit_id: str
    amount: Decimal
    expected_date: date
    status: EventStatus
    actual_date: Optional[date] = None
    account_id: Optional[str] = None
    party_id: Optional[str] = None
    category: Optional[str] = None
    observations: Optional[str] = None
    # Derived on read
    is_overdue: bool = False
    days_until_due: int = 0
    amount_formatted: str = ""
    date_formatted: str = ""

    @property
    def key(self) -> tuple[RefType, str]:
        return (self.ref_type, self.id)

    def with_status(self, status: EventStatus, actual_date: Optional[date] = None) -> "FinancialEvent":
        return replace(self, status=status, actual_date=actual_date)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ref_type": self.ref_type.value,
            "unit_id": self.unit_id,
            "account_id": self.account_id,
            "party_id": self.party_id,
            "amount": str(self.amount),
            "expected_date": self.expected_date.isoformat(),
            "actual_date": self.actual_date.isoformat() if self.actual_date else None,
            "status": self.status.value,
            "category": self.category,
            "observations": self.observations,
            "is_overdue": self.is_overdue,
            "days_until_due": self.days_until_due,
            "amount_formatted": self.amount_formatted,
            "date_formatted": self.date_formatted,
        }


@dataclass(frozen=True)
class Correction:
    """A status change planned by the reconciler."""

    id: str
    ref_type: RefType
    from_status: EventStatus
    to_status: EventStatus
    actual_date: Optional[date] = None


@dataclass(frozen=True)
class FailedCorrection:
    id: str
    ref_type: RefType
    error: str


@dataclass
class ReconciliationReport:
    """Outcome of a reconciliation batch. Failures are data, never raised."""

    corrected: int = 0
    failed: list[FailedCorrection] = field(default_factory=list)
    corrections: list[Correction] = field(default_factory=list)

    @property
    def partial_failure(self) -> bool:
        return bool(self.failed)

    @property
    def attempted(self) -> int:
        return self.corrected + len(self.failed)

    def to_dict(self) -> dict:
        return {
            "corrected": self.corrected,
            "failed": [{"id": f.id, "ref_type": f.ref_type.value, "error": f.error} for f in self.failed],
        }
