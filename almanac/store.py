"""
EventStore - query/mutation boundary over persisted obligation records.

Usage:
    store = EventStore(db)
    events = await store.query('U1', DateRange(start, end), EventFilters.build(types=['Receivable']))
    await store.mutate('r-1', RefType.RECEIVABLE, EventStatus.SETTLED)

The store has no cache awareness; caching lives in the controller above it.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import aiosqlite

from almanac.cancellation import CancellationToken
from almanac.database import Database
from almanac.errors import InvalidTransitionError, TransientFetchError, ValidationError
from almanac.types import (
    CLOSED_STATUSES,
    OPEN_STATUSES,
    SETTLED_STATUSES,
    DateRange,
    EventFilters,
    EventStatus,
    FinancialEvent,
    RefType,
    label_for_status,
    status_from_label,
)
from almanac.utils.dates import days_between, parse_date
from almanac.utils.dates import today as local_today
from almanac.utils.formatting import DEFAULT_CURRENCY, DEFAULT_LOCALE, format_amount, format_date

logger = logging.getLogger(__name__)

# A closed aiosqlite connection raises ValueError; a never-connected Database raises RuntimeError.
BACKEND_ERRORS = (aiosqlite.Error, ValueError, RuntimeError)


def is_overdue(expected_date: date, status: EventStatus, today: date) -> bool:
    """An obligation is overdue when its due date has passed and it is still open."""
    return expected_date < today and status not in CLOSED_STATUSES


def days_until_due(expected_date: date, status: EventStatus, today: date) -> int:
    """Signed days until the due date (negative = overdue). Closed events report 0."""
    if status in CLOSED_STATUSES:
        return 0
    return days_between(today, expected_date)


def project_status(stored: EventStatus, expected_date: date, today: date) -> EventStatus:
    """Recompute the derived Overdue state for open events."""
    if stored in OPEN_STATUSES:
        return EventStatus.OVERDUE if expected_date < today else EventStatus.PENDING
    return stored


class EventStore:
    """Projects receivables, payables and compensations into financial events."""

    def __init__(
        self,
        db: Optional[Database] = None,
        currency: str = DEFAULT_CURRENCY,
        locale: str = DEFAULT_LOCALE,
        today: Optional[Callable[[], date]] = None,
    ):
        self._db = db or Database()
        self._currency = currency
        self._locale = locale
        self._today = today or local_today

    def today(self) -> date:
        return self._today()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def query(
        self,
        unit_id: str,
        date_range: DateRange,
        filters: Optional[EventFilters] = None,
        token: Optional[CancellationToken] = None,
    ) -> list[FinancialEvent]:
        """Get enriched events for a unit within an inclusive date range.

        Raises:
            ValidationError: unit_id or date_range missing
            StaleResultDiscarded: token cancelled before or during the query
            TransientFetchError: backend failure
        """
        if not unit_id or not str(unit_id).strip():
            raise ValidationError("unit_id is required")
        if date_range is None:
            raise ValidationError("date_range is required")
        filters = filters or EventFilters()
        if token is not None:
            token.raise_if_cancelled()

        ref_types = filters.types or tuple(RefType)
        today = self.today()
        events: list[FinancialEvent] = []
        for ref_type in ref_types:
            try:
                rows = await self._db.get_obligations(
                    ref_type.value,
                    unit_id,
                    start_date=date_range.start,
                    end_date=date_range.end,
                    account_id=filters.account_id,
                )
            except BACKEND_ERRORS as e:
                raise TransientFetchError(f"Failed to query {ref_type.value} events for unit {unit_id}: {e}") from e
            if token is not None:
                token.raise_if_cancelled()
            for row in rows:
                event = self._project(ref_type, row, today)
                if event is not None:
                    events.append(event)

        if filters.statuses:
            allowed = set(filters.statuses)
            events = [e for e in events if e.status in allowed]

        events.sort(key=lambda e: (e.expected_date, e.ref_type.value, e.id))
        return events

    async def get_event(self, event_id: str, ref_type: RefType | str) -> Optional[FinancialEvent]:
        """Get a single event by id and type."""
        if not event_id:
            raise ValidationError("id and type are required")
        ref_type = RefType.parse(ref_type)
        try:
            row = await self._db.get_obligation(ref_type.value, event_id)
        except BACKEND_ERRORS as e:
            raise TransientFetchError(f"Failed to load {ref_type.value} {event_id}: {e}") from e
        if row is None:
            return None
        return self._project(ref_type, row, self.today())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def mutate(
        self,
        event_id: str,
        ref_type: RefType | str,
        new_status: EventStatus | str,
        settled_date: Optional[date] = None,
    ) -> bool:
        """Write one obligation's status.

        Settling stamps actual_date with settled_date (default: today);
        reconciling keeps an existing settlement date; every other status
        clears it. Returns False when the record does not exist.

        Raises:
            ValidationError: missing id/type/status
            InvalidTransitionError: the record is Cancelled
            TransientFetchError: backend failure
        """
        if not event_id or not ref_type or not new_status:
            raise ValidationError("id, type and status are required")
        ref_type = RefType.parse(ref_type)
        new_status = EventStatus.parse(new_status)

        try:
            row = await self._db.get_obligation(ref_type.value, event_id)
            if row is None:
                return False

            current = status_from_label(ref_type, row["status"])
            if current == EventStatus.CANCELLED and new_status != EventStatus.CANCELLED:
                raise InvalidTransitionError(
                    f"{ref_type.value} {event_id} is cancelled and cannot become {new_status.value}"
                )

            if new_status == EventStatus.SETTLED:
                actual_date = settled_date or self.today()
            elif new_status == EventStatus.RECONCILED:
                actual_date = settled_date or parse_date(row.get("actual_date")) or self.today()
            else:
                actual_date = None

            updated = await self._db.update_obligation_status(
                ref_type.value,
                event_id,
                label_for_status(ref_type, new_status),
                actual_date=actual_date,
                write_actual_date=True,
            )
        except BACKEND_ERRORS as e:
            raise TransientFetchError(f"Failed to update {ref_type.value} {event_id}: {e}") from e

        if updated:
            logger.info(f"{ref_type.value} {event_id}: {current.value} -> {new_status.value}")
        return updated

    async def mark_settled(
        self, event_id: str, ref_type: RefType | str, settled_date: Optional[date] = None
    ) -> bool:
        """Mark an event as received/paid, dated today unless given."""
        return await self.mutate(event_id, ref_type, EventStatus.SETTLED, settled_date=settled_date)

    # -------------------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------------------

    def _project(self, ref_type: RefType, row: dict, today: date) -> Optional[FinancialEvent]:
        """Build an enriched event from a stored row, or None for corrupt rows."""
        try:
            amount = Decimal(str(row["amount"]))
            expected_date = parse_date(row["expected_date"])
            stored_status = status_from_label(ref_type, row["status"])
        except (InvalidOperation, ValueError, ValidationError) as e:
            logger.warning(f"Skipping {ref_type.value} {row.get('id')}: {e}")
            return None
        if amount <= 0 or expected_date is None:
            logger.warning(f"Skipping {ref_type.value} {row.get('id')}: amount={amount} expected_date={expected_date}")
            return None

        status = project_status(stored_status, expected_date, today)
        if status in SETTLED_STATUSES:
            # Legacy rows settled without a date are assumed on time
            actual_date = parse_date(row.get("actual_date")) or expected_date
        else:
            actual_date = None

        return FinancialEvent(
            id=str(row["id"]),
            ref_type=ref_type,
            unit_id=row["unit_id"],
            amount=amount,
            expected_date=expected_date,
            status=status,
            actual_date=actual_date,
            account_id=row.get("account_id"),
            party_id=row.get("party_id"),
            category=row.get("category"),
            observations=row.get("observations"),
            is_overdue=is_overdue(expected_date, status, today),
            days_until_due=days_until_due(expected_date, status, today),
            amount_formatted=format_amount(amount, self._currency, self._locale),
            date_formatted=format_date(expected_date, self._locale),
        )
