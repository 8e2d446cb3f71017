"""
EventLifecycleController - one viewer's window onto the financial calendar.

Usage:
    controller = EventLifecycleController(store)
    view = await controller.load('U1', DateRange(start, end))
    result = await controller.mark_settled('r-1')
    summary = await controller.get_overall_summary(DateRange(start, end))
    await controller.dispose()

State machine: Idle -> Loading -> Ready, and Ready -> Loading on a parameter
change or refetch(). A newer query cancels the token of the one in flight;
a superseded result is dropped and never overwrites newer state.
"""

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Optional

from almanac.aggregator import category_summary, daily_summary, monthly_summary, overall_summary
from almanac.cache import DEFAULT_TTL_SECONDS, CalendarCache
from almanac.cancellation import CancellationToken
from almanac.errors import AlmanacError, NotFoundError, StaleResultDiscarded, ValidationError
from almanac.reconciler import StatusReconciler
from almanac.result import Err, Ok, Result
from almanac.settings import Settings
from almanac.store import EventStore
from almanac.types import (
    DateRange,
    EventFilters,
    EventStatus,
    FinancialEvent,
    RefType,
    ReconciliationReport,
)

logger = logging.getLogger(__name__)


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"


@dataclass(frozen=True)
class ViewParams:
    unit_id: str
    date_range: DateRange
    filters: EventFilters


@dataclass(frozen=True)
class EventsView:
    """What a caller sees: events, loading flag and latest error."""

    events: tuple
    loading: bool
    error: Optional[Err]
    state: ViewState

    def to_dict(self) -> dict:
        return {
            "events": [e.to_dict() for e in self.events],
            "loading": self.loading,
            "error": {"kind": self.error.kind.value, "message": self.error.message} if self.error else None,
            "state": self.state.value,
        }


class EventLifecycleController:
    """Orchestrates cached, cancellable queries, reconciliation and mutations."""

    def __init__(
        self,
        store: EventStore,
        cache: Optional[CalendarCache] = None,
        reconciler: Optional[StatusReconciler] = None,
        auto_reconcile: bool = True,
        clear_on_error: bool = False,
    ):
        self._store = store
        self._cache = cache if cache is not None else CalendarCache(DEFAULT_TTL_SECONDS)
        self._reconciler = reconciler or StatusReconciler(store, today=store.today)
        self._auto_reconcile = auto_reconcile
        self._clear_on_error = clear_on_error

        self._state = ViewState.IDLE
        self._params: Optional[ViewParams] = None
        self._events: list[FinancialEvent] = []
        self._last_good: list[FinancialEvent] = []
        self._error: Optional[Err] = None
        self._token: Optional[CancellationToken] = None
        self._generation = 0
        self._last_report: Optional[ReconciliationReport] = None

    @classmethod
    async def from_settings(cls, store: EventStore, settings: Settings, clock: Optional[Callable[[], float]] = None):
        """Build a controller configured from stored settings."""
        ttl = await settings.get("cache_ttl_seconds")
        return cls(
            store,
            cache=CalendarCache(ttl_seconds=float(ttl), clock=clock),
            auto_reconcile=bool(await settings.get("auto_reconcile")),
            clear_on_error=bool(await settings.get("clear_on_error")),
        )

    # -------------------------------------------------------------------------
    # Observable state
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state == ViewState.LOADING

    @property
    def events(self) -> list[FinancialEvent]:
        return list(self._events)

    @property
    def last_good_events(self) -> list[FinancialEvent]:
        return list(self._last_good)

    @property
    def error(self) -> Optional[Err]:
        return self._error

    @property
    def params(self) -> Optional[ViewParams]:
        return self._params

    @property
    def store(self) -> EventStore:
        return self._store

    @property
    def cache(self) -> CalendarCache:
        return self._cache

    @property
    def last_reconciliation(self) -> Optional[ReconciliationReport]:
        return self._last_report

    def snapshot(self) -> EventsView:
        return EventsView(
            events=tuple(self._events),
            loading=self.loading,
            error=self._error,
            state=self._state,
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def load(
        self,
        unit_id: str,
        date_range: DateRange,
        filters: Optional[EventFilters] = None,
    ) -> EventsView:
        """Switch the viewer to new parameters and fetch (cache first).

        Raises:
            ValidationError: unit_id or date_range missing
        """
        if not unit_id or not str(unit_id).strip():
            raise ValidationError("unit_id is required")
        if date_range is None:
            raise ValidationError("date_range is required")
        self._params = ViewParams(unit_id=unit_id, date_range=date_range, filters=filters or EventFilters())
        return await self._fetch(use_cache=True, auto_reconcile=self._auto_reconcile)

    async def get_events(
        self,
        unit_id: str,
        date_range: DateRange,
        filters: Optional[EventFilters] = None,
    ) -> EventsView:
        return await self.load(unit_id, date_range, filters)

    async def refetch(self) -> EventsView:
        """Force a round-trip to the store; the fresh result repopulates the cache."""
        if self._params is None:
            raise ValidationError("Nothing to refetch: no unit/range loaded")
        return await self._fetch(use_cache=False, auto_reconcile=self._auto_reconcile)

    async def _fetch(self, use_cache: bool, auto_reconcile: bool) -> EventsView:
        params = self._params
        key = self._cache.make_key(params.unit_id, params.date_range.start, params.date_range.end, params.filters)

        if self._token is not None:
            self._token.cancel()
        token = CancellationToken(label=key)
        self._token = token
        self._generation += 1
        generation = self._generation

        if use_cache:
            cached = self._cache.get(key)
            if cached is not None:
                self._token = None
                self._ready(cached)
                return self.snapshot()

        self._state = ViewState.LOADING
        try:
            events = await self._store.query(params.unit_id, params.date_range, params.filters, token=token)
            token.raise_if_cancelled()
        except StaleResultDiscarded as e:
            logger.debug(f"Discarded stale result: {e}")
            return self.snapshot()
        except AlmanacError as e:
            if token.cancelled:
                logger.debug(f"Discarded stale failure for {key}: {e}")
                return self.snapshot()
            self._token = None
            self._fail(Err.from_exception(e))
            return self.snapshot()

        self._token = None
        self._cache.set(key, events)
        self._ready(events)

        if auto_reconcile:
            await self._auto_reconcile_loaded(events, generation)
        return self.snapshot()

    async def _auto_reconcile_loaded(self, events: list[FinancialEvent], generation: int) -> None:
        """Self-healing pass over freshly loaded events, followed by one refetch."""
        report = await self._reconciler.reconcile_batch(events)
        self._last_report = report
        if not report.attempted:
            return
        self._cache.clear()
        if generation == self._generation:
            await self._fetch(use_cache=False, auto_reconcile=False)

    def _ready(self, events: list[FinancialEvent]) -> None:
        self._events = list(events)
        self._last_good = list(events)
        self._error = None
        self._state = ViewState.READY

    def _fail(self, err: Err) -> None:
        logger.warning(f"Failed to load events: {err.message}")
        self._error = err
        if self._clear_on_error:
            self._events = []
        self._state = ViewState.READY

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def mark_settled(
        self, event_id: str, ref_type: RefType | str | None = None, settled_date: Optional[date] = None
    ) -> Result:
        """Mark an event as received/paid (dated today unless given)."""
        return await self._mutate(event_id, ref_type, EventStatus.SETTLED, settled_date)

    async def cancel(self, event_id: str, ref_type: RefType | str | None = None) -> Result:
        return await self._mutate(event_id, ref_type, EventStatus.CANCELLED)

    async def reconcile(
        self, event_id: str, ref_type: RefType | str | None = None, settled_date: Optional[date] = None
    ) -> Result:
        """Mark an event as matched against bank activity."""
        return await self._mutate(event_id, ref_type, EventStatus.RECONCILED, settled_date)

    async def _mutate(
        self,
        event_id: str,
        ref_type: RefType | str | None,
        status: EventStatus,
        settled_date: Optional[date] = None,
    ) -> Result:
        try:
            try:
                resolved = self._resolve_ref_type(event_id, ref_type)
                updated = await self._store.mutate(event_id, resolved, status, settled_date=settled_date)
                if not updated:
                    raise NotFoundError(f"{resolved.value} {event_id} not found")
            finally:
                self._cache.clear()
        except AlmanacError as e:
            err = Err.from_exception(e)
            logger.warning(f"Failed to set {event_id} to {status.value}: {err.message}")
            self._error = err
            return err

        if self._params is not None:
            await self._fetch(use_cache=False, auto_reconcile=False)
        return Ok(True)

    def _resolve_ref_type(self, event_id: str, ref_type: RefType | str | None) -> RefType:
        if not event_id:
            raise ValidationError("id is required")
        if ref_type:
            return RefType.parse(ref_type)
        matches = {e.ref_type for e in self._events if e.id == event_id}
        if not matches:
            raise ValidationError(f"Event {event_id} is not loaded; pass its type explicitly")
        if len(matches) > 1:
            raise ValidationError(f"Event id {event_id} is ambiguous; pass its type explicitly")
        return matches.pop()

    async def reconcile_batch(self, events: Optional[Iterable[FinancialEvent]] = None) -> ReconciliationReport:
        """Run the status reconciler over events (default: the loaded ones).

        Per-item failures are reported in the result, never raised.
        """
        batch = list(events) if events is not None else list(self._events)
        report = await self._reconciler.reconcile_batch(batch)
        self._last_report = report
        if report.attempted:
            self._cache.clear()
            if self._params is not None:
                await self._fetch(use_cache=False, auto_reconcile=False)
        return report

    # -------------------------------------------------------------------------
    # Summaries
    # -------------------------------------------------------------------------

    async def _events_for(
        self, date_range: DateRange, unit_id: Optional[str] = None, filters: Optional[EventFilters] = None
    ) -> list[FinancialEvent]:
        """Events for a range through the cache, without touching viewer state."""
        unit_id = unit_id or (self._params.unit_id if self._params else None)
        if not unit_id:
            raise ValidationError("unit_id is required")
        if filters is None:
            filters = self._params.filters if self._params else EventFilters()
        key = self._cache.make_key(unit_id, date_range.start, date_range.end, filters)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        events = await self._store.query(unit_id, date_range, filters)
        self._cache.set(key, events)
        return events

    async def _summarize(self, date_range: DateRange, build, unit_id=None, filters=None) -> Result:
        try:
            events = await self._events_for(date_range, unit_id=unit_id, filters=filters)
        except AlmanacError as e:
            return Err.from_exception(e)
        return Ok(build(events))

    async def get_daily_summary(self, day: date, unit_id: Optional[str] = None, filters=None) -> Result:
        return await self._summarize(
            DateRange.for_day(day), lambda events: daily_summary(events, day), unit_id, filters
        )

    async def get_monthly_summary(self, year: int, unit_id: Optional[str] = None, filters=None) -> Result:
        try:
            date_range = DateRange.for_year(year)
        except ValidationError as e:
            return Err.from_exception(e)
        return await self._summarize(
            date_range, lambda events: monthly_summary(events, year), unit_id, filters
        )

    async def get_category_summary(self, date_range: DateRange, unit_id: Optional[str] = None, filters=None) -> Result:
        return await self._summarize(date_range, category_summary, unit_id, filters)

    async def get_overall_summary(self, date_range: DateRange, unit_id: Optional[str] = None, filters=None) -> Result:
        return await self._summarize(date_range, overall_summary, unit_id, filters)

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------

    async def dispose(self) -> None:
        """Cancel in-flight work and drop the viewer's cache."""
        if self._token is not None:
            self._token.cancel()
            self._token = None
        self._generation += 1
        self._cache.clear()
        self._state = ViewState.IDLE

    async def __aenter__(self) -> "EventLifecycleController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.dispose()
