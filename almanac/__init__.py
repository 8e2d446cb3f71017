"""
Almanac - Financial obligation lifecycle and calendar aggregation engine.

Usage:
    from almanac import Database, EventStore, EventLifecycleController, DateRange

    db = Database()
    await db.connect()

    store = EventStore(db)
    async with EventLifecycleController(store) as controller:
        view = await controller.load('U1', DateRange(start, end))
        result = await controller.get_overall_summary(DateRange(start, end))
"""

from almanac.cache import CalendarCache
from almanac.cancellation import CancellationToken
from almanac.controller import EventLifecycleController, EventsView, ViewState
from almanac.database import Database
from almanac.errors import (
    AlmanacError,
    InvalidTransitionError,
    StaleResultDiscarded,
    TransientFetchError,
    ValidationError,
)
from almanac.reconciler import StatusReconciler, plan_corrections
from almanac.result import Err, ErrorKind, Ok
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

__all__ = [
    "AlmanacError",
    "CalendarCache",
    "CancellationToken",
    "Database",
    "DateRange",
    "Err",
    "ErrorKind",
    "EventFilters",
    "EventLifecycleController",
    "EventStatus",
    "EventStore",
    "EventsView",
    "FinancialEvent",
    "InvalidTransitionError",
    "Ok",
    "RefType",
    "ReconciliationReport",
    "Settings",
    "StaleResultDiscarded",
    "StatusReconciler",
    "TransientFetchError",
    "ValidationError",
    "ViewState",
    "plan_corrections",
]
