"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import date
from decimal import Decimal

import pytest
import pytest_asyncio

from almanac.database import Database
from almanac.store import EventStore, days_until_due, is_overdue
from almanac.types import EventStatus, FinancialEvent, RefType

# Fixed "today" for every test that depends on dates
TODAY = date(2024, 2, 1)


@pytest_asyncio.fixture
async def db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    database = Database(db_path)
    await database.connect()

    yield database

    await database.close()
    database.remove_from_cache()
    for ext in ["", "-wal", "-shm"]:
        path = db_path + ext
        if os.path.exists(path):
            os.unlink(path)


@pytest.fixture
def today():
    return TODAY


@pytest_asyncio.fixture
async def store(db):
    """Event store pinned to the test's today."""
    return EventStore(db, today=lambda: TODAY)


@pytest.fixture
def seed(db):
    """Insert an obligation row with sensible defaults.

    Usage:
        await seed(RefType.RECEIVABLE, "r1", expected_date=date(2024, 1, 1))
    """

    async def _seed(ref_type: RefType, obligation_id: str, **overrides):
        data = {
            "id": obligation_id,
            "unit_id": "U1",
            "amount": "100.00",
            "expected_date": date(2024, 1, 15),
            "status": "Pendente" if ref_type != RefType.COMPENSATION else "Previsto",
        }
        data.update(overrides)
        await db.insert_obligation(ref_type.value, **data)

    return _seed


def _make_event(
    event_id: str,
    ref_type: RefType = RefType.RECEIVABLE,
    amount: str = "100",
    expected_date: date = date(2024, 1, 15),
    status: EventStatus = EventStatus.PENDING,
    today: date = TODAY,
    **extra,
) -> FinancialEvent:
    """Build an in-memory event with derived fields computed like the store does."""
    actual_date = extra.pop("actual_date", None)
    if status.is_settled and actual_date is None:
        actual_date = expected_date
    return FinancialEvent(
        id=event_id,
        ref_type=ref_type,
        unit_id=extra.pop("unit_id", "U1"),
        amount=Decimal(amount),
        expected_date=expected_date,
        status=status,
        actual_date=actual_date,
        is_overdue=is_overdue(expected_date, status, today),
        days_until_due=days_until_due(expected_date, status, today),
        **extra,
    )


@pytest.fixture
def make_event():
    """Factory for in-memory events."""
    return _make_event

