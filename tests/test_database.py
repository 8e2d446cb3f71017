"""Tests for database operations.

These tests verify the intended behavior of the Database class:
1. Connection management and singleton pattern
2. Settings CRUD operations
3. Obligation queries (unit, date bounds, account, active flag)
4. Obligation inserts and status updates
"""

import os
import tempfile
from datetime import date

import pytest

from almanac.database import Database
from almanac.types import RefType


class TestDatabaseConnection:
    """Tests for database connection management."""

    @pytest.mark.asyncio
    async def test_connect_creates_file(self):
        """Connecting creates the database file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = os.path.join(tmpdir, "test.db")
            db = Database(db_path)
            await db.connect()

            assert os.path.exists(db_path)

            await db.close()
            db.remove_from_cache()

    @pytest.mark.asyncio
    async def test_singleton_per_path(self):
        """Same path returns same instance."""
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = os.path.join(tmpdir, "test.db")
            db1 = Database(db_path)
            db2 = Database(db_path)

            assert db1 is db2
            db1.remove_from_cache()

    @pytest.mark.asyncio
    async def test_different_paths_different_instances(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db1 = Database(os.path.join(tmpdir, "a.db"))
            db2 = Database(os.path.join(tmpdir, "b.db"))

            assert db1 is not db2
            db1.remove_from_cache()
            db2.remove_from_cache()

    def test_conn_requires_connect(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db = Database(os.path.join(tmpdir, "never.db"))
            with pytest.raises(RuntimeError):
                db.conn
            db.remove_from_cache()


class TestSettingsOperations:
    """Tests for settings storage."""

    @pytest.mark.asyncio
    async def test_get_missing_setting_returns_default(self, db):
        assert await db.get_setting("missing") is None
        assert await db.get_setting("missing", default=5) == 5

    @pytest.mark.asyncio
    async def test_values_round_trip_through_json(self, db):
        await db.set_setting("auto_reconcile", False)
        await db.set_setting("cache_ttl_seconds", 45)

        assert await db.get_setting("auto_reconcile") is False
        assert await db.get_all_settings() == {"auto_reconcile": False, "cache_ttl_seconds": 45}


class TestObligationQueries:
    @pytest.mark.asyncio
    async def test_bounds_are_inclusive_and_sorted(self, db, seed):
        await seed(RefType.PAYABLE, "p3", expected_date=date(2024, 1, 31))
        await seed(RefType.PAYABLE, "p1", expected_date=date(2024, 1, 1))
        await seed(RefType.PAYABLE, "p2", expected_date=date(2024, 1, 15))
        await seed(RefType.PAYABLE, "p4", expected_date=date(2024, 2, 1))

        rows = await db.get_obligations("Payable", "U1", date(2024, 1, 1), date(2024, 1, 31))

        assert [row["id"] for row in rows] == ["p1", "p2", "p3"]

    @pytest.mark.asyncio
    async def test_active_obligations_across_units(self, db, seed):
        await seed(RefType.RECEIVABLE, "r1", unit_id="U1")
        await seed(RefType.RECEIVABLE, "r2", unit_id="U2")
        await seed(RefType.RECEIVABLE, "r3", unit_id="U2", is_active=0)

        assert [row["id"] for row in await db.get_active_obligations("Receivable")] == ["r1", "r2"]
        assert [row["id"] for row in await db.get_active_obligations("Receivable", "U2")] == ["r2"]

    @pytest.mark.asyncio
    async def test_unknown_kind(self, db):
        with pytest.raises(ValueError):
            await db.get_obligations("Invoice", "U1")


class TestObligationWrites:
    @pytest.mark.asyncio
    async def test_insert_normalizes_values(self, db):
        await db.insert_obligation(
            "Receivable", id="r1", unit_id="U1", amount=12.5, expected_date=date(2024, 3, 4), status="Pendente"
        )

        row = await db.get_obligation("Receivable", "r1")
        assert row["amount"] == "12.5"
        assert row["expected_date"] == "2024-03-04"
        assert row["is_active"] == 1

    @pytest.mark.asyncio
    async def test_insert_rejects_non_positive_amount(self, db):
        with pytest.raises(ValueError):
            await db.insert_obligation("Payable", id="p1", unit_id="U1", amount="0", expected_date="2024-01-01")
        with pytest.raises(ValueError):
            await db.insert_obligation("Payable", id="p1", unit_id="U1", amount="-3", expected_date="2024-01-01")

    @pytest.mark.asyncio
    async def test_insert_requires_owner(self, db):
        with pytest.raises(ValueError):
            await db.insert_obligation("Payable", id="p1", amount="3", expected_date="2024-01-01")

    @pytest.mark.asyncio
    async def test_insert_rejects_unknown_columns(self, db):
        with pytest.raises(ValueError):
            await db.insert_obligation(
                "Payable", id="p1", unit_id="U1", amount="3", expected_date="2024-01-01", colour="red"
            )

    @pytest.mark.asyncio
    async def test_update_status_only(self, db):
        await db.insert_obligation(
            "Payable", id="p1", unit_id="U1", amount="3", expected_date="2024-01-01", actual_date="2024-01-02"
        )

        assert await db.update_obligation_status("Payable", "p1", "Conciliado") is True

        row = await db.get_obligation("Payable", "p1")
        assert row["status"] == "Conciliado"
        assert row["actual_date"] == "2024-01-02"

    @pytest.mark.asyncio
    async def test_update_with_date(self, db):
        await db.insert_obligation("Payable", id="p1", unit_id="U1", amount="3", expected_date="2024-01-01")

        await db.update_obligation_status("Payable", "p1", "Pago", actual_date=date(2024, 1, 3), write_actual_date=True)

        row = await db.get_obligation("Payable", "p1")
        assert row["actual_date"] == "2024-01-03"

    @pytest.mark.asyncio
    async def test_update_missing_row(self, db):
        assert await db.update_obligation_status("Payable", "nope", "Pago") is False
