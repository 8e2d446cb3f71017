"""
Base Database - Obligation record operations.

Rows are returned as plain dicts with the raw stored values; projecting them
into financial events is the event store's job.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

import aiosqlite

from almanac.database.schema import OBLIGATION_COLUMNS, TABLES


def _table(ref_type: str) -> str:
    try:
        return TABLES[ref_type]
    except KeyError:
        raise ValueError(f"Unknown obligation kind: {ref_type!r}") from None


class BaseDatabase:
    """Base class with obligation table operations."""

    _connection: Optional[aiosqlite.Connection] = None

    @property
    def conn(self) -> aiosqlite.Connection:
        """Get database connection."""
        if not self._connection:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    # -------------------------------------------------------------------------
    # Obligations
    # -------------------------------------------------------------------------

    async def get_obligations(
        self,
        ref_type: str,
        unit_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[str] = None,
    ) -> list[dict]:
        """Get active obligations of one kind for a unit, bounds inclusive."""
        query = f"SELECT * FROM {_table(ref_type)} WHERE unit_id = ? AND is_active = 1"  # noqa: S608
        params: list = [unit_id]
        if start_date is not None:
            query += " AND expected_date >= ?"
            params.append(start_date.isoformat())
        if end_date is not None:
            query += " AND expected_date <= ?"
            params.append(end_date.isoformat())
        if account_id:
            query += " AND account_id = ?"
            params.append(account_id)
        query += " ORDER BY expected_date ASC, id ASC"
        cursor = await self.conn.execute(query, tuple(params))
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def get_obligation(self, ref_type: str, obligation_id: str) -> Optional[dict]:
        """Get a single obligation by id."""
        cursor = await self.conn.execute(
            f"SELECT * FROM {_table(ref_type)} WHERE id = ?",  # noqa: S608
            (obligation_id,),
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def get_active_obligations(self, ref_type: str, unit_id: Optional[str] = None) -> list[dict]:
        """Get all active obligations of one kind, optionally for a single unit."""
        query = f"SELECT * FROM {_table(ref_type)} WHERE is_active = 1"  # noqa: S608
        params: tuple = ()
        if unit_id:
            query += " AND unit_id = ?"
            params = (unit_id,)
        query += " ORDER BY expected_date ASC, id ASC"
        cursor = await self.conn.execute(query, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def insert_obligation(self, ref_type: str, **data) -> None:
        """Insert an obligation row.

        The owning record's lifecycle normally creates these; the helper
        exists for seeding and tests. Ownership (unit_id) is fixed here.
        """
        if not data.get("id") or not data.get("unit_id"):
            raise ValueError("id and unit_id are required")
        try:
            amount = Decimal(str(data.get("amount")))
        except (InvalidOperation, ValueError):
            raise ValueError(f"Invalid amount: {data.get('amount')!r}") from None
        if amount <= 0:
            raise ValueError(f"Amount must be positive, got {amount}")
        data["amount"] = str(amount)
        for key in ("expected_date", "actual_date"):
            if isinstance(data.get(key), date):
                data[key] = data[key].isoformat()

        unknown = set(data) - set(OBLIGATION_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown columns: {sorted(unknown)}")

        cols = ", ".join(data.keys())
        placeholders = ", ".join("?" * len(data))
        await self.conn.execute(
            f"INSERT INTO {_table(ref_type)} ({cols}) VALUES ({placeholders})",  # noqa: S608
            tuple(data.values()),
        )
        await self.conn.commit()

    async def update_obligation_status(
        self,
        ref_type: str,
        obligation_id: str,
        status_label: str,
        actual_date: Optional[date] = None,
        write_actual_date: bool = False,
    ) -> bool:
        """Write one row's status (and optionally its actual date).

        Returns False when no row matched.
        """
        if write_actual_date:
            cursor = await self.conn.execute(
                f"UPDATE {_table(ref_type)} SET status = ?, actual_date = ? WHERE id = ?",  # noqa: S608
                (status_label, actual_date.isoformat() if actual_date else None, obligation_id),
            )
        else:
            cursor = await self.conn.execute(
                f"UPDATE {_table(ref_type)} SET status = ? WHERE id = ?",  # noqa: S608
                (status_label, obligation_id),
            )
        await self.conn.commit()
        return cursor.rowcount > 0
