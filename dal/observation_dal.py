"""Async Data Access Layer for the observations table.

Provides ObservationDAL with the two operations the store exposes: an
insert and a most-recent-first listing. Rows are never updated or deleted.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Sequence

from models.observation_record import ObservationRecord
from utils.database_init import AsyncDatabaseInitializer

RECENT_LIMIT = 100


class ObservationDAL:
    """Data access layer for observation records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = (
        "id",
        "filename",
        "image_url",
        "label",
        "estimated_age",
        "confidence",
        "raw_response",
        "created_at",
    )
    _COLUMN_LIST, _INSERT_COLUMNS = ", ".join(_COLUMNS), ", ".join(_COLUMNS[1:])

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def create_observation(self, record: ObservationRecord) -> int:
        """Insert a new observation row and return the new id.

        Args:
            record: ObservationRecord with `id=None` and fields to insert.

        Returns:
            The integer primary key of the created row.
        """
        created_at = record.created_at or datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT INTO observations ({self._INSERT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    record.filename,
                    record.image_url,
                    record.label,
                    record.estimated_age,
                    record.confidence,
                    record.raw_response,
                    created_at,
                ),
            )
            await conn.commit()
            return cur.lastrowid

    async def list_recent(self, limit: int = RECENT_LIMIT) -> List[ObservationRecord]:
        """Return up to `limit` rows, newest first.

        Rows sharing a `created_at` second are ordered by descending id.
        """
        limit = max(0, min(int(limit), RECENT_LIMIT))
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM observations "
                "ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            )
            rows = await cur.fetchall()
            return [self._row_to_record(r) for r in rows]

    async def count(self) -> int:
        async with self._db.connection() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM observations")
            row = await cur.fetchone()
            return int(row[0]) if row else 0

    @staticmethod
    def _row_to_record(row: Sequence[object]) -> ObservationRecord:
        """Convert a DB row tuple into an ObservationRecord."""
        return ObservationRecord(
            id=row[0],
            filename=row[1],
            image_url=row[2],
            label=row[3],
            estimated_age=row[4],
            confidence=row[5],
            raw_response=row[6],
            created_at=row[7],
        )
