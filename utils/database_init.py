from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite


class AsyncDatabaseInitializer:
    """
    Manage the async SQLite database holding the `observations` table.

    - The database file is located at: <db_dir>/app.db
    - The directory is created by `ensure_database()` if missing, not on
      construction. A RuntimeError is raised if the path points to a file or
      cannot be created.
    - `ensure_database()` creates the table when absent. Existing rows are
      kept; the table is append-only.
    - Subsequent calls to `ensure_database()` on the same instance are no-ops,
      so it is safe for `connection()` to call it.
    """

    def __init__(self, db_dir: Path | str) -> None:
        db_dir = Path(db_dir).expanduser()

        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(
                f"Database directory {db_dir} points to a file, not a directory. "
                "Please set DATABASE_DIR to a directory path."
            )

        self.db_dir = db_dir
        self.db_path = self.db_dir / "app.db"

        self._initialized = False

    async def ensure_database(self) -> None:
        """
        Ensure the SQLite database at `self.db_path` has the observations table.

        Subsequent calls on the same instance are no-ops.
        """
        if self._initialized:
            return

        try:
            self.db_dir.mkdir(parents=True, exist_ok=True)
        except Exception as exc:
            raise RuntimeError(
                f"Failed to create or access database directory at {self.db_dir}"
            ) from exc

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS observations (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    filename TEXT NOT NULL,
                    image_url TEXT,
                    label TEXT,
                    estimated_age TEXT,
                    confidence REAL,
                    raw_response TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            await db.execute(
                "CREATE INDEX IF NOT EXISTS idx_observations_created_at "
                "ON observations(created_at)"
            )
            await db.commit()

        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Async context manager yielding an `aiosqlite.Connection`.

        The table is created on first use via `ensure_database()`.
        """
        await self.ensure_database()
        conn = await aiosqlite.connect(self.db_path)
        try:
            yield conn
        finally:
            await conn.close()
