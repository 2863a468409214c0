"""Async SQLite database manager for snapshot persistence.

Uses aiosqlite for non-blocking database operations with WAL mode so the
poller can write while request handlers read.
"""

import os
from typing import Self

import aiosqlite

from perpdash.exceptions import StoreNotConnectedError
from perpdash.logging import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 1

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS snapshots (
    timestamp_ms INTEGER PRIMARY KEY,
    data TEXT NOT NULL,
    created_at INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS markets (
    denom TEXT PRIMARY KEY,
    display TEXT NOT NULL,
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);
"""

_CREATE_INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_markets_updated_at
    ON markets(updated_at);
"""


class SnapshotDatabase:
    """Async SQLite connection manager for funding rate snapshots.

    Explicitly constructed and injected; there is no module-level
    connection. Manages schema creation, WAL mode and cleanup.

    Usage:
        async with SnapshotDatabase("data/snapshots.db") as database:
            store = SnapshotStore(database)
    """

    def __init__(self, db_path: str = "data/snapshots.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises StoreNotConnectedError if not connected.
        """
        if self._connection is None:
            raise StoreNotConnectedError("Database not connected. Call connect() first.")
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    async def connect(self) -> None:
        """Open the connection in WAL mode and initialize the schema.

        The parent directory is created when missing. ":memory:" is
        accepted for tests.
        """
        parent = os.path.dirname(self._db_path)
        if parent:
            os.makedirs(parent, exist_ok=True)

        conn = await aiosqlite.connect(self._db_path)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await self._initialize_schema(conn)
        self._connection = conn

        logger.info("snapshot_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        if self._connection is None:
            return
        await self._connection.close()
        self._connection = None
        logger.info("snapshot_db_closed", db_path=self._db_path)

    @staticmethod
    async def _initialize_schema(conn: aiosqlite.Connection) -> None:
        """Create tables and indexes, then record or check the schema version.

        A database written by a newer schema is still opened (tables are
        only ever added), but the mismatch is logged.
        """
        await conn.executescript(_CREATE_TABLES_SQL + _CREATE_INDEXES_SQL)

        cursor = await conn.execute("SELECT MAX(version) FROM schema_version")
        (stored,) = await cursor.fetchone()
        if stored is None:
            await conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
            logger.info("schema_version_set", version=SCHEMA_VERSION)
        elif stored != SCHEMA_VERSION:
            logger.warning(
                "schema_version_mismatch", stored=stored, expected=SCHEMA_VERSION
            )
        await conn.commit()

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
