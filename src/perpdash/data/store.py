"""Typed SQLite read/write abstraction for funding rate snapshots.

Snapshots are stored whole, one row per poll, as the JSON document produced
by Snapshot.to_dict(). Funding rates travel as strings inside that document
so Decimal precision survives the round trip.
"""

import json

from perpdash.data.database import SnapshotDatabase
from perpdash.logging import get_logger
from perpdash.models import MarketInfo, Snapshot, now_ms

logger = get_logger(__name__)


class SnapshotStore:
    """Async SQLite store for snapshots and the tracked market list.

    Wraps SnapshotDatabase with typed read/write methods. All SQL access
    goes through self._database.db (the aiosqlite Connection).

    Usage:
        async with SnapshotDatabase("data/snapshots.db") as database:
            store = SnapshotStore(database)
            latest = await store.get_latest()
    """

    def __init__(self, database: SnapshotDatabase) -> None:
        self._database = database

    # ──────────────────────────────────────────────
    # Write methods
    # ──────────────────────────────────────────────

    async def insert_snapshot(self, snapshot: Snapshot) -> bool:
        """Insert a snapshot, ignoring a duplicate timestamp.

        Returns True if a row was written.
        """
        cursor = await self._database.db.execute(
            "INSERT OR IGNORE INTO snapshots (timestamp_ms, data, created_at) "
            "VALUES (?, ?, ?)",
            (snapshot.timestamp, json.dumps(snapshot.to_dict()["data"]), now_ms()),
        )
        await self._database.db.commit()

        inserted = cursor.rowcount > 0
        logger.debug(
            "inserted_snapshot",
            timestamp_ms=snapshot.timestamp,
            markets=len(snapshot),
            inserted=inserted,
        )
        return inserted

    async def upsert_markets(self, markets: list[MarketInfo]) -> None:
        """Insert or refresh markets, preserving their original created_at."""
        if not markets:
            return

        ts = now_ms()
        await self._database.db.executemany(
            "INSERT INTO markets (denom, display, created_at, updated_at) "
            "VALUES (?, ?, ?, ?) "
            "ON CONFLICT(denom) DO UPDATE SET "
            "display = excluded.display, updated_at = excluded.updated_at",
            [(m.denom, m.display, ts, ts) for m in markets],
        )
        await self._database.db.commit()
        logger.debug("upserted_markets", count=len(markets))

    # ──────────────────────────────────────────────
    # Read methods
    # ──────────────────────────────────────────────

    async def get_latest(self) -> Snapshot | None:
        """Return the most recent snapshot, or None if the store is empty."""
        cursor = await self._database.db.execute(
            "SELECT timestamp_ms, data FROM snapshots "
            "ORDER BY timestamp_ms DESC LIMIT 1"
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_snapshot(row)

    async def get_latest_with_cache(
        self, max_age_ms: float
    ) -> tuple[Snapshot | None, bool]:
        """Return the latest snapshot and whether it is still fresh.

        The second element is True when the snapshot is younger than
        ``max_age_ms``. Pass float("inf") to accept any age.
        """
        latest = await self.get_latest()
        if latest is None:
            return None, False
        return latest, now_ms() - latest.timestamp < max_age_ms

    async def get_range(
        self, start_ms: int, end_ms: int | None = None
    ) -> list[Snapshot]:
        """Snapshots with start_ms <= timestamp (<= end_ms), ascending."""
        query = "SELECT timestamp_ms, data FROM snapshots WHERE timestamp_ms >= ?"
        params: list = [start_ms]
        if end_ms is not None:
            query += " AND timestamp_ms <= ?"
            params.append(end_ms)
        query += " ORDER BY timestamp_ms ASC"

        cursor = await self._database.db.execute(query, params)
        rows = await cursor.fetchall()
        return [_row_to_snapshot(row) for row in rows]

    async def get_markets(self) -> list[MarketInfo]:
        cursor = await self._database.db.execute(
            "SELECT denom, display FROM markets ORDER BY denom"
        )
        rows = await cursor.fetchall()
        return [MarketInfo(denom=row[0], display=row[1]) for row in rows]

    async def get_markets_updated_at(self) -> int | None:
        """Millisecond timestamp of the most recent market refresh."""
        cursor = await self._database.db.execute("SELECT MAX(updated_at) FROM markets")
        row = await cursor.fetchone()
        return row[0] if row else None

    async def get_data_status(self) -> dict:
        """Aggregate store status for the dashboard.

        Returns dict with total_snapshots, total_markets, earliest_ms, latest_ms.
        """
        db = self._database.db

        cursor = await db.execute(
            "SELECT COUNT(*), MIN(timestamp_ms), MAX(timestamp_ms) FROM snapshots"
        )
        total_snapshots, earliest_ms, latest_ms = await cursor.fetchone()

        cursor = await db.execute("SELECT COUNT(*) FROM markets")
        total_markets = (await cursor.fetchone())[0]

        return {
            "total_snapshots": total_snapshots,
            "total_markets": total_markets,
            "earliest_ms": earliest_ms,
            "latest_ms": latest_ms,
        }


def _row_to_snapshot(row: tuple) -> Snapshot:
    return Snapshot.from_dict({"timestamp": row[0], "data": json.loads(row[1])})
