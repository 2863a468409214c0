"""Snapshot persistence layer.

Provides the SQLite database manager and the typed snapshot store that
serves the latest snapshot and snapshots by time range.
"""

from perpdash.data.database import SnapshotDatabase
from perpdash.data.store import SnapshotStore

__all__ = [
    "SnapshotDatabase",
    "SnapshotStore",
]
