"""Database package — in-memory SQLite engine with byte snapshots."""
from vendorbank.db.engine import SnapshotEngine

__all__ = ["SnapshotEngine"]
