"""
SQLite Database Repository - Fleet Data Persistence
====================================================

Stores cars, customers and bookings as schema-free JSON records, one table
per entity kind. Field-level validation is left to the callers that create
records; this layer only keeps them in insertion order.

The async get_* methods are the data-access interface used by backups.
"""

import asyncio
import json
import sqlite3
import logging
from typing import Dict, Iterable, List, Optional
from contextlib import contextmanager

from ...domain.models import Record, Snapshot, REQUIRED_ENTITY_KINDS

logger = logging.getLogger(__name__)

DATABASE_FILE = "vats_rental.db"

# Entity kind -> table name
ENTITY_TABLES = {
    "cars": "cars",
    "customers": "customers",
    "bookings": "bookings",
}


class Database:
    """
    SQLite database for the rental back office.

    Usage:
        db = Database()
        db.init()

        db.add_record("cars", {"id": "1", "make": "Maruti", "model": "Swift"})
        cars = db.get_records("cars")
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = str(db_path)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init(self):
        """Initialize database tables."""
        with self._get_connection() as conn:
            for table in ENTITY_TABLES.values():
                conn.execute(f"""
                    CREATE TABLE IF NOT EXISTS {table} (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        data TEXT NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

            logger.info(f"Database initialized: {self.db_path}")

    @staticmethod
    def _table(kind: str) -> str:
        try:
            return ENTITY_TABLES[kind]
        except KeyError:
            raise ValueError(f"Unknown entity kind: {kind}") from None

    # ── Record CRUD ────────────────────────────────────────────────

    def add_record(self, kind: str, record: Record) -> Optional[int]:
        """Store one record and return its row id."""
        table = self._table(kind)
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"INSERT INTO {table} (data) VALUES (?)",
                (json.dumps(record, ensure_ascii=False),)
            )
            return cursor.lastrowid

    def add_records(self, kind: str, records: Iterable[Record]) -> dict:
        """
        Add multiple records at once.

        Returns:
            Dict with 'added' count and 'errors' list
        """
        table = self._table(kind)
        result = {'added': 0, 'errors': []}

        with self._get_connection() as conn:
            for record in records:
                try:
                    conn.execute(
                        f"INSERT INTO {table} (data) VALUES (?)",
                        (json.dumps(record, ensure_ascii=False),)
                    )
                    result['added'] += 1
                except (TypeError, ValueError) as e:
                    result['errors'].append(f"{record!r}: {e}")

        logger.info(f"Bulk import into {kind}: {result['added']} added, {len(result['errors'])} errors")
        return result

    def get_records(self, kind: str) -> List[Record]:
        """Get all records of a kind in insertion order."""
        table = self._table(kind)
        with self._get_connection() as conn:
            rows = conn.execute(f"SELECT data FROM {table} ORDER BY id").fetchall()
            return [json.loads(row["data"]) for row in rows]

    def count(self, kind: str) -> int:
        table = self._table(kind)
        with self._get_connection() as conn:
            return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    def clear(self, kind: str) -> None:
        table = self._table(kind)
        with self._get_connection() as conn:
            conn.execute(f"DELETE FROM {table}")

    def replace_all(self, snapshot: Snapshot) -> Dict[str, int]:
        """
        Replace every entity table with the snapshot contents.
        Runs in a single transaction: either all kinds are replaced or none.
        """
        counts = {}
        with self._get_connection() as conn:
            for kind in REQUIRED_ENTITY_KINDS:
                table = self._table(kind)
                records = snapshot.entities.get(kind, [])
                conn.execute(f"DELETE FROM {table}")
                conn.executemany(
                    f"INSERT INTO {table} (data) VALUES (?)",
                    [(json.dumps(r, ensure_ascii=False),) for r in records]
                )
                counts[kind] = len(records)

        logger.info(f"Database replaced from snapshot {snapshot.timestamp}: {counts}")
        return counts

    def get_stats(self) -> dict:
        """Record counts per entity kind."""
        return {kind: self.count(kind) for kind in ENTITY_TABLES}

    # ── Data-access interface (async) ──────────────────────────────

    async def get_cars(self) -> List[Record]:
        return await asyncio.to_thread(self.get_records, "cars")

    async def get_customers(self) -> List[Record]:
        return await asyncio.to_thread(self.get_records, "customers")

    async def get_bookings(self) -> List[Record]:
        return await asyncio.to_thread(self.get_records, "bookings")


def init_database(db_path: str = DATABASE_FILE) -> Database:
    """Create the database file and tables (no sample data inserted)."""
    db = Database(db_path)
    db.init()
    return db


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    db = init_database()
    print(f"Stats: {db.get_stats()}")
