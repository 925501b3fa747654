"""SQLite store of reviewed items."""
import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from freshrss_filter.errors import StoreError
from freshrss_filter.models import ItemID, ReviewRecord


class ReviewStore:
    """SQLite database of review records, one row per item id.

    A single connection is shared by the pipeline workers; access to it is
    serialised with a lock.
    """

    SCHEMA = """
    CREATE TABLE IF NOT EXISTS reviews (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        item_id TEXT NOT NULL,
        hash TEXT NOT NULL,
        is_ad INTEGER NOT NULL,
        confidence REAL NOT NULL,
        reason TEXT NOT NULL,
        reviewed_at TEXT NOT NULL
    );

    CREATE UNIQUE INDEX IF NOT EXISTS idx_reviews_item ON reviews(item_id);
    """

    def __init__(self, db_path: Path | str):
        """Open the database, creating the file and tables if needed."""
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA journal_mode=WAL")
            self.conn.executescript(self.SCHEMA)
            self.conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"Cannot open review store at {self.db_path}: {e}") from e
        logging.info(f"Review store opened at \"{self.db_path}\"")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            self.conn.close()

    def exists(self, item_id: ItemID) -> bool:
        """Check if the item has already been reviewed."""
        try:
            with self._lock:
                cursor = self.conn.execute(
                    "SELECT 1 FROM reviews WHERE item_id = ? LIMIT 1",
                    (str(item_id),),
                )
                return cursor.fetchone() is not None
        except sqlite3.Error as e:
            raise StoreError(f"Cannot check review of item {item_id}: {e}") from e

    def upsert(self, record: ReviewRecord) -> None:
        """Insert the review record, replacing any previous one for the same item."""
        try:
            with self._lock:
                self.conn.execute(
                    """INSERT OR REPLACE INTO reviews
                       (item_id, hash, is_ad, confidence, reason, reviewed_at)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (
                        str(record.item_id),
                        record.content_hash,
                        1 if record.is_ad else 0,
                        record.confidence,
                        record.reason,
                        record.reviewed_at.isoformat(),
                    ),
                )
                self.conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot save review of item {record.item_id}: {e}") from e

    def get(self, item_id: ItemID) -> Optional[ReviewRecord]:
        """Return the latest review record of the item, if any."""
        try:
            with self._lock:
                row = self.conn.execute(
                    """SELECT item_id, hash, is_ad, confidence, reason, reviewed_at
                       FROM reviews WHERE item_id = ?""",
                    (str(item_id),),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot read review of item {item_id}: {e}") from e
        if row is None:
            return None
        return ReviewRecord(
            item_id=row["item_id"],
            content_hash=row["hash"],
            is_ad=bool(row["is_ad"]),
            confidence=row["confidence"],
            reason=row["reason"],
            reviewed_at=datetime.fromisoformat(row["reviewed_at"]),
        )
