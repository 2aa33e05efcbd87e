"""SQLiteReportStorage: a local sharded report store in one database file.

Shards are rows in a `shards` table; each report row carries the id of the
shard that accepted it. Each shard holds at most `shard_capacity` reports.
admit() autoscales: when every existing shard is full and fewer than
`max_shards` exist, a new shard is created before the write is admitted.

Schema:
  shards   one row per shard, ordered by creation.
  reports  (shard_id, proposal_id) → encoded title and report.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from govaudit_store.base import ADMIT_CAPACITY_EXHAUSTED, ADMIT_READY, BaseReportStorage, BaseShard
from govaudit_store.models import ReportItem

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS shards (
    seq             INTEGER PRIMARY KEY AUTOINCREMENT,
    shard_id        TEXT NOT NULL UNIQUE,
    created_at      TEXT
);
CREATE TABLE IF NOT EXISTS reports (
    shard_id        TEXT NOT NULL,
    proposal_id     TEXT NOT NULL,
    proposal_title  TEXT NOT NULL,
    report          TEXT NOT NULL,
    saved_at        TEXT,
    PRIMARY KEY (shard_id, proposal_id)
);
"""


class SQLiteShard(BaseShard):
    def __init__(self, conn: sqlite3.Connection, shard_id: str):
        self._conn = conn
        self.shard_id = shard_id

    def get_report(self, proposal_id: str) -> ReportItem | None:
        row = self._conn.execute(
            "SELECT proposal_id, proposal_title, report FROM reports WHERE shard_id=? AND proposal_id=?",
            (self.shard_id, proposal_id),
        ).fetchone()
        if row is None:
            return None
        return ReportItem(
            proposal_id=row["proposal_id"],
            proposal_title=row["proposal_title"],
            report=row["report"],
        )

    def list_reports(self, offset: int = 0, limit: int = 100) -> list[str]:
        rows = self._conn.execute(
            "SELECT proposal_id FROM reports WHERE shard_id=? ORDER BY saved_at, proposal_id LIMIT ? OFFSET ?",
            (self.shard_id, limit, offset),
        ).fetchall()
        return [r["proposal_id"] for r in rows]

    def count(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) AS n FROM reports WHERE shard_id=?", (self.shard_id,)).fetchone()
        return row["n"]


class SQLiteReportStorage(BaseReportStorage):
    """Sharded report storage backed by a local SQLite file.

    The database path defaults to `.govaudit.db` in the current working
    directory. Configure via .govaudit.yml: `store_path`, `shard_capacity`,
    `max_shards`.
    """

    def __init__(self, db_path: str = ".govaudit.db", shard_capacity: int = 500, max_shards: int = 8):
        if shard_capacity < 1 or max_shards < 1:
            raise ValueError("shard_capacity and max_shards must both be at least 1")
        self._shard_capacity = shard_capacity
        self._max_shards = max_shards
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def admit(self) -> int:
        if self._shard_with_room() is not None:
            return ADMIT_READY
        shard_count = len(self._shard_ids())
        if shard_count < self._max_shards:
            shard_id = self._create_shard(shard_count)
            logger.info("Storage autoscaled: created %s (%d/%d)", shard_id, shard_count + 1, self._max_shards)
            return ADMIT_READY
        logger.warning("Storage at capacity: %d shard(s) of %d report(s) each", shard_count, self._shard_capacity)
        return ADMIT_CAPACITY_EXHAUSTED

    def list_shards(self) -> list[BaseShard]:
        return [SQLiteShard(self._conn, shard_id) for shard_id in self._shard_ids()]

    def save(self, proposal_id: str, encoded_title: str, encoded_report: str) -> str | None:
        shard = self._shard_with_room()
        if shard is None:
            return None
        self._conn.execute(
            """
            INSERT OR REPLACE INTO reports (shard_id, proposal_id, proposal_title, report, saved_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (shard.shard_id, proposal_id, encoded_title, encoded_report, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()
        return shard.shard_id

    def close(self) -> None:
        self._conn.close()

    def _shard_ids(self) -> list[str]:
        rows = self._conn.execute("SELECT shard_id FROM shards ORDER BY seq").fetchall()
        return [r["shard_id"] for r in rows]

    def _shard_with_room(self) -> SQLiteShard | None:
        for shard_id in self._shard_ids():
            shard = SQLiteShard(self._conn, shard_id)
            if shard.count() < self._shard_capacity:
                return shard
        return None

    def _create_shard(self, index: int) -> str:
        shard_id = f"shard-{index}"
        self._conn.execute(
            "INSERT INTO shards (shard_id, created_at) VALUES (?, ?)",
            (shard_id, datetime.now(timezone.utc).isoformat()),
        )
        self._conn.commit()
        return shard_id
