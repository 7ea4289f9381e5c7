"""SQLite-backed history of blocked attempts and usage counters."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

import aiosqlite

logger = logging.getLogger(__name__)


class Statistic(str, Enum):
    """Counters shown on the dashboard."""

    TOTAL_SCANS = "total_scans"
    BLOCKED_ATTEMPTS = "blocked_attempts"
    WARNINGS_SHOWN = "warnings_shown"
    ALLOWED_LOGINS = "allowed_logins"


@dataclass(frozen=True)
class BlockedAttempt:
    """Log record for a blocked submission. No per-signal breakdown."""

    timestamp: str  # ISO-8601
    url: str
    hostname: str
    risk_score: float
    risk_level: str

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "url": self.url,
            "hostname": self.hostname,
            "riskScore": self.risk_score,
            "riskLevel": self.risk_level,
        }

    @classmethod
    def from_row(cls, row) -> "BlockedAttempt":
        return cls(
            timestamp=row["timestamp"],
            url=row["url"],
            hostname=row["hostname"],
            risk_score=float(row["risk_score"]),
            risk_level=row["risk_level"],
        )


class AttemptStore:
    """Async SQLite store for blocked attempts and statistics."""

    def __init__(self, db_path: Path, history_limit: int = 100):
        self.db_path = Path(db_path)
        self.history_limit = history_limit
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self):
        """Open the database and create tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self.db_path)
        self._connection.row_factory = aiosqlite.Row
        await self._create_tables()

    async def close(self):
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def __aenter__(self) -> "AttemptStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
        return False

    def _conn(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("AttemptStore is not connected")
        return self._connection

    async def _create_tables(self):
        async with self._lock:
            await self._conn().executescript(
                """
                    CREATE TABLE IF NOT EXISTS blocked_attempts (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        timestamp TEXT NOT NULL,
                        url TEXT NOT NULL,
                        hostname TEXT NOT NULL,
                        risk_score REAL NOT NULL,
                        risk_level TEXT NOT NULL
                    );

                    CREATE TABLE IF NOT EXISTS statistics (
                        name TEXT PRIMARY KEY,
                        value INTEGER NOT NULL DEFAULT 0
                    );

                    CREATE INDEX IF NOT EXISTS idx_blocked_attempts_timestamp
                        ON blocked_attempts(timestamp);
                """
            )
            await self._conn().commit()

    async def log_blocked_attempt(self, attempt: BlockedAttempt) -> None:
        """Store a blocked attempt, keeping only the newest ``history_limit``."""
        async with self._lock:
            conn = self._conn()
            await conn.execute(
                """
                INSERT INTO blocked_attempts (timestamp, url, hostname, risk_score, risk_level)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    attempt.timestamp,
                    attempt.url,
                    attempt.hostname,
                    attempt.risk_score,
                    attempt.risk_level,
                ),
            )
            await conn.execute(
                """
                DELETE FROM blocked_attempts
                WHERE id NOT IN (
                    SELECT id FROM blocked_attempts ORDER BY id DESC LIMIT ?
                )
                """,
                (self.history_limit,),
            )
            await self._increment(Statistic.BLOCKED_ATTEMPTS)
            await conn.commit()
        logger.info("Logged blocked attempt on %s", attempt.hostname)

    async def get_blocked_attempts(self, limit: Optional[int] = None) -> list[BlockedAttempt]:
        """Return blocked attempts, newest first."""
        async with self._lock:
            cursor = await self._conn().execute(
                "SELECT * FROM blocked_attempts ORDER BY id DESC LIMIT ?",
                (limit if limit is not None else self.history_limit,),
            )
            rows = await cursor.fetchall()
        return [BlockedAttempt.from_row(row) for row in rows]

    async def prune(self, days: int = 7, now: Optional[datetime] = None) -> int:
        """Drop attempts older than ``days``. Returns the number removed."""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        async with self._lock:
            conn = self._conn()
            cursor = await conn.execute("SELECT id, timestamp FROM blocked_attempts")
            stale = []
            for row in await cursor.fetchall():
                try:
                    stamp = datetime.fromisoformat(row["timestamp"])
                except ValueError:
                    stale.append(row["id"])
                    continue
                if stamp.tzinfo is None:
                    stamp = stamp.replace(tzinfo=timezone.utc)
                if stamp < cutoff:
                    stale.append(row["id"])
            if stale:
                await conn.executemany(
                    "DELETE FROM blocked_attempts WHERE id = ?", [(i,) for i in stale]
                )
                await conn.commit()
        if stale:
            logger.info("Pruned %d blocked attempts older than %d days", len(stale), days)
        return len(stale)

    async def _increment(self, stat: Statistic) -> None:
        await self._conn().execute(
            """
            INSERT INTO statistics (name, value) VALUES (?, 1)
            ON CONFLICT(name) DO UPDATE SET value = value + 1
            """,
            (Statistic(stat).value,),
        )

    async def increment(self, stat: Statistic) -> None:
        if Statistic(stat) is Statistic.BLOCKED_ATTEMPTS:
            # Counted by log_blocked_attempt
            return
        async with self._lock:
            await self._increment(stat)
            await self._conn().commit()

    async def get_statistics(self) -> dict:
        stats = {s.value: 0 for s in Statistic}
        async with self._lock:
            cursor = await self._conn().execute("SELECT name, value FROM statistics")
            for row in await cursor.fetchall():
                if row["name"] in stats:
                    stats[row["name"]] = row["value"]
        return stats

    async def clear_history(self) -> None:
        """Remove all attempts and reset counters."""
        async with self._lock:
            conn = self._conn()
            await conn.execute("DELETE FROM blocked_attempts")
            await conn.execute("DELETE FROM statistics")
            await conn.commit()
        logger.info("Cleared blocked-attempt history")
