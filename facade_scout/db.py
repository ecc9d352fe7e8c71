"""SQLite storage for facade audit results."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from .models import FacadeAuditResult
from .utils import now_iso

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS audits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    page_url TEXT NOT NULL,
    audited_at TEXT NOT NULL,
    is_applicable BOOLEAN NOT NULL,
    score INTEGER NOT NULL,
    display_value TEXT,
    wasted_bytes INTEGER DEFAULT 0,
    wasted_ms REAL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS opportunities (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    audit_id INTEGER NOT NULL REFERENCES audits(id),
    position INTEGER NOT NULL,
    product_name TEXT NOT NULL,
    entity_name TEXT NOT NULL,
    facade_name TEXT NOT NULL,
    facade_repo TEXT,
    transfer_size INTEGER DEFAULT 0,
    blocking_time REAL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS opportunity_items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    opportunity_id INTEGER NOT NULL REFERENCES opportunities(id),
    position INTEGER NOT NULL,
    url TEXT NOT NULL,
    transfer_size INTEGER DEFAULT 0,
    blocking_time REAL DEFAULT 0,
    main_thread_time REAL DEFAULT 0,
    first_start_time REAL,
    first_end_time REAL
);

CREATE INDEX IF NOT EXISTS idx_audits_page ON audits(page_url);
CREATE INDEX IF NOT EXISTS idx_opportunities_audit ON opportunities(audit_id);
CREATE INDEX IF NOT EXISTS idx_opportunities_product ON opportunities(product_name);
CREATE INDEX IF NOT EXISTS idx_items_opportunity ON opportunity_items(opportunity_id);
"""


class Database:
    """Async SQLite database for audit result storage."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database connection and create tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(str(self.db_path))
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA foreign_keys=ON")
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()
        logger.info("Database connected: %s", self.db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def save_audit_result(self, result: FacadeAuditResult) -> int:
        """Save an audit result with its opportunities and their items."""
        assert self._conn is not None

        async with self._conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO audits (
                    page_url, audited_at, is_applicable, score,
                    display_value, wasted_bytes, wasted_ms
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    result.page_url,
                    now_iso(),
                    result.is_applicable,
                    result.score,
                    result.display_value,
                    result.summary.wasted_bytes,
                    result.summary.wasted_ms,
                ),
            )
            audit_id = cur.lastrowid

            for position, opp in enumerate(result.opportunities):
                await cur.execute(
                    """
                    INSERT INTO opportunities (
                        audit_id, position, product_name, entity_name,
                        facade_name, facade_repo, transfer_size, blocking_time
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        audit_id,
                        position,
                        opp.product_name,
                        opp.entity_name,
                        opp.facade.name,
                        opp.facade.repo,
                        opp.total_transfer_size,
                        opp.total_blocking_time,
                    ),
                )
                opportunity_id = cur.lastrowid

                # Batch insert sub-items
                if opp.sub_items:
                    await cur.executemany(
                        """
                        INSERT INTO opportunity_items (
                            opportunity_id, position, url, transfer_size,
                            blocking_time, main_thread_time,
                            first_start_time, first_end_time
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        [
                            (
                                opportunity_id,
                                item_position,
                                item.url,
                                item.transfer_size,
                                item.blocking_time,
                                item.main_thread_time,
                                item.first_start_time,
                                item.first_end_time,
                            )
                            for item_position, item in enumerate(opp.sub_items)
                        ],
                    )

        await self._conn.commit()
        logger.debug(
            "Saved audit %d: %s — %d opportunities",
            audit_id, result.page_url, len(result.opportunities),
        )
        return audit_id  # type: ignore[return-value]

    async def get_opportunities(self, audit_id: int) -> list[dict]:
        """Opportunities of one audit with their items, in ranked order."""
        assert self._conn is not None
        cursor = await self._conn.execute(
            "SELECT * FROM opportunities WHERE audit_id = ? ORDER BY position",
            (audit_id,),
        )
        opportunities = [dict(row) for row in await cursor.fetchall()]
        for opp in opportunities:
            cursor = await self._conn.execute(
                "SELECT * FROM opportunity_items WHERE opportunity_id = ? ORDER BY position",
                (opp["id"],),
            )
            opp["items"] = [dict(row) for row in await cursor.fetchall()]
        return opportunities

    async def get_stats(self) -> dict:
        """Get basic audit statistics."""
        assert self._conn is not None
        stats = {}

        cursor = await self._conn.execute("SELECT COUNT(*) FROM audits")
        stats["total_audits"] = (await cursor.fetchone())[0]

        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM audits WHERE is_applicable = 1"
        )
        stats["audits_with_opportunities"] = (await cursor.fetchone())[0]

        cursor = await self._conn.execute("SELECT COUNT(*) FROM opportunities")
        stats["total_opportunities"] = (await cursor.fetchone())[0]

        cursor = await self._conn.execute(
            "SELECT COALESCE(SUM(wasted_bytes), 0) FROM audits"
        )
        stats["total_wasted_bytes"] = (await cursor.fetchone())[0]

        return stats
