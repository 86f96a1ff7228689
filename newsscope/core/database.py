import sqlite3
from datetime import datetime, timezone
from typing import List, Dict, Any
import logging

from .config import settings

logger = logging.getLogger(__name__)


class QueryLog:
    """
    Search history backed by sqlite.

    Only the query text, the time it was made and the number of articles
    returned are stored; scraped articles are never persisted.
    """

    def __init__(self, db_path: str = "newsscope.db"):
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    async def init_db(self):
        conn = self._connect()
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS search_queries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                query TEXT NOT NULL,
                timestamp TIMESTAMP NOT NULL,
                result_count INTEGER DEFAULT 0
            )
        ''')
        cursor.execute('CREATE INDEX IF NOT EXISTS idx_queries_count ON search_queries(result_count)')

        conn.commit()
        conn.close()
        logger.info("Query log initialized successfully")

    async def record(self, query: str, result_count: int) -> Dict[str, Any]:
        timestamp = datetime.now(timezone.utc).isoformat()
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO search_queries (query, timestamp, result_count)
                VALUES (?, ?, ?)
            ''', (query, timestamp, result_count))
            query_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()

        return {
            "id": query_id,
            "query": query,
            "timestamp": timestamp,
            "result_count": result_count,
        }

    async def record_safely(self, query: str, result_count: int) -> None:
        """Fire-and-forget variant of ``record``; failures are only logged."""
        try:
            await self.record(query, result_count)
        except Exception as e:
            logger.warning(f"Failed to record search query '{query}': {e}")

    async def popular(self, limit: int = 5) -> List[Dict[str, Any]]:
        conn = self._connect()
        try:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id, query, timestamp, result_count
                FROM search_queries
                ORDER BY result_count DESC, id ASC
                LIMIT ?
            ''', (limit,))
            rows = cursor.fetchall()
        finally:
            conn.close()

        return [
            {
                "id": row[0],
                "query": row[1],
                "timestamp": row[2],
                "result_count": row[3],
            }
            for row in rows
        ]


# Global query log instance
query_log = QueryLog(settings.DATABASE_PATH)


async def init_db():
    await query_log.init_db()
