"""
Direct psycopg2 access: one connection per server, used for every read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

import psycopg2

from replcheck.config import DatabaseConfig

logger = logging.getLogger(__name__)

TABLE = "test_replication"


@dataclass
class ReplicationRow:
    id: int
    data: str
    created_at: Optional[datetime]

    def format_time(self) -> str:
        if self.created_at is None:
            return ""
        return self.created_at.strftime("%Y-%m-%d %H:%M:%S")


class Database:
    def __init__(self, conn, config: Optional[DatabaseConfig] = None):
        self.conn = conn
        self.config = config

    @classmethod
    def connect(cls, config: DatabaseConfig) -> "Database":
        """Open and ping a connection; errors propagate as psycopg2.Error"""
        logger.debug(f"Connecting to {config.describe()} as {config.user}")
        conn = psycopg2.connect(**config.connect_kwargs())
        conn.autocommit = True
        db = cls(conn, config)
        try:
            db.ping()
        except psycopg2.Error:
            conn.close()
            raise
        return db

    def ping(self):
        self.scalar("SELECT 1")

    def scalar(self, sql: str, params=None):
        logger.debug(f"SQL: {sql} {params or ''}")
        with self.conn.cursor() as cur:
            cur.execute(sql, params)
            row = cur.fetchone()
        return row[0] if row else None

    def rows(self, sql: str, params=None) -> list:
        logger.debug(f"SQL: {sql} {params or ''}")
        with self.conn.cursor() as cur:
            cur.execute(sql, params)
            return cur.fetchall()

    def server_version(self) -> str:
        return self.scalar("SELECT version()")

    def is_in_recovery(self) -> bool:
        return bool(self.scalar("SELECT pg_is_in_recovery()"))

    def count_rows(self) -> int:
        return self.scalar(f"SELECT count(*) FROM {TABLE}")

    def read_latest(self, limit: int = 5) -> List[ReplicationRow]:
        """Newest rows first"""
        results = self.rows(
            f"SELECT id, data, created_at FROM {TABLE} "
            "ORDER BY created_at DESC LIMIT %s",
            (limit,)
        )
        return [ReplicationRow(*row) for row in results]

    def close(self):
        if self.conn is not None and not self.conn.closed:
            self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
