"""
Relational ledger on SQLite. Identity is the rowid; email is UNIQUE so
concurrent first-time writers merge into one row.
"""

import asyncio
import logging
import sqlite3
from datetime import datetime
from typing import Any, Optional

from app.core.exceptions import StoreUnavailable
from app.services.ledger.base import ConsultationRecord, LedgerStore, normalize_email
from app.services.ledger.timestamps import parse_timestamp, to_storage

logger = logging.getLogger(__name__)


class SqliteLedgerStore(LedgerStore):

    def __init__(self, db_path: str, table: str = "consultations"):
        if not table.isidentifier():
            raise ValueError(f"Invalid ledger table name: {table}")
        self.db_path = db_path
        self.table = table
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        if self._initialized:
            return
        with self._connect() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                  id INTEGER PRIMARY KEY AUTOINCREMENT,
                  email TEXT NOT NULL UNIQUE,
                  name TEXT,
                  last_submission TEXT NOT NULL
                )
                """
            )
            conn.commit()
        self._initialized = True

    def _find(self, email: str) -> Optional[ConsultationRecord]:
        self._init_db()
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT id, email, name, last_submission FROM {self.table} WHERE email = ?",
                (normalize_email(email),),
            ).fetchone()
        if not row:
            return None
        return ConsultationRecord(
            email=row["email"],
            name=row["name"],
            last_submission=parse_timestamp(row["last_submission"]),
            identity=row["id"]
        )

    def _upsert(self, email: str, name: Optional[str], timestamp: datetime, identity: Any) -> ConsultationRecord:
        self._init_db()
        key = normalize_email(email)
        stamp = to_storage(timestamp)
        with self._connect() as conn:
            if identity is not None:
                cursor = conn.execute(
                    f"""
                    UPDATE {self.table}
                    SET name = COALESCE(?, name), last_submission = ?
                    WHERE id = ? AND email = ?
                    """,
                    (name, stamp, identity, key),
                )
                if cursor.rowcount != 1:
                    raise StoreUnavailable(f"Ledger row {identity} does not belong to {key}")
            else:
                conn.execute(
                    f"""
                    INSERT INTO {self.table} (email, name, last_submission)
                    VALUES (?, ?, ?)
                    ON CONFLICT(email) DO UPDATE SET
                      name = COALESCE(excluded.name, name),
                      last_submission = excluded.last_submission
                    """,
                    (key, name, stamp),
                )
            conn.commit()
            row = conn.execute(
                f"SELECT id, name FROM {self.table} WHERE email = ?", (key,)
            ).fetchone()
        return ConsultationRecord(key, row["name"], timestamp, identity=row["id"])

    async def find_by_email(self, email: str) -> Optional[ConsultationRecord]:
        try:
            return await asyncio.to_thread(self._find, email)
        except sqlite3.Error as e:
            logger.error(f"Failed to query ledger database {self.db_path}: {e}")
            raise StoreUnavailable(f"Ledger database error: {e}") from e

    async def upsert(
        self,
        email: str,
        name: Optional[str],
        timestamp: datetime,
        identity: Any = None
    ) -> ConsultationRecord:
        try:
            return await asyncio.to_thread(self._upsert, email, name, timestamp, identity)
        except sqlite3.Error as e:
            logger.error(f"Failed to write ledger database {self.db_path}: {e}")
            raise StoreUnavailable(f"Ledger database error: {e}") from e
