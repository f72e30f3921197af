"""
Flat delimited-record ledger (CSV). Identity is the data row index.
"""

import asyncio
import csv
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from app.core.exceptions import StoreUnavailable
from app.services.ledger.base import ConsultationRecord, LedgerStore, normalize_email
from app.services.ledger.timestamps import parse_timestamp, to_storage

logger = logging.getLogger(__name__)

FIELDNAMES = ["email", "name", "last_submission"]


class CsvLedgerStore(LedgerStore):
    """Ledger kept in a CSV file with an email,name,last_submission header."""

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_rows(self) -> List[dict]:
        if not self.path.exists():
            return []
        with self.path.open("r", newline="", encoding="utf-8") as f:
            return list(csv.DictReader(f))

    def _write_rows(self, rows: List[dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDNAMES, extrasaction="ignore")
            writer.writeheader()
            writer.writerows(rows)
        os.replace(tmp_path, self.path)

    def _find(self, email: str) -> Optional[ConsultationRecord]:
        key = normalize_email(email)
        with self._lock:
            rows = self._read_rows()
        for index, row in enumerate(rows):
            if normalize_email(row.get("email", "")) == key:
                return ConsultationRecord(
                    email=key,
                    name=row.get("name") or None,
                    last_submission=parse_timestamp(row.get("last_submission")),
                    identity=index
                )
        return None

    def _upsert(self, email: str, name: Optional[str], timestamp: datetime, identity: Any) -> ConsultationRecord:
        key = normalize_email(email)
        with self._lock:
            rows = self._read_rows()
            if identity is not None:
                index = int(identity)
                if not 0 <= index < len(rows) or normalize_email(rows[index].get("email", "")) != key:
                    raise StoreUnavailable(f"Ledger row {identity} does not belong to {key}")
            else:
                # Merge into an existing row for the email, if any
                index = next(
                    (i for i, row in enumerate(rows) if normalize_email(row.get("email", "")) == key),
                    None
                )

            if index is None:
                rows.append({"email": key, "name": name or "", "last_submission": to_storage(timestamp)})
                index = len(rows) - 1
            else:
                rows[index]["name"] = name or rows[index].get("name") or ""
                rows[index]["last_submission"] = to_storage(timestamp)
            self._write_rows(rows)
            stored_name = rows[index].get("name") or None
        return ConsultationRecord(key, stored_name, timestamp, identity=index)

    async def find_by_email(self, email: str) -> Optional[ConsultationRecord]:
        try:
            return await asyncio.to_thread(self._find, email)
        except (OSError, csv.Error) as e:
            logger.error(f"Failed to read ledger file {self.path}: {e}")
            raise StoreUnavailable(f"Ledger file unreadable: {e}") from e

    async def upsert(
        self,
        email: str,
        name: Optional[str],
        timestamp: datetime,
        identity: Any = None
    ) -> ConsultationRecord:
        try:
            return await asyncio.to_thread(self._upsert, email, name, timestamp, identity)
        except (OSError, csv.Error) as e:
            logger.error(f"Failed to write ledger file {self.path}: {e}")
            raise StoreUnavailable(f"Ledger file unwritable: {e}") from e
