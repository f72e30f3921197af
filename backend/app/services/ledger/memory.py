"""
In-memory ledger for development and tests. Identity is the list position.
"""

from datetime import datetime
from typing import Any, List, Optional

from app.core.exceptions import StoreUnavailable
from app.services.ledger.base import ConsultationRecord, LedgerStore, normalize_email


class InMemoryLedgerStore(LedgerStore):

    def __init__(self):
        self._rows: List[ConsultationRecord] = []

    @property
    def records(self) -> List[ConsultationRecord]:
        return list(self._rows)

    def _index_of(self, key: str) -> Optional[int]:
        for index, row in enumerate(self._rows):
            if row.email == key:
                return index
        return None

    async def find_by_email(self, email: str) -> Optional[ConsultationRecord]:
        index = self._index_of(normalize_email(email))
        if index is None:
            return None
        row = self._rows[index]
        return ConsultationRecord(row.email, row.name, row.last_submission, identity=index)

    async def upsert(
        self,
        email: str,
        name: Optional[str],
        timestamp: datetime,
        identity: Any = None
    ) -> ConsultationRecord:
        key = normalize_email(email)
        if identity is not None:
            index = int(identity)
            if not 0 <= index < len(self._rows) or self._rows[index].email != key:
                raise StoreUnavailable(f"Ledger row {identity} does not belong to {key}")
        else:
            # Merge into an existing row for the email, if any
            index = self._index_of(key)

        if index is None:
            self._rows.append(ConsultationRecord(key, name, timestamp))
            return ConsultationRecord(key, name, timestamp, identity=len(self._rows) - 1)

        row = self._rows[index]
        row.name = name or row.name
        row.last_submission = timestamp
        return ConsultationRecord(row.email, row.name, row.last_submission, identity=index)
