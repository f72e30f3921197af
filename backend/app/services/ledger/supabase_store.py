"""
Ledger on a Supabase (PostgREST) table. Identity is the row primary key.

Expected table:

    create table consultations (
      id bigint generated always as identity primary key,
      email text not null unique,
      name text,
      last_submission timestamptz not null
    );
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from supabase import Client

from app.core.exceptions import StoreUnavailable
from app.services.ledger.base import ConsultationRecord, LedgerStore, normalize_email
from app.services.ledger.timestamps import parse_timestamp, to_storage

logger = logging.getLogger(__name__)


class SupabaseLedgerStore(LedgerStore):

    def __init__(self, client: Client, table: str = "consultations"):
        self.supabase = client
        self.table = table

    def _find(self, email: str) -> Optional[ConsultationRecord]:
        result = (
            self.supabase.table(self.table)
            .select("id, email, name, last_submission")
            .eq("email", normalize_email(email))
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        row = result.data[0]
        return ConsultationRecord(
            email=row["email"],
            name=row.get("name"),
            last_submission=parse_timestamp(row.get("last_submission")),
            identity=row["id"]
        )

    def _upsert(self, email: str, name: Optional[str], timestamp: datetime, identity: Any) -> ConsultationRecord:
        key = normalize_email(email)
        data = {"last_submission": to_storage(timestamp)}
        if name:
            data["name"] = name

        if identity is not None:
            result = (
                self.supabase.table(self.table)
                .update(data)
                .eq("id", identity)
                .eq("email", key)
                .execute()
            )
            if not result.data:
                raise StoreUnavailable(f"Ledger row {identity} does not belong to {key}")
        else:
            data["email"] = key
            result = (
                self.supabase.table(self.table)
                .upsert(data, on_conflict="email")
                .execute()
            )
            if not result.data:
                raise StoreUnavailable("Ledger insert returned no data")

        row = result.data[0]
        return ConsultationRecord(key, row.get("name"), timestamp, identity=row.get("id"))

    async def find_by_email(self, email: str) -> Optional[ConsultationRecord]:
        try:
            return await asyncio.to_thread(self._find, email)
        except Exception as e:
            logger.error(f"Failed to query ledger table '{self.table}': {e}")
            raise StoreUnavailable(f"Supabase ledger error: {e}") from e

    async def upsert(
        self,
        email: str,
        name: Optional[str],
        timestamp: datetime,
        identity: Any = None
    ) -> ConsultationRecord:
        try:
            return await asyncio.to_thread(self._upsert, email, name, timestamp, identity)
        except StoreUnavailable:
            raise
        except Exception as e:
            logger.error(f"Failed to write ledger table '{self.table}': {e}")
            raise StoreUnavailable(f"Supabase ledger error: {e}") from e
