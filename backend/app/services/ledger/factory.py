"""
Build the configured ledger backend.
"""

import logging

from app.core.config import Settings
from app.core.database import create_supabase_client
from app.services.ledger.base import LedgerStore
from app.services.ledger.file_store import CsvLedgerStore
from app.services.ledger.memory import InMemoryLedgerStore
from app.services.ledger.sqlite_store import SqliteLedgerStore
from app.services.ledger.supabase_store import SupabaseLedgerStore

logger = logging.getLogger(__name__)


def create_ledger_store(settings: Settings) -> LedgerStore:
    backend = settings.ledger_backend
    logger.info(f"Using '{backend}' consultation ledger")

    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "file":
        return CsvLedgerStore(settings.ledger_file_path)
    if backend == "sqlite":
        return SqliteLedgerStore(settings.ledger_sqlite_path, table=settings.ledger_table)
    if backend == "supabase":
        return SupabaseLedgerStore(create_supabase_client(settings), table=settings.ledger_table)

    raise ValueError(f"Unsupported ledger backend: {backend}")
