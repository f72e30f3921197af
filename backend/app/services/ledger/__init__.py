"""
Consultation ledger backends
"""

from .base import ConsultationRecord, LedgerStore, normalize_email
from .memory import InMemoryLedgerStore
from .file_store import CsvLedgerStore
from .sqlite_store import SqliteLedgerStore
from .supabase_store import SupabaseLedgerStore
from .factory import create_ledger_store

__all__ = [
    'ConsultationRecord',
    'LedgerStore',
    'normalize_email',
    'InMemoryLedgerStore',
    'CsvLedgerStore',
    'SqliteLedgerStore',
    'SupabaseLedgerStore',
    'create_ledger_store',
]
