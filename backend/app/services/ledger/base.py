"""
Consultation ledger - one record per email tracking the latest consultation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional


@dataclass
class ConsultationRecord:
    """Latest consultation for one email"""
    email: str
    name: Optional[str]
    last_submission: Optional[datetime]
    identity: Any = None  # backend locator (row index, rowid, primary key)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class LedgerStore(ABC):
    """
    Storage capability behind the once-per-day rule.

    Implementations raise StoreUnavailable when the backend cannot be reached.
    """

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[ConsultationRecord]:
        """Return the record for email, or None if the email never consulted."""

    @abstractmethod
    async def upsert(
        self,
        email: str,
        name: Optional[str],
        timestamp: datetime,
        identity: Any = None
    ) -> ConsultationRecord:
        """
        Write the latest consultation for email.

        With identity the backend updates exactly that record in place;
        without it a new record is created.
        """

    async def close(self) -> None:
        """Release backend resources."""
