"""
Eligibility - may this email consult the oracle today?

"Today" is a calendar date (year, month, day) in one configured timezone, not a
rolling 24-hour window.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from app.core.exceptions import StoreUnavailable
from app.services.ledger.base import ConsultationRecord, LedgerStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def mask_email(email: str) -> str:
    """a***@x.com - keeps log lines free of full addresses."""
    local, _, domain = (email or "").partition("@")
    if not domain:
        return "***"
    return f"{local[:1]}***@{domain}"


def is_same_calendar_day(stored: Optional[datetime], now: datetime, tz: tzinfo) -> bool:
    """
    True if both instants fall on the same date in tz.
    A missing timestamp is never the same day.
    """
    if stored is None:
        return False
    if stored.tzinfo is None:
        stored = stored.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return stored.astimezone(tz).date() == now.astimezone(tz).date()


@dataclass
class EligibilityDecision:
    """Outcome of one eligibility lookup"""
    eligible: bool
    record: Optional[ConsultationRecord] = None
    store_available: bool = True


class EligibilityChecker:
    """Decides from the ledger whether an email may consult today."""

    def __init__(
        self,
        store: LedgerStore,
        tz: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.tz = tz or timezone.utc
        self.clock = clock

    @classmethod
    def for_timezone(cls, store: LedgerStore, tz_name: str, **kwargs) -> "EligibilityChecker":
        tz = timezone.utc if tz_name.strip().upper() == "UTC" else ZoneInfo(tz_name)
        return cls(store, tz=tz, **kwargs)

    async def check(self, email: str, now: Optional[datetime] = None) -> EligibilityDecision:
        """
        Look up email and decide.

        A ledger outage fails open: the user is treated as eligible.
        """
        now = now or self.clock()
        try:
            record = await self.store.find_by_email(email)
        except StoreUnavailable as e:
            logger.warning(f"Ledger lookup failed for {mask_email(email)}, allowing consultation: {e}")
            return EligibilityDecision(eligible=True, store_available=False)

        if record is None:
            return EligibilityDecision(eligible=True)

        consulted_today = is_same_calendar_day(record.last_submission, now, self.tz)
        return EligibilityDecision(eligible=not consulted_today, record=record)

    async def is_eligible(self, email: str, now: Optional[datetime] = None) -> bool:
        decision = await self.check(email, now=now)
        return decision.eligible
