"""
Shared fixtures and fakes for the oracle tests
"""

import random
from datetime import datetime, timezone
from typing import List, Optional

import pytest

from app.core.exceptions import StoreUnavailable
from app.services.ledger import InMemoryLedgerStore, LedgerStore
from app.services.oracle.deck import OracleCard
from app.services.oracle.eligibility import EligibilityChecker
from app.services.oracle.orchestrator import ConsultationOrchestrator
from app.services.oracle.shuffle import ShuffleEngine


class FakeGenerator:
    def __init__(self, text: str = "The cards speak of patience.", error: Optional[Exception] = None):
        self.text = text
        self.error = error
        self.calls: List[tuple] = []

    async def generate(self, question, name, card):
        self.calls.append((question, name, card))
        if self.error is not None:
            raise self.error
        return self.text


class RecordingNotifier:
    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.sent: List[dict] = []

    async def notify(self, email, question, reading, name=None):
        self.sent.append({"email": email, "question": question, "reading": reading, "name": name})
        if self.error is not None:
            raise self.error
        return self.result


class FailingLedger(LedgerStore):
    """Ledger whose reads and/or writes report the backend as unavailable."""

    def __init__(self, fail_reads: bool = True, fail_writes: bool = False, inner: Optional[LedgerStore] = None):
        self.inner = inner if inner is not None else InMemoryLedgerStore()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.write_attempts = 0

    async def find_by_email(self, email):
        if self.fail_reads:
            raise StoreUnavailable("connection refused")
        return await self.inner.find_by_email(email)

    async def upsert(self, email, name, timestamp, identity=None):
        self.write_attempts += 1
        if self.fail_writes:
            raise StoreUnavailable("connection refused")
        return await self.inner.upsert(email, name, timestamp, identity=identity)


class CountingLedger(InMemoryLedgerStore):
    def __init__(self):
        super().__init__()
        self.reads = 0
        self.writes = 0

    async def find_by_email(self, email):
        self.reads += 1
        return await super().find_by_email(email)

    async def upsert(self, email, name, timestamp, identity=None):
        self.writes += 1
        return await super().upsert(email, name, timestamp, identity=identity)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FixedClock(datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def ledger():
    return CountingLedger()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine():
    return ShuffleEngine(rng=random.Random(1234))


@pytest.fixture
def make_orchestrator(generator, notifier, engine, clock):
    def _make(ledger: LedgerStore, **kwargs) -> ConsultationOrchestrator:
        return ConsultationOrchestrator(
            ledger=ledger,
            generator=kwargs.pop("generator", generator),
            notifier=kwargs.pop("notifier", notifier),
            checker=EligibilityChecker(ledger, clock=clock),
            engine=engine,
            clock=clock,
            **kwargs
        )
    return _make


@pytest.fixture
def orchestrator(make_orchestrator, ledger):
    return make_orchestrator(ledger)


@pytest.fixture
def custom_card():
    return OracleCard("Mana", "Personal power and spiritual authority", "/images/cards/mana.jpg")
