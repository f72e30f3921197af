"""
Service wiring.

All external clients (ledger backend, OpenAI, Resend) are constructed here from
settings and handed to the orchestrator. The FastAPI app keeps the container
on app.state; routes reach it through the dependency functions below, which
tests replace with app.dependency_overrides.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from app.core.config import Settings
from app.services.ledger import LedgerStore, create_ledger_store
from app.services.oracle.eligibility import EligibilityChecker
from app.services.oracle.generator import ReadingGenerator, create_reading_generator
from app.services.oracle.notifier import Notifier, create_notifier
from app.services.oracle.orchestrator import ConsultationOrchestrator
from app.services.oracle.shuffle import ShuffleEngine

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    ledger: LedgerStore
    generator: ReadingGenerator
    notifier: Notifier
    engine: ShuffleEngine
    checker: EligibilityChecker
    orchestrator: ConsultationOrchestrator

    async def aclose(self) -> None:
        await self.orchestrator.wait_for_notifications()
        await self.ledger.close()
        close = getattr(self.notifier, "close", None)
        if close is not None:
            await close()


def build_container(settings: Settings) -> ServiceContainer:
    ledger = create_ledger_store(settings)
    generator = create_reading_generator(settings)
    notifier = create_notifier(settings)
    engine = ShuffleEngine()
    checker = EligibilityChecker.for_timezone(ledger, settings.consultation_timezone)
    orchestrator = ConsultationOrchestrator(
        ledger=ledger,
        generator=generator,
        notifier=notifier,
        checker=checker,
        engine=engine,
        fallback_reading=settings.fallback_reading
    )
    logger.info(
        f"Oracle services ready (ledger={settings.ledger_backend}, "
        f"timezone={settings.consultation_timezone}, openai={settings.use_openai_api})"
    )
    return ServiceContainer(
        settings=settings,
        ledger=ledger,
        generator=generator,
        notifier=notifier,
        engine=engine,
        checker=checker,
        orchestrator=orchestrator
    )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_orchestrator(request: Request) -> ConsultationOrchestrator:
    return get_container(request).orchestrator


def get_checker(request: Request) -> EligibilityChecker:
    return get_container(request).checker


def get_engine(request: Request) -> ShuffleEngine:
    return get_container(request).engine


def get_ledger(request: Request) -> LedgerStore:
    return get_container(request).ledger
