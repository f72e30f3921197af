"""
Consultation orchestrator - runs one oracle consultation end to end.

States:
    RECEIVED -> VALIDATED -> ELIGIBILITY_CHECKED -> CARD_SELECTED
    -> READING_GENERATED -> RECORDED -> NOTIFIED -> COMPLETED
with REJECTED and FAILED as error terminals.

Error policy:
    - missing question: rejected (QuestionRequiredError)
    - already consulted today: rejected (AlreadyConsultedTodayError)
    - ledger read failure: fail open, the consultation proceeds
    - generation failure or empty reading: fallback reading
    - ledger write failure: fail closed (LedgerWriteFailedError), no reading returned
    - notification failure: logged only; delivery never blocks the response
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional, Set

from app.core.exceptions import (
    AlreadyConsultedTodayError,
    LedgerWriteFailedError,
    OracleError,
    QuestionRequiredError,
    StoreUnavailable,
)
from app.services.ledger.base import LedgerStore, normalize_email
from app.services.oracle.deck import OracleCard
from app.services.oracle.eligibility import EligibilityChecker, mask_email, utc_now
from app.services.oracle.generator import ReadingGenerator
from app.services.oracle.notifier import Notifier
from app.services.oracle.shuffle import ShuffleEngine

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_READING = "The oracle is silent at this moment. Please try again later."


class ConsultationState(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    ELIGIBILITY_CHECKED = "eligibility_checked"
    CARD_SELECTED = "card_selected"
    READING_GENERATED = "reading_generated"
    RECORDED = "recorded"
    NOTIFIED = "notified"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass
class ConsultationResult:
    """Outcome of a completed consultation"""
    reading: str
    card: OracleCard
    state: ConsultationState
    trace: List[ConsultationState] = field(default_factory=list)
    used_fallback: bool = False
    recorded: bool = False


class _Run:
    """State bookkeeping for a single consultation."""

    def __init__(self):
        self.state = ConsultationState.RECEIVED
        self.trace = [ConsultationState.RECEIVED]

    def move(self, state: ConsultationState) -> None:
        logger.debug(f"Consultation {self.state.value} -> {state.value}")
        self.state = state
        self.trace.append(state)

    def stop(self, state: ConsultationState, error: OracleError) -> OracleError:
        self.move(state)
        error.state = state
        error.trace = list(self.trace)
        return error


class ConsultationOrchestrator:
    """Composes eligibility, card selection, generation, ledger and notification."""

    def __init__(
        self,
        ledger: LedgerStore,
        generator: ReadingGenerator,
        notifier: Notifier,
        checker: Optional[EligibilityChecker] = None,
        engine: Optional[ShuffleEngine] = None,
        fallback_reading: str = DEFAULT_FALLBACK_READING,
        clock: Callable[[], datetime] = utc_now
    ):
        self.ledger = ledger
        self.generator = generator
        self.notifier = notifier
        self.checker = checker or EligibilityChecker(ledger, clock=clock)
        self.engine = engine or ShuffleEngine()
        self.fallback_reading = fallback_reading
        self.clock = clock
        self._pending_notifications: Set[asyncio.Task] = set()

    async def consult(
        self,
        question: Optional[str],
        email: Optional[str] = None,
        name: Optional[str] = None,
        card: Optional[OracleCard] = None,
        client_timestamp: Optional[datetime] = None
    ) -> ConsultationResult:
        """
        Run one consultation.

        Args:
            question: The seeker's question (required, non-blank)
            email: Enables the once-per-day rule, the ledger write and the email
            name: Seeker's name, used in the reading and stored in the ledger
            card: Card already drawn by the caller; drawn here if absent
            client_timestamp: Client clock, logged only; the server clock decides

        Returns:
            ConsultationResult with the reading text
        """
        run = _Run()
        question = (question or "").strip()
        email = normalize_email(email) or None
        name = (name or "").strip() or None

        # Validate
        if not question:
            raise run.stop(ConsultationState.REJECTED, QuestionRequiredError())
        run.move(ConsultationState.VALIDATED)

        # Eligibility
        now = self.clock()
        if client_timestamp is not None:
            logger.debug(f"Client timestamp {client_timestamp.isoformat()}, server time {now.isoformat()}")

        identity = None
        if email:
            decision = await self.checker.check(email, now=now)
            if not decision.eligible:
                logger.info(f"Rejected consultation for {mask_email(email)}: already consulted today")
                raise run.stop(ConsultationState.REJECTED, AlreadyConsultedTodayError())
            if decision.record is not None:
                identity = decision.record.identity
        run.move(ConsultationState.ELIGIBILITY_CHECKED)

        # Card
        selected_card = card or self.engine.draw()
        run.move(ConsultationState.CARD_SELECTED)
        logger.info(f"Card selected: {selected_card.name}")

        # Reading
        reading, used_fallback = await self._generate(question, name, selected_card)
        run.move(ConsultationState.READING_GENERATED)

        recorded = False
        if email:
            # Ledger
            try:
                await self.ledger.upsert(email, name, now, identity=identity)
            except StoreUnavailable as e:
                logger.error(f"Failed to record consultation for {mask_email(email)}: {e}")
                raise run.stop(ConsultationState.FAILED, LedgerWriteFailedError()) from e
            recorded = True
            run.move(ConsultationState.RECORDED)

            # Email
            self._schedule_notification(email, question, reading, name)
            run.move(ConsultationState.NOTIFIED)

        run.move(ConsultationState.COMPLETED)
        return ConsultationResult(
            reading=reading,
            card=selected_card,
            state=run.state,
            trace=run.trace,
            used_fallback=used_fallback,
            recorded=recorded
        )

    async def _generate(self, question: str, name: Optional[str], card: OracleCard):
        try:
            reading = await self.generator.generate(question, name, card)
        except Exception as e:
            logger.warning(f"Reading generation failed, using fallback reading: {e}")
            return self.fallback_reading, True

        if not reading or not reading.strip():
            logger.warning("Reading generation returned no text, using fallback reading")
            return self.fallback_reading, True
        return reading, False

    def _schedule_notification(self, email: str, question: str, reading: str, name: Optional[str]) -> None:
        task = asyncio.create_task(self._notify(email, question, reading, name))
        self._pending_notifications.add(task)
        task.add_done_callback(self._pending_notifications.discard)

    async def _notify(self, email: str, question: str, reading: str, name: Optional[str]) -> None:
        try:
            delivered = await self.notifier.notify(email, question, reading, name=name)
        except Exception as e:
            logger.error(f"Notifier raised for {mask_email(email)}: {e}")
            return
        if not delivered:
            logger.warning(f"Consultation email to {mask_email(email)} was not delivered")

    async def wait_for_notifications(self) -> None:
        """Wait for every scheduled notification (used on shutdown and in tests)."""
        if self._pending_notifications:
            await asyncio.gather(*list(self._pending_notifications), return_exceptions=True)
