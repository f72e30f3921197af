"""
Shuffle ceremony - the visual flourish around a draw, as a state machine.

idle -> shuffling -> selecting -> revealing -> completed, with cancelled
reachable from any non-terminal state. The clock is injected so the stages can
be driven deterministically; the actual card choice is delegated to the
ShuffleEngine when the ceremony enters the selecting stage.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from app.services.oracle.deck import OracleCard
from app.services.oracle.shuffle import ShuffleEngine


class Clock(Protocol):
    def now(self) -> float:
        ...


class MonotonicClock:
    def now(self) -> float:
        return time.monotonic()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += seconds


class CeremonyState(str, Enum):
    IDLE = "idle"
    SHUFFLING = "shuffling"
    SELECTING = "selecting"
    REVEALING = "revealing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATES = (CeremonyState.COMPLETED, CeremonyState.CANCELLED)


@dataclass(frozen=True)
class CeremonyDurations:
    """Seconds spent in each timed stage."""
    shuffling: float = 2.0
    selecting: float = 1.0
    revealing: float = 1.5


class ShuffleCeremony:
    """Drives one draw through the ceremony stages."""

    def __init__(
        self,
        engine: ShuffleEngine,
        clock: Optional[Clock] = None,
        durations: Optional[CeremonyDurations] = None
    ):
        self.engine = engine
        self.clock = clock or MonotonicClock()
        self.durations = durations or CeremonyDurations()
        self.state = CeremonyState.IDLE
        self.selected_card: Optional[OracleCard] = None
        self._stage_started_at: Optional[float] = None

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def start(self) -> CeremonyState:
        if self.state != CeremonyState.IDLE:
            raise RuntimeError(f"Ceremony already started (state: {self.state.value})")
        self._enter(CeremonyState.SHUFFLING)
        return self.state

    def cancel(self) -> CeremonyState:
        if not self.is_finished:
            self.state = CeremonyState.CANCELLED
            self._stage_started_at = None
        return self.state

    def tick(self) -> CeremonyState:
        """Advance through every stage whose duration has elapsed."""
        while not self.is_finished and self.state != CeremonyState.IDLE:
            elapsed = self.clock.now() - self._stage_started_at
            if elapsed < self._duration_of(self.state):
                break
            self._advance()
        return self.state

    def _advance(self) -> None:
        if self.state == CeremonyState.SHUFFLING:
            self._enter(CeremonyState.SELECTING)
            self.selected_card = self.engine.draw()
        elif self.state == CeremonyState.SELECTING:
            self._enter(CeremonyState.REVEALING)
        elif self.state == CeremonyState.REVEALING:
            self.state = CeremonyState.COMPLETED

    def _enter(self, state: CeremonyState) -> None:
        # Later stages start from the previous deadline so a late tick does not stretch them
        if self._stage_started_at is None:
            self._stage_started_at = self.clock.now()
        else:
            self._stage_started_at += self._duration_of(self.state)
        self.state = state

    def _duration_of(self, state: CeremonyState) -> float:
        return {
            CeremonyState.SHUFFLING: self.durations.shuffling,
            CeremonyState.SELECTING: self.durations.selecting,
            CeremonyState.REVEALING: self.durations.revealing,
        }.get(state, 0.0)
