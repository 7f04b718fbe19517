from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Dict, Set


class PollPhase(str, enum.Enum):
    SUBMITTED = "SUBMITTED"
    POLLING = "POLLING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    TIMED_OUT = "TIMED_OUT"
    CANCELLED = "CANCELLED"


_ALLOWED: Dict[PollPhase, Set[PollPhase]] = {
    PollPhase.SUBMITTED: {PollPhase.POLLING, PollPhase.CANCELLED},
    PollPhase.POLLING: {
        PollPhase.POLLING,
        PollPhase.SUCCEEDED,
        PollPhase.FAILED,
        PollPhase.TIMED_OUT,
        PollPhase.CANCELLED,
    },
    PollPhase.SUCCEEDED: set(),
    PollPhase.FAILED: set(),
    PollPhase.TIMED_OUT: set(),
    PollPhase.CANCELLED: set(),
}

TERMINAL_PHASES = frozenset(p for p, nxt in _ALLOWED.items() if not nxt)

@dataclass(frozen=True)
class TransitionError(Exception):
    from_phase: PollPhase
    to_phase: PollPhase
    def __str__(self) -> str:
        return f"invalid transition: {self.from_phase} -> {self.to_phase}"

def ensure_transition_allowed(from_phase: PollPhase, to_phase: PollPhase) -> None:
    allowed = _ALLOWED.get(from_phase, set())
    if to_phase not in allowed:
        raise TransitionError(from_phase=from_phase, to_phase=to_phase)


class PollTracker:
    """Current phase of one poll loop; every move goes through the transition table."""

    def __init__(self) -> None:
        self.phase = PollPhase.SUBMITTED
        self.history = [PollPhase.SUBMITTED]

    def move(self, to_phase: PollPhase) -> None:
        ensure_transition_allowed(self.phase, to_phase)
        self.phase = to_phase
        self.history.append(to_phase)

    @property
    def terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES
