"""
Pipeline State Machine

idle → prerequisite_check → remediation
                          → staleness_gate → awaiting_confirmation → cancelled
                                                                   → submitting
                                           → submitting → failed
                                                        → enriching → complete

Remediation, cancelled and complete are non-error terminal states. Failed is
only reachable from submitting (primary scoring failure).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from maternal_risk.utils import PipelineStateError, get_logger

logger = get_logger(__name__)


class PipelineState(str, Enum):
    IDLE                  = "idle"
    PREREQUISITE_CHECK    = "prerequisite_check"
    REMEDIATION           = "remediation"
    STALENESS_GATE        = "staleness_gate"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CANCELLED             = "cancelled"
    SUBMITTING            = "submitting"
    FAILED                = "failed"
    ENRICHING             = "enriching"
    COMPLETE              = "complete"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: FrozenSet[PipelineState] = frozenset({
    PipelineState.REMEDIATION,
    PipelineState.CANCELLED,
    PipelineState.FAILED,
    PipelineState.COMPLETE,
})

_TRANSITIONS: Dict[PipelineState, FrozenSet[PipelineState]] = {
    PipelineState.IDLE: frozenset({PipelineState.PREREQUISITE_CHECK}),
    PipelineState.PREREQUISITE_CHECK: frozenset({
        PipelineState.REMEDIATION,
        PipelineState.STALENESS_GATE,
    }),
    PipelineState.STALENESS_GATE: frozenset({
        PipelineState.AWAITING_CONFIRMATION,
        PipelineState.SUBMITTING,
    }),
    PipelineState.AWAITING_CONFIRMATION: frozenset({
        PipelineState.CANCELLED,
        PipelineState.SUBMITTING,
    }),
    PipelineState.SUBMITTING: frozenset({
        PipelineState.FAILED,
        PipelineState.ENRICHING,
    }),
    PipelineState.ENRICHING: frozenset({PipelineState.COMPLETE}),
}


def can_transition(current: PipelineState, target: PipelineState) -> bool:
    return target in _TRANSITIONS.get(current, frozenset())


@dataclass
class PipelineRun:
    """Tracks the state of one user-initiated submission."""
    patient_id: str
    state: PipelineState = PipelineState.IDLE
    history: List[Tuple[PipelineState, datetime]] = field(default_factory=list)

    def __post_init__(self):
        if not self.history:
            self.history.append((self.state, datetime.now(timezone.utc)))

    def advance(self, target: PipelineState) -> PipelineState:
        if not can_transition(self.state, target):
            raise PipelineStateError(self.state.value, target.value)
        logger.debug(f"Pipeline [{self.patient_id}]: {self.state.value} -> {target.value}")
        self.state = target
        self.history.append((target, datetime.now(timezone.utc)))
        return target

    @property
    def states(self) -> List[PipelineState]:
        return [state for state, _ in self.history]
