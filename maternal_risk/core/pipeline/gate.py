"""
Staleness Confirmation Gate

Decides whether an operator must explicitly agree to submit a payload built
partly from outdated records. One stale source is accepted silently; two or
more pause the run until the operator confirms or declines.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

# Stale source count at which confirmation becomes mandatory
CONFIRMATION_THRESHOLD = 2

_SOURCE_LABELS = {
    "labworks": "Lab results",
    "triages": "Triage vitals",
    "ultrasounds": "Ultrasound findings",
}


@dataclass(frozen=True)
class GateDecision:
    """Outcome of the staleness gate for one run."""
    requires_confirmation: bool
    outdated: List[str] = field(default_factory=list)
    message: str = ""

    @property
    def stale_count(self) -> int:
        return len(self.outdated)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requires_confirmation": self.requires_confirmation,
            "outdated": list(self.outdated),
            "message": self.message,
        }


def build_confirmation_message(outdated: Sequence[str], threshold_days: int) -> str:
    labels = [_SOURCE_LABELS.get(name, name) for name in outdated]
    return (
        f"The following data is missing or more than {threshold_days} days old:\n- "
        + "\n- ".join(labels)
        + "\n\nAffected fields will be submitted as \"Unknown\". "
        "Proceeding may affect the accuracy of the risk assessment."
    )


def evaluate_gate(outdated: Sequence[str], threshold_days: int) -> GateDecision:
    """Apply the confirmation threshold to a list of stale source names."""
    outdated = list(outdated)
    if len(outdated) < CONFIRMATION_THRESHOLD:
        return GateDecision(requires_confirmation=False, outdated=outdated)
    return GateDecision(
        requires_confirmation=True,
        outdated=outdated,
        message=build_confirmation_message(outdated, threshold_days),
    )
