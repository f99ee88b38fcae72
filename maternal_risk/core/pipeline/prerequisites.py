"""
Missing-Prerequisite Checker

A risk assessment needs at least one patient history and one triage record.
The check runs before any payload assembly or network call; a failure routes
the caller to the screening step that captures the missing record.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

from maternal_risk.core.records import PatientSnapshot, RecordType
from maternal_risk.utils import MissingPrerequisiteError


@dataclass(frozen=True)
class RemediationStep:
    """Screening-flow step that captures a missing record."""
    step_id: str
    name: str
    component: str
    record_type: RecordType

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.step_id,
            "name": self.name,
            "component": self.component,
            "record_type": self.record_type.value,
        }


# Ordered: history is requested before triage
REMEDIATION_STEPS = (
    RemediationStep("history", "Patient History", "PatientHistory", RecordType.HISTORY),
    RemediationStep("triage", "Triage", "Triage", RecordType.TRIAGE),
)

_STEPS_BY_ID = {step.step_id: step for step in REMEDIATION_STEPS}


def find_missing_prerequisites(snapshot: PatientSnapshot) -> List[str]:
    """Step ids for every mandatory collection that is empty, in flow order."""
    return [
        step.step_id
        for step in REMEDIATION_STEPS
        if not snapshot.records(step.record_type)
    ]


def require_prerequisites(snapshot: PatientSnapshot) -> None:
    """Raise MissingPrerequisiteError if any mandatory record is absent."""
    missing = find_missing_prerequisites(snapshot)
    if missing:
        raise MissingPrerequisiteError(missing)


def remediation_step(step_id: str) -> RemediationStep:
    return _STEPS_BY_ID[step_id]
