"""
Risk Pipeline — Base Types

Data contracts passed between the submission phases and the alerting step.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class Classification(str, Enum):
    """
    Risk class returned by the primary scoring service.

    HIGH – refer for immediate clinical review
    MID  – closer follow-up at the next visit
    LOW  – routine antenatal care
    """
    HIGH = "High"
    MID  = "Mid"
    LOW  = "Low"

    @classmethod
    def parse(cls, value: Any) -> Optional["Classification"]:
        """
        Case-insensitive parse of a scoring label.

        Accepts "High", "mid", "Low Risk", "medium"/"moderate" (as Mid).
        Returns None for empty or unrecognised labels.
        """
        if not isinstance(value, str):
            return None
        label = value.strip().lower()
        if label.endswith(" risk"):
            label = label[: -len(" risk")].strip()
        return _LABELS.get(label)


_LABELS = {
    "high": Classification.HIGH,
    "mid": Classification.MID,
    "medium": Classification.MID,
    "moderate": Classification.MID,
    "low": Classification.LOW,
}

# Response keys the scoring service has used for the class label
CLASSIFICATION_KEYS = ("classification", "risk_level", "riskLevel", "risklevel")


@dataclass(frozen=True)
class SubmissionResult:
    """Parsed primary scoring response."""
    classification: Optional[Classification]
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def raw_score(self) -> Any:
        return self.raw.get("rawScore", self.raw.get("score"))

    @classmethod
    def from_response(cls, body: Any) -> "SubmissionResult":
        raw = body if isinstance(body, dict) else {"response": body}
        label = next((raw[k] for k in CLASSIFICATION_KEYS if raw.get(k)), None)
        return cls(classification=Classification.parse(label), raw=raw)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classification": self.classification.value if self.classification else None,
            "raw_score": self.raw_score,
            "raw": self.raw,
        }


@dataclass(frozen=True)
class Alert:
    """A persisted risk alert for a patient."""
    patient_id: str
    message: str
    flagged: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    alert_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "patient_id": self.patient_id,
            "message": self.message,
            "flagged": self.flagged,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class RecordEvent:
    """Notification that a record landed for a patient."""
    patient_id: str
    record_type: str
    record_data: Any
    event_type: str = "created"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patientId": self.patient_id,
            "recordType": self.record_type,
            "recordData": self.record_data,
            "eventType": self.event_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
