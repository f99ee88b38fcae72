"""
Alerting Dispatcher

Turns a primary risk classification into a persisted, flagged alert.
Persistence is best-effort: a failing alert service is logged and never
aborts the run.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from maternal_risk.utils import AlertPersistenceError, get_logger
from .base import Alert, Classification

if TYPE_CHECKING:
    from maternal_risk.services.alerts import AlertService

logger = get_logger(__name__)

ALERT_MESSAGES = {
    Classification.HIGH: (
        "High risk detected for this patient. "
        "Immediate clinical review is recommended."
    ),
    Classification.MID: (
        "Mid risk detected for this patient. "
        "Schedule a closer follow-up and monitor vitals."
    ),
    Classification.LOW: (
        "Low risk detected for this patient. "
        "Continue routine antenatal care."
    ),
}


def build_alert(
    patient_id: str,
    classification: Optional[Classification],
    now: Optional[datetime] = None,
) -> Optional[Alert]:
    """Alert for a classification, or None when there is nothing to report."""
    if classification is None or classification not in ALERT_MESSAGES:
        return None
    return Alert(
        patient_id=patient_id,
        message=ALERT_MESSAGES[classification],
        flagged=True,
        created_at=now or datetime.now(timezone.utc),
    )


class AlertDispatcher:
    """Builds and persists alerts through the alert service."""

    def __init__(self, alert_service: "AlertService"):
        self.alert_service = alert_service

    async def dispatch(
        self,
        patient_id: str,
        classification: Optional[Classification],
    ) -> Optional[Alert]:
        """
        Persist the alert for `classification`.

        Returns the stored alert, or None if no alert applies or persisting
        it failed.
        """
        alert = build_alert(patient_id, classification)
        if alert is None:
            logger.info(f"AlertDispatcher [{patient_id}]: no classification, no alert")
            return None

        try:
            stored = await self.alert_service.create_alert(
                patient_id,
                {"alert": alert.message, "flagged": alert.flagged},
            )
        except AlertPersistenceError as exc:
            logger.error(f"AlertDispatcher [{patient_id}]: {exc.message}")
            return None
        except Exception as exc:
            logger.error(
                f"AlertDispatcher [{patient_id}]: alert service raised {exc}",
                exc_info=True
            )
            return None

        alert_id = None
        if isinstance(stored, dict):
            alert_id = stored.get("id") or stored.get("_id")
        logger.info(
            f"AlertDispatcher [{patient_id}]: {classification.value} alert stored"
        )
        return replace(alert, alert_id=str(alert_id) if alert_id else None)
