"""
Alert Service Client

Stores patient alerts through the generic medical-record endpoint.
"""
from typing import Any, Dict

import httpx

from maternal_risk.utils import AlertPersistenceError
from .http import ServiceClient, error_text


class AlertService(ServiceClient):
    """Create alerts at `/patients/medical/alert`."""

    service_name = "alerts"

    async def create_alert(self, patient_id: str, alert_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Persist an alert for a patient.

        Args:
            patient_id: The patient the alert belongs to
            alert_data: {"alert": message, "flagged": bool, ...}

        Returns:
            The created alert record as returned by the backend
        """
        if not patient_id:
            raise ValueError("Patient ID is required to create alert")
        if not alert_data or not alert_data.get("alert"):
            raise ValueError("Alert data with alert message is required")
        if not self.is_configured:
            raise AlertPersistenceError("Alert service URL is not configured", patient_id=patient_id)

        try:
            async with self._session() as client:
                response = await client.post(
                    self._url("patients/medical/alert"),
                    json={"patientId": patient_id, **alert_data},
                    headers=self._headers(),
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            raise AlertPersistenceError(
                f"Alert service unreachable: {exc!r}", patient_id=patient_id
            ) from exc

        if not response.is_success:
            raise AlertPersistenceError(
                f"Creating alert failed: {error_text(response)}",
                patient_id=patient_id,
                details={"status_code": response.status_code},
            )

        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}
