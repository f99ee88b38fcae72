"""
Patient Record Store Client

Fetches patients and their record collections from the record manager
backend. A snapshot is fetched fresh for every pipeline run.
"""
from typing import Any, Dict, List, Mapping

import httpx

from maternal_risk.core.records import PatientSnapshot
from maternal_risk.utils import RecordStoreError, get_logger
from .http import ServiceClient, error_text

logger = get_logger(__name__)


class PatientRecordStore(ServiceClient):
    """Read access to `/patients` on the record manager backend."""

    service_name = "record_store"

    async def _get_json(self, path: str, patient_id: str = "unknown", **headers: str) -> Any:
        if not self.is_configured:
            raise RecordStoreError("Record store URL is not configured", patient_id=patient_id)
        try:
            async with self._session() as client:
                response = await client.get(
                    self._url(path),
                    headers=self._headers(headers or None),
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            raise RecordStoreError(
                f"Record store unreachable: {exc!r}", patient_id=patient_id
            ) from exc

        if not response.is_success:
            raise RecordStoreError(
                error_text(response),
                patient_id=patient_id,
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise RecordStoreError(
                "Record store returned a non-JSON response",
                patient_id=patient_id,
                status_code=response.status_code,
            ) from exc

    async def fetch(self, patient_id: str) -> PatientSnapshot:
        """Patient demographics plus all five record collections."""
        data = await self._get_json(f"patients/{patient_id}", patient_id=patient_id)
        if not isinstance(data, Mapping):
            raise RecordStoreError(
                f"Malformed patient data: expected an object, got {type(data).__name__}",
                patient_id=patient_id,
            )
        try:
            snapshot = PatientSnapshot.from_dict(data)
        except (TypeError, ValueError) as exc:
            raise RecordStoreError(
                f"Malformed patient data: {exc}", patient_id=patient_id
            ) from exc
        logger.debug(
            f"Fetched patient {patient_id}: "
            f"{len(snapshot.histories)} histories, {len(snapshot.triages)} triages, "
            f"{len(snapshot.labworks)} labworks, {len(snapshot.ultrasounds)} ultrasounds"
        )
        return snapshot

    async def list_patients(self, tenant_scope: str) -> List[Dict[str, Any]]:
        """Patient summaries visible to a tenant."""
        data = await self._get_json("patients/my", **{"X-Tenant-ID": tenant_scope})
        if isinstance(data, dict):
            data = data.get("patients", [])
        if not isinstance(data, list):
            raise RecordStoreError(
                f"Malformed patient list: expected an array, got {type(data).__name__}"
            )
        return [p for p in data if isinstance(p, dict)]
