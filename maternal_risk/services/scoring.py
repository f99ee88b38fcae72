"""
Scoring Service Clients

Two independently-reliable external services receive the assembled payload:

1. RiskScoringClient      — required. Returns the risk classification.
                            Any failure raises FatalSubmissionError.
2. FactorExtractionClient — best-effort. Extracts contributing factors and
                            produces the explanation record. Any failure
                            raises NonFatalEnrichmentError.
"""
from typing import Any, Dict

import httpx

from maternal_risk.core.pipeline.base import SubmissionResult
from maternal_risk.utils import FatalSubmissionError, NonFatalEnrichmentError, get_logger
from .http import ServiceClient, error_text

logger = get_logger(__name__)


def wrap_payload(payload: Dict[str, Any], operator_id: str, tenant_scope: str) -> Dict[str, Any]:
    """Request body expected by the primary scoring service."""
    return {
        "data": dict(payload),
        "user_id": operator_id,
        "schema_name": tenant_scope,
    }


class RiskScoringClient(ServiceClient):
    """Primary risk-scoring service."""

    service_name = "risk_scoring"

    async def submit(
        self,
        payload: Dict[str, Any],
        operator_id: str,
        tenant_scope: str,
    ) -> SubmissionResult:
        if not self.is_configured:
            raise FatalSubmissionError(
                "Risk scoring service URL is not configured",
                service=self.service_name,
            )

        body = wrap_payload(payload, operator_id, tenant_scope)
        try:
            async with self._session() as client:
                response = await client.post(
                    self._url(),
                    json=body,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            logger.error(f"Risk scoring transport failure: {exc!r}")
            raise FatalSubmissionError(
                f"Primary submission failed: {exc}",
                service=self.service_name,
            ) from exc

        if not response.is_success:
            message = error_text(response)
            logger.error(f"Risk scoring returned {response.status_code}: {message}")
            raise FatalSubmissionError(
                f"Primary submission failed: {message}",
                service=self.service_name,
                status_code=response.status_code,
            )

        try:
            result = SubmissionResult.from_response(response.json())
        except ValueError as exc:
            raise FatalSubmissionError(
                "Primary submission returned a non-JSON response",
                service=self.service_name,
                status_code=response.status_code,
            ) from exc

        logger.info(
            "Risk scoring succeeded: classification="
            f"{result.classification.value if result.classification else 'none'}"
        )
        return result


class FactorExtractionClient(ServiceClient):
    """Secondary factor-extraction service."""

    service_name = "factor_extraction"

    async def submit(
        self,
        payload: Dict[str, Any],
        operator_id: str,
        tenant_scope: str,
    ) -> Any:
        if not self.is_configured:
            raise NonFatalEnrichmentError("Factor extraction service URL is not configured")

        headers = self._headers({
            "X-Operator-ID": str(operator_id),
            "X-Tenant-ID": tenant_scope,
        })
        try:
            async with self._session() as client:
                response = await client.post(
                    self._url(),
                    json=dict(payload),
                    headers=headers,
                    timeout=self.timeout,
                )
        except httpx.HTTPError as exc:
            raise NonFatalEnrichmentError(f"Factor extraction failed: {exc!r}") from exc

        if not response.is_success:
            raise NonFatalEnrichmentError(
                f"Factor extraction failed: {error_text(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise NonFatalEnrichmentError(
                "Factor extraction returned a non-JSON response",
                status_code=response.status_code,
            ) from exc
