"""
Integration Tests for the Risk Assessment API

Exercises the FastAPI routes through httpx.ASGITransport with the pipeline's
collaborators replaced by mocks.
"""
import pytest
import httpx
from unittest.mock import AsyncMock

from maternal_risk.core.records import PatientSnapshot
from maternal_risk.main import app
from maternal_risk.services import PatientRecordStore
from maternal_risk.utils import FatalSubmissionError, RecordStoreError


@pytest.fixture
async def async_client(pipeline):
    """Async test client with the mocked pipeline installed."""
    original = app.state.pipeline
    app.state.pipeline = pipeline
    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app),
            base_url="http://test"
        ) as client:
            yield client
    finally:
        app.state.pipeline = original


def _stale(patient_data, days_ago, *collections):
    for name in collections:
        for record in patient_data[name]:
            record["date"] = days_ago(60)
    return PatientSnapshot.from_dict(patient_data)


@pytest.mark.asyncio
class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_root_endpoint(self, async_client):
        """Test root endpoint returns health info."""
        response = await async_client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    async def test_health_reports_services(self, async_client):
        """Test /health lists configured collaborators."""
        response = await async_client.get("/health")
        assert response.status_code == 200

        services = response.json()["services"]
        assert services == {
            "record_store": True,
            "risk_scoring": True,
            "factor_extraction": True,
        }


@pytest.mark.asyncio
class TestRiskAssessmentEndpoint:
    """Tests for POST /api/v1/patients/{id}/risk-assessment."""

    async def test_complete_assessment(self, async_client, notifier):
        """Fresh records run both phases and raise an alert."""
        response = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment",
            json={"operator_id": "u-7", "tenant_scope": "public"},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "complete"
        assert data["success"] is True
        assert data["classification"] == "High"
        assert data["alert"]["flagged"] is True
        assert data["enrichment_succeeded"] is True
        notifier.emit.assert_awaited_once()

    async def test_missing_operator_rejected(self, async_client):
        """operator_id is mandatory."""
        response = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment", json={"operator_id": ""}
        )
        assert response.status_code == 422

    async def test_remediation(self, async_client, record_store):
        """Missing history and triage route to the remediation forms."""
        record_store.fetch = AsyncMock(return_value=PatientSnapshot(patient_id="P-002"))

        response = await async_client.post(
            "/api/v1/patients/P-002/risk-assessment", json={"operator_id": "u-7"}
        )
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "remediation"
        assert data["missing_steps"] == ["history", "triage"]
        assert data["remediation"][0]["component"] == "PatientHistory"

    async def test_stale_confirmation_flow(
        self, async_client, record_store, risk_scoring, patient_data, days_ago
    ):
        """Two stale sources pause the run until the operator confirms."""
        record_store.fetch = AsyncMock(
            return_value=_stale(patient_data, days_ago, "labworks", "ultrasounds")
        )

        first = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment", json={"operator_id": "u-7"}
        )
        assert first.json()["status"] == "awaiting_confirmation"
        assert "Ultrasound findings" in first.json()["confirmation_message"]
        risk_scoring.submit.assert_not_awaited()

        declined = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment",
            json={"operator_id": "u-7", "confirm_stale": False},
        )
        assert declined.json()["status"] == "cancelled"

        confirmed = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment",
            json={"operator_id": "u-7", "confirm_stale": True},
        )
        assert confirmed.json()["status"] == "complete"
        risk_scoring.submit.assert_awaited_once()

    async def test_primary_failure_returns_502(self, async_client, risk_scoring, alert_service):
        """A fatal scoring failure surfaces the service error."""
        risk_scoring.submit.side_effect = FatalSubmissionError(
            "Primary submission failed: model offline", status_code=500
        )

        response = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment", json={"operator_id": "u-7"}
        )
        assert response.status_code == 502

        detail = response.json()["detail"]
        assert detail["message"] == "Primary submission failed: model offline"
        assert detail["error"] == "SUBMISSION_FAILED"
        alert_service.create_alert.assert_not_awaited()

    async def test_unknown_patient_returns_404(self, async_client, record_store):
        record_store.fetch = AsyncMock(
            side_effect=RecordStoreError("Patient not found", patient_id="P-404", status_code=404)
        )

        response = await async_client.post(
            "/api/v1/patients/P-404/risk-assessment", json={"operator_id": "u-7"}
        )
        assert response.status_code == 404

    async def test_record_store_outage_returns_502(self, async_client, record_store):
        record_store.fetch = AsyncMock(side_effect=RecordStoreError("Record store unreachable"))

        response = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment", json={"operator_id": "u-7"}
        )
        assert response.status_code == 502


    async def test_malformed_record_store_body_returns_502(self, async_client, pipeline):
        """A non-JSON record store reply maps to 502, not a server error."""
        pipeline.record_store = PatientRecordStore(
            "http://records.test/api",
            client=httpx.AsyncClient(transport=httpx.MockTransport(
                lambda r: httpx.Response(200, text="<html>gateway</html>")
            )),
        )

        response = await async_client.post(
            "/api/v1/patients/P-001/risk-assessment", json={"operator_id": "u-7"}
        )
        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "RECORD_STORE_ERROR"

        preview = await async_client.get("/api/v1/patients/P-001/risk-assessment/preview")
        assert preview.status_code == 502


@pytest.mark.asyncio
class TestPreviewEndpoint:
    """Tests for the pre-flight preview."""

    async def test_preview_payload(self, async_client, risk_scoring):
        response = await async_client.get("/api/v1/patients/P-001/risk-assessment/preview")
        assert response.status_code == 200

        data = response.json()
        assert data["next_state"] == "submitting"
        assert data["payload"]["SYSTOLIC"] == 120
        assert "EXERCISE" in data["unknown_fields"]
        risk_scoring.submit.assert_not_awaited()

    async def test_preview_stale(self, async_client, record_store, patient_data, days_ago):
        record_store.fetch = AsyncMock(
            return_value=_stale(patient_data, days_ago, "labworks", "triages")
        )

        response = await async_client.get("/api/v1/patients/P-001/risk-assessment/preview")
        data = response.json()
        assert data["next_state"] == "awaiting_confirmation"
        assert data["gate"]["requires_confirmation"] is True
        assert data["payload"]["SYSTOLIC"] == "Unknown"


@pytest.mark.asyncio
class TestPatientsEndpoint:
    """Tests for the cached patient list."""

    async def test_list_patients(self, async_client, patient_cache):
        response = await async_client.get("/api/v1/patients", params={"tenant_scope": "clinic_a"})
        assert response.status_code == 200

        data = response.json()
        assert data["tenant_scope"] == "clinic_a"
        assert data["count"] == 1
        patient_cache.get_or_refresh.assert_awaited_once_with("clinic_a")


@pytest.mark.asyncio
class TestDocumentation:
    """Tests for API documentation endpoints."""

    async def test_openapi_schema(self, async_client):
        response = await async_client.get("/openapi.json")
        assert response.status_code == 200

        paths = response.json()["paths"]
        assert "/api/v1/patients/{patient_id}/risk-assessment" in paths

    async def test_docs_endpoint(self, async_client):
        response = await async_client.get("/docs")
        assert response.status_code == 200
