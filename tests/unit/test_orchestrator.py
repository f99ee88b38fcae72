"""
Unit Tests for the Submission Orchestrator

Runs the pipeline end to end against mocked services and checks the order
and gating of every side effect.
"""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock

from maternal_risk.core.pipeline import (
    Classification,
    PipelineState,
    SubmissionResult,
    plan_submission,
)
from maternal_risk.core.pipeline.orchestrator import EXPLANATION_RECORD_TYPE
from maternal_risk.core.records import PatientSnapshot
from maternal_risk.utils import FatalSubmissionError, NonFatalEnrichmentError

FIXED_NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
THRESHOLD_DAYS = 30


def _make_stale(patient_data, days_ago, *collections, age=45):
    for name in collections:
        for record in patient_data[name]:
            record["date"] = days_ago(age)
    return PatientSnapshot.from_dict(patient_data)


class TestPlanSubmission:
    """Tests for the pure pre-flight step."""

    def test_fresh_snapshot_goes_straight_to_submitting(self, snapshot):
        plan = plan_submission(snapshot, THRESHOLD_DAYS, FIXED_NOW)
        assert plan.next_state is PipelineState.SUBMITTING
        assert plan.outdated == []
        assert plan.payload["SYSTOLIC"] == 120

    def test_missing_prerequisites_skip_payload(self):
        plan = plan_submission(PatientSnapshot(patient_id="P-9"), THRESHOLD_DAYS, FIXED_NOW)
        assert plan.next_state is PipelineState.REMEDIATION
        assert plan.missing_steps == ["history", "triage"]
        assert plan.payload == {}
        assert plan.to_dict()["remediation"][0]["component"] == "PatientHistory"

    def test_two_stale_sources_await_confirmation(self, patient_data, days_ago):
        snapshot = _make_stale(patient_data, days_ago, "labworks", "ultrasounds")
        plan = plan_submission(snapshot, THRESHOLD_DAYS, FIXED_NOW)
        assert plan.next_state is PipelineState.AWAITING_CONFIRMATION
        assert plan.requires_confirmation
        assert plan.payload["HAEMOGLOBIN"] == "Unknown"
        assert "HAEMOGLOBIN" in plan.to_dict()["unknown_fields"]

    def test_deterministic(self, snapshot):
        first = plan_submission(snapshot, THRESHOLD_DAYS, FIXED_NOW)
        second = plan_submission(snapshot, THRESHOLD_DAYS, FIXED_NOW)
        assert first == second


@pytest.mark.asyncio
class TestPipelineRun:
    """Tests for RiskAssessmentPipeline.run."""

    async def test_full_success_call_order(
        self, pipeline, risk_scoring, factor_extraction, alert_service, patient_cache, notifier
    ):
        calls = []
        risk_scoring.submit.side_effect = lambda *a, **k: calls.append("scoring") or SubmissionResult(
            Classification.HIGH, {"classification": "High"}
        )
        alert_service.create_alert.side_effect = lambda *a, **k: calls.append("alert") or {"id": "A-1"}
        factor_extraction.submit.side_effect = lambda *a, **k: calls.append("extraction") or {"features": "x"}
        patient_cache.refresh.side_effect = lambda *a, **k: calls.append("refresh") or []
        notifier.emit.side_effect = lambda *a, **k: calls.append("emit") or 1

        outcome = await pipeline.run("P-001", operator_id="u-7", tenant_scope="clinic_a")

        assert calls == ["scoring", "alert", "extraction", "refresh", "emit"]
        assert outcome.success
        assert outcome.state is PipelineState.COMPLETE
        assert outcome.enrichment_succeeded
        assert outcome.alert.flagged is True
        patient_cache.refresh.assert_awaited_once_with("clinic_a")

        event = notifier.emit.await_args.args[0]
        assert event.record_type == EXPLANATION_RECORD_TYPE
        assert event.patient_id == "P-001"
        assert event.record_data == {"features": "x"}

    async def test_both_phases_receive_same_payload(self, pipeline, risk_scoring, factor_extraction):
        await pipeline.run("P-001", operator_id="u-7")

        primary_payload, operator, tenant = risk_scoring.submit.await_args.args
        secondary_payload = factor_extraction.submit.await_args.args[0]
        assert primary_payload == secondary_payload
        assert operator == "u-7"
        assert tenant == "public"

    async def test_remediation_makes_no_submission(
        self, pipeline, record_store, risk_scoring, factor_extraction, alert_service
    ):
        record_store.fetch = AsyncMock(return_value=PatientSnapshot(patient_id="P-9"))

        outcome = await pipeline.run("P-9", operator_id="u-7")

        assert outcome.state is PipelineState.REMEDIATION
        assert outcome.missing_steps == ["history", "triage"]
        risk_scoring.submit.assert_not_awaited()
        factor_extraction.submit.assert_not_awaited()
        alert_service.create_alert.assert_not_awaited()

    async def test_one_stale_source_submits_without_confirmation(
        self, pipeline, record_store, risk_scoring, patient_data, days_ago
    ):
        record_store.fetch = AsyncMock(return_value=_make_stale(patient_data, days_ago, "labworks"))

        outcome = await pipeline.run("P-001", operator_id="u-7")

        assert outcome.success
        assert outcome.outdated == ["labworks"]
        assert PipelineState.AWAITING_CONFIRMATION not in outcome.states
        payload = risk_scoring.submit.await_args.args[0]
        assert payload["HAEMOGLOBIN"] == "Unknown"

    async def test_two_stale_sources_pause(
        self, pipeline, record_store, risk_scoring, patient_data, days_ago
    ):
        record_store.fetch = AsyncMock(
            return_value=_make_stale(patient_data, days_ago, "labworks", "triages")
        )

        outcome = await pipeline.run("P-001", operator_id="u-7")

        assert outcome.state is PipelineState.AWAITING_CONFIRMATION
        assert "Lab results" in outcome.confirmation_message
        risk_scoring.submit.assert_not_awaited()

    async def test_declined_confirmation_cancels(
        self, pipeline, record_store, risk_scoring, patient_data, days_ago
    ):
        record_store.fetch = AsyncMock(
            return_value=_make_stale(patient_data, days_ago, "labworks", "triages")
        )

        outcome = await pipeline.run("P-001", operator_id="u-7", confirm_stale=False)

        assert outcome.state is PipelineState.CANCELLED
        assert not outcome.success
        risk_scoring.submit.assert_not_awaited()

    async def test_confirmed_stale_submission(
        self, pipeline, record_store, risk_scoring, patient_data, days_ago
    ):
        record_store.fetch = AsyncMock(
            return_value=_make_stale(patient_data, days_ago, "labworks", "triages", "ultrasounds")
        )

        outcome = await pipeline.run("P-001", operator_id="u-7", confirm_stale=True)

        assert outcome.success
        payload = risk_scoring.submit.await_args.args[0]
        assert payload["SYSTOLIC"] == "Unknown"
        assert payload["FETAL_HEART_RATE"] == "Unknown"
        assert payload["PREECLAMPSIA_HISTORY"] == "Yes"

    async def test_primary_failure_is_fatal(
        self, pipeline, risk_scoring, factor_extraction, alert_service, patient_cache, notifier
    ):
        risk_scoring.submit.side_effect = FatalSubmissionError(
            "Primary submission failed: model offline", status_code=500
        )

        with pytest.raises(FatalSubmissionError) as exc_info:
            await pipeline.run("P-001", operator_id="u-7")

        assert exc_info.value.message == "Primary submission failed: model offline"
        assert exc_info.value.details["states"][-1] == PipelineState.FAILED.value
        alert_service.create_alert.assert_not_awaited()
        factor_extraction.submit.assert_not_awaited()
        patient_cache.refresh.assert_not_awaited()
        notifier.emit.assert_not_awaited()

    async def test_enrichment_timeout_keeps_alert(
        self, pipeline, factor_extraction, alert_service, patient_cache, notifier
    ):
        factor_extraction.submit.side_effect = NonFatalEnrichmentError("Factor extraction timed out")

        outcome = await pipeline.run("P-001", operator_id="u-7")

        assert outcome.state is PipelineState.COMPLETE
        assert outcome.alert is not None
        assert outcome.alert.flagged is True
        assert not outcome.enrichment_succeeded
        assert outcome.enrichment_error == "Factor extraction timed out"
        alert_service.create_alert.assert_awaited_once()
        patient_cache.refresh.assert_not_awaited()
        notifier.emit.assert_not_awaited()

    async def test_unexpected_enrichment_error_is_contained(self, pipeline, factor_extraction):
        factor_extraction.submit.side_effect = RuntimeError("socket closed")

        outcome = await pipeline.run("P-001", operator_id="u-7")

        assert outcome.success
        assert outcome.enrichment_error == "socket closed"

    async def test_no_classification_no_alert(self, pipeline, risk_scoring, alert_service):
        risk_scoring.submit.return_value = SubmissionResult(None, {"status": "ok"})

        outcome = await pipeline.run("P-001", operator_id="u-7")

        assert outcome.success
        assert outcome.alert is None
        alert_service.create_alert.assert_not_awaited()

    async def test_alert_failure_does_not_abort(self, pipeline, alert_service, factor_extraction):
        alert_service.create_alert.side_effect = RuntimeError("alerts down")

        outcome = await pipeline.run("P-001", operator_id="u-7")

        assert outcome.success
        assert outcome.alert is None
        factor_extraction.submit.assert_awaited_once()

    async def test_announce_failures_are_contained(self, pipeline, patient_cache, notifier):
        patient_cache.refresh.side_effect = RuntimeError("cache locked")

        outcome = await pipeline.run("P-001", operator_id="u-7")

        assert outcome.success
        notifier.emit.assert_awaited_once()

    async def test_outcome_to_dict(self, pipeline):
        outcome = await pipeline.run("P-001", operator_id="u-7")
        data = outcome.to_dict()

        assert data["status"] == "complete"
        assert data["classification"] == "High"
        assert data["raw_score"] == 0.91
        assert data["states"][0] == "idle"
        assert data["alert"]["flagged"] is True
