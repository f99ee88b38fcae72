"""
Submission Orchestrator

Runs one risk assessment for one patient:

    fetch snapshot → prerequisite check → staleness gate
        → phase 1: primary risk scoring   (required, failure is fatal)
        → alert for the classification    (best-effort)
        → phase 2: factor extraction      (best-effort)
        → patient cache refresh + realtime notification (phase 2 success only)

The pre-flight (`plan_submission`) is a pure function of the snapshot, the
threshold and the current time. All network side effects live in
`RiskAssessmentPipeline` and are issued sequentially.

Usage:
    pipeline = RiskAssessmentPipeline(record_store, scoring, extraction,
                                      dispatcher, patient_cache, notifier,
                                      threshold_days=30)
    outcome = await pipeline.run("P-001", operator_id="u-7", tenant_scope="public")
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from maternal_risk.core.records import PatientSnapshot
from maternal_risk.utils import (
    FatalSubmissionError,
    MissingPrerequisiteError,
    NonFatalEnrichmentError,
    get_logger,
)
from .alerting import AlertDispatcher
from .base import Alert, RecordEvent, SubmissionResult
from .freshness import Moment, find_outdated
from .gate import GateDecision, evaluate_gate
from .prerequisites import remediation_step, require_prerequisites
from .resolver import assemble_payload, unknown_fields
from .state import PipelineRun, PipelineState

if TYPE_CHECKING:
    from maternal_risk.services import (
        FactorExtractionClient,
        PatientListCache,
        PatientRecordStore,
        RealtimeNotifier,
        RiskScoringClient,
    )

logger = get_logger(__name__)

# Record type announced when the explanation record lands
EXPLANATION_RECORD_TYPE = "explanation"


@dataclass(frozen=True)
class SubmissionPlan:
    """Result of the pure pre-flight step."""
    patient_id: str
    next_state: PipelineState
    missing_steps: List[str] = field(default_factory=list)
    outdated: List[str] = field(default_factory=list)
    gate: Optional[GateDecision] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def requires_confirmation(self) -> bool:
        return self.gate is not None and self.gate.requires_confirmation

    def to_dict(self) -> Dict[str, Any]:
        return {
            "patient_id": self.patient_id,
            "next_state": self.next_state.value,
            "missing_steps": list(self.missing_steps),
            "remediation": [remediation_step(s).to_dict() for s in self.missing_steps],
            "outdated": list(self.outdated),
            "gate": self.gate.to_dict() if self.gate else None,
            "payload": dict(self.payload),
            "unknown_fields": unknown_fields(self.payload),
        }


def plan_submission(
    snapshot: PatientSnapshot,
    threshold_days: int,
    now: Moment,
) -> SubmissionPlan:
    """
    Decide what a run should do with a snapshot, without any I/O.

    Missing prerequisites short-circuit before the payload is assembled.
    """
    try:
        require_prerequisites(snapshot)
    except MissingPrerequisiteError as exc:
        return SubmissionPlan(
            patient_id=snapshot.patient_id,
            next_state=PipelineState.REMEDIATION,
            missing_steps=exc.missing_steps,
        )

    outdated = find_outdated(snapshot, threshold_days, now)
    gate = evaluate_gate(outdated, threshold_days)
    payload = assemble_payload(snapshot, threshold_days, now)

    if gate.requires_confirmation:
        next_state = PipelineState.AWAITING_CONFIRMATION
    else:
        next_state = PipelineState.SUBMITTING

    return SubmissionPlan(
        patient_id=snapshot.patient_id,
        next_state=next_state,
        outdated=outdated,
        gate=gate,
        payload=payload,
    )


@dataclass
class PipelineOutcome:
    """What a run reports back to its caller."""
    patient_id: str
    state: PipelineState
    plan: Optional[SubmissionPlan] = None
    result: Optional[SubmissionResult] = None
    alert: Optional[Alert] = None
    enrichment_succeeded: bool = False
    enrichment_error: Optional[str] = None
    states: List[PipelineState] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.state is PipelineState.COMPLETE

    @property
    def missing_steps(self) -> List[str]:
        return list(self.plan.missing_steps) if self.plan else []

    @property
    def outdated(self) -> List[str]:
        return list(self.plan.outdated) if self.plan else []

    @property
    def confirmation_message(self) -> str:
        if self.plan and self.plan.gate:
            return self.plan.gate.message
        return ""

    def to_dict(self) -> Dict[str, Any]:
        classification = self.result.classification if self.result else None
        return {
            "patient_id": self.patient_id,
            "status": self.state.value,
            "success": self.success,
            "missing_steps": self.missing_steps,
            "remediation": [remediation_step(s).to_dict() for s in self.missing_steps],
            "outdated": self.outdated,
            "confirmation_message": self.confirmation_message,
            "classification": classification.value if classification else None,
            "raw_score": self.result.raw_score if self.result else None,
            "alert": self.alert.to_dict() if self.alert else None,
            "enrichment_succeeded": self.enrichment_succeeded,
            "enrichment_error": self.enrichment_error,
            "states": [s.value for s in self.states],
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RiskAssessmentPipeline:
    """
    Two-phase submission of a patient's assembled risk payload.

    One instance serves many runs; each run fetches its own snapshot and
    keeps no state between runs. Concurrent runs for the same patient are
    not serialised.
    """

    def __init__(
        self,
        record_store: "PatientRecordStore",
        risk_scoring: "RiskScoringClient",
        factor_extraction: "FactorExtractionClient",
        alert_dispatcher: AlertDispatcher,
        patient_cache: "PatientListCache",
        notifier: "RealtimeNotifier",
        threshold_days: int = 30,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.record_store = record_store
        self.risk_scoring = risk_scoring
        self.factor_extraction = factor_extraction
        self.alert_dispatcher = alert_dispatcher
        self.patient_cache = patient_cache
        self.notifier = notifier
        self.threshold_days = threshold_days
        self.clock = clock

    async def preview(self, patient_id: str) -> SubmissionPlan:
        """Pre-flight only: what would be submitted, with no submission."""
        snapshot = await self.record_store.fetch(patient_id)
        return plan_submission(snapshot, self.threshold_days, self.clock())

    async def run(
        self,
        patient_id: str,
        operator_id: str,
        tenant_scope: str = "public",
        confirm_stale: Optional[bool] = None,
    ) -> PipelineOutcome:
        """
        Execute one run.

        Args:
            patient_id: Patient to assess
            operator_id: User submitting the assessment
            tenant_scope: Tenant schema the records belong to
            confirm_stale: Operator's answer to the staleness gate. None
                pauses the run in awaiting_confirmation when the gate
                requires it; False cancels; True proceeds.

        Raises:
            FatalSubmissionError: primary scoring failed. Nothing downstream
                ran.
            RecordStoreError: the snapshot could not be fetched.
        """
        run = PipelineRun(patient_id)
        snapshot = await self.record_store.fetch(patient_id)

        run.advance(PipelineState.PREREQUISITE_CHECK)
        plan = plan_submission(snapshot, self.threshold_days, self.clock())

        if plan.next_state is PipelineState.REMEDIATION:
            run.advance(PipelineState.REMEDIATION)
            logger.info(
                f"Pipeline [{patient_id}]: missing prerequisites "
                f"{plan.missing_steps}, routing to '{plan.missing_steps[0]}'"
            )
            return self._outcome(run, plan)

        run.advance(PipelineState.STALENESS_GATE)
        if plan.outdated:
            logger.info(f"Pipeline [{patient_id}]: outdated sources {plan.outdated}")

        if plan.requires_confirmation:
            run.advance(PipelineState.AWAITING_CONFIRMATION)
            if confirm_stale is None:
                logger.info(f"Pipeline [{patient_id}]: awaiting stale-data confirmation")
                return self._outcome(run, plan)
            if not confirm_stale:
                run.advance(PipelineState.CANCELLED)
                logger.info(f"Pipeline [{patient_id}]: cancelled by operator")
                return self._outcome(run, plan)

        # ── Phase 1: primary risk scoring (required) ──────────────────────
        run.advance(PipelineState.SUBMITTING)
        try:
            result = await self.risk_scoring.submit(plan.payload, operator_id, tenant_scope)
        except FatalSubmissionError as exc:
            run.advance(PipelineState.FAILED)
            exc.details["states"] = [s.value for s in run.states]
            logger.error(f"Pipeline [{patient_id}]: primary scoring failed: {exc.message}")
            raise

        # ── Alert (before phase 2) ────────────────────────────────────────
        alert = None
        if result.classification is not None:
            alert = await self.alert_dispatcher.dispatch(patient_id, result.classification)

        # ── Phase 2: factor extraction (best-effort) ──────────────────────
        run.advance(PipelineState.ENRICHING)
        outcome = self._outcome(run, plan, result=result, alert=alert)
        try:
            factors = await self.factor_extraction.submit(plan.payload, operator_id, tenant_scope)
        except NonFatalEnrichmentError as exc:
            outcome.enrichment_error = exc.message
            logger.warning(f"Pipeline [{patient_id}]: enrichment skipped: {exc.message}")
        except Exception as exc:
            outcome.enrichment_error = str(exc)
            logger.error(
                f"Pipeline [{patient_id}]: factor extraction raised {exc}",
                exc_info=True
            )
        else:
            outcome.enrichment_succeeded = True
            await self._announce(patient_id, tenant_scope, factors)

        run.advance(PipelineState.COMPLETE)
        outcome.state = run.state
        outcome.states = run.states
        logger.info(
            f"Pipeline [{patient_id}]: complete "
            f"(classification={result.classification.value if result.classification else 'none'}, "
            f"enriched={outcome.enrichment_succeeded})"
        )
        return outcome

    async def _announce(self, patient_id: str, tenant_scope: str, record_data: Any) -> None:
        """Refresh the patient list and broadcast the new explanation record."""
        try:
            await self.patient_cache.refresh(tenant_scope)
        except Exception as exc:
            logger.error(
                f"Pipeline [{patient_id}]: patient cache refresh failed: {exc}",
                exc_info=True
            )

        try:
            await self.notifier.emit(RecordEvent(
                patient_id=patient_id,
                record_type=EXPLANATION_RECORD_TYPE,
                record_data=record_data,
                event_type="created",
            ))
        except Exception as exc:
            logger.error(
                f"Pipeline [{patient_id}]: realtime notification failed: {exc}",
                exc_info=True
            )

    @staticmethod
    def _outcome(
        run: PipelineRun,
        plan: SubmissionPlan,
        result: Optional[SubmissionResult] = None,
        alert: Optional[Alert] = None,
    ) -> PipelineOutcome:
        return PipelineOutcome(
            patient_id=run.patient_id,
            state=run.state,
            plan=plan,
            result=result,
            alert=alert,
            states=run.states,
        )
