"""
Risk Aggregation & Submission Pipeline

Assembles a patient's time-series records into a scoring payload, applies
the freshness policy and submits it to the risk-scoring and
factor-extraction services.

Usage:
    from maternal_risk.core.pipeline import plan_submission, RiskAssessmentPipeline

    plan = plan_submission(snapshot, threshold_days=30, now=datetime.now(timezone.utc))
    plan.payload["SYSTOLIC"]   # value or "Unknown"
"""
from .alerting import ALERT_MESSAGES, AlertDispatcher, build_alert
from .base import Alert, Classification, RecordEvent, SubmissionResult
from .field_specs import FIELD_SPECS, UNKNOWN, FieldSpec
from .freshness import find_outdated, is_stale, latest_record
from .gate import CONFIRMATION_THRESHOLD, GateDecision, evaluate_gate
from .orchestrator import (
    PipelineOutcome,
    RiskAssessmentPipeline,
    SubmissionPlan,
    plan_submission,
)
from .prerequisites import REMEDIATION_STEPS, find_missing_prerequisites, require_prerequisites
from .resolver import assemble_payload, resolve_field
from .state import PipelineRun, PipelineState

__all__ = [
    "ALERT_MESSAGES",
    "AlertDispatcher",
    "build_alert",
    "Alert",
    "Classification",
    "RecordEvent",
    "SubmissionResult",
    "FIELD_SPECS",
    "UNKNOWN",
    "FieldSpec",
    "find_outdated",
    "is_stale",
    "latest_record",
    "CONFIRMATION_THRESHOLD",
    "GateDecision",
    "evaluate_gate",
    "PipelineOutcome",
    "RiskAssessmentPipeline",
    "SubmissionPlan",
    "plan_submission",
    "REMEDIATION_STEPS",
    "find_missing_prerequisites",
    "require_prerequisites",
    "assemble_payload",
    "resolve_field",
    "PipelineRun",
    "PipelineState",
]
