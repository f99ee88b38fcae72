"""
API request/response models for the risk-assessment endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RiskAssessmentRequest(BaseModel):
    """Submit a patient's records for risk scoring."""
    operator_id: str = Field(..., min_length=1, description="User submitting the assessment")
    tenant_scope: str = Field(default="public", description="Tenant schema of the patient")
    confirm_stale: Optional[bool] = Field(
        default=None,
        description="Answer to the stale-data prompt; omit on the first attempt",
    )


class RemediationStepResponse(BaseModel):
    id: str
    name: str
    component: str
    record_type: str


class AlertResponse(BaseModel):
    alert_id: Optional[str] = None
    patient_id: str
    message: str
    flagged: bool
    created_at: str


class RiskAssessmentResponse(BaseModel):
    """Outcome of one pipeline run."""
    patient_id: str
    status: str
    success: bool
    missing_steps: List[str] = Field(default_factory=list)
    remediation: List[RemediationStepResponse] = Field(default_factory=list)
    outdated: List[str] = Field(default_factory=list)
    confirmation_message: str = ""
    classification: Optional[str] = None
    raw_score: Optional[Any] = None
    alert: Optional[AlertResponse] = None
    enrichment_succeeded: bool = False
    enrichment_error: Optional[str] = None
    states: List[str] = Field(default_factory=list)


class GateResponse(BaseModel):
    requires_confirmation: bool
    outdated: List[str]
    message: str


class AssessmentPreviewResponse(BaseModel):
    """Pre-flight view: what would be submitted."""
    patient_id: str
    next_state: str
    missing_steps: List[str] = Field(default_factory=list)
    remediation: List[RemediationStepResponse] = Field(default_factory=list)
    outdated: List[str] = Field(default_factory=list)
    gate: Optional[GateResponse] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    unknown_fields: List[str] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    uptime_seconds: float
    services: Dict[str, bool] = Field(default_factory=dict)
