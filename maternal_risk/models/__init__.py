"""
API Models
"""
from .assessment import (
    AlertResponse,
    AssessmentPreviewResponse,
    GateResponse,
    HealthResponse,
    RemediationStepResponse,
    RiskAssessmentRequest,
    RiskAssessmentResponse,
)

__all__ = [
    "AlertResponse",
    "AssessmentPreviewResponse",
    "GateResponse",
    "HealthResponse",
    "RemediationStepResponse",
    "RiskAssessmentRequest",
    "RiskAssessmentResponse",
]
