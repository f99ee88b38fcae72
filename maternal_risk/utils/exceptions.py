"""
Custom Exception Hierarchy

Failure taxonomy of the risk-assessment pipeline. Only FatalSubmissionError
(and RecordStoreError, which happens before anything is submitted) halts a
run; every other error is contained to the phase that raised it.
"""
from typing import Optional, Dict, Any, List


class RiskPipelineError(Exception):
    """Base exception for all risk pipeline errors."""
    
    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class ValidationError(RiskPipelineError):
    """Recoverable problems with the patient's records."""
    
    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, code=code, details=details)


class MissingPrerequisiteError(ValidationError):
    """Mandatory upstream records (history, triage) are absent."""
    
    def __init__(self, missing_steps: List[str]):
        super().__init__(
            message=f"Missing prerequisite records: {', '.join(missing_steps)}",
            code="MISSING_PREREQUISITE",
            details={"missing_steps": list(missing_steps)}
        )
        self.missing_steps = list(missing_steps)
    
    @property
    def first_missing(self) -> str:
        return self.missing_steps[0]


class FatalSubmissionError(RiskPipelineError):
    """Primary risk-scoring submission failed. Terminal for the run."""
    
    def __init__(
        self,
        message: str,
        service: str = "risk_scoring",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="SUBMISSION_FAILED",
            details={"service": service, "status_code": status_code, **(details or {})}
        )
        self.service = service
        self.status_code = status_code


class NonFatalEnrichmentError(RiskPipelineError):
    """Factor-extraction submission failed. Logged, never propagated."""
    
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="ENRICHMENT_FAILED",
            details={"status_code": status_code, **(details or {})}
        )
        self.status_code = status_code


class AlertPersistenceError(RiskPipelineError):
    """Alert could not be stored."""
    
    def __init__(
        self,
        message: str,
        patient_id: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="ALERT_PERSISTENCE_ERROR",
            details={"patient_id": patient_id, **(details or {})}
        )
        self.patient_id = patient_id


class RecordStoreError(RiskPipelineError):
    """Patient records could not be fetched."""
    
    def __init__(
        self,
        message: str,
        patient_id: str = "unknown",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="RECORD_STORE_ERROR",
            details={"patient_id": patient_id, "status_code": status_code, **(details or {})}
        )
        self.patient_id = patient_id
        self.status_code = status_code


class PipelineStateError(RiskPipelineError):
    """An illegal pipeline state transition was attempted."""
    
    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Illegal transition {current} -> {target}",
            code="PIPELINE_STATE_ERROR",
            details={"current": current, "target": target}
        )
