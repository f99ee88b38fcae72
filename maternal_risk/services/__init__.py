"""
External Collaborators

HTTP clients for the record manager and both scoring services, plus the
patient list cache and the realtime notifier.
"""
from .alerts import AlertService
from .patient_cache import PatientListCache
from .realtime import RealtimeNotifier, RECORD_CREATED_EVENT, format_sse
from .records import PatientRecordStore
from .scoring import FactorExtractionClient, RiskScoringClient, wrap_payload

__all__ = [
    "AlertService",
    "PatientListCache",
    "RealtimeNotifier",
    "RECORD_CREATED_EVENT",
    "format_sse",
    "PatientRecordStore",
    "FactorExtractionClient",
    "RiskScoringClient",
    "wrap_payload",
]
