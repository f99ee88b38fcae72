"""
Patient Records

Immutable, explicitly tagged view of a patient's time-series records.
"""
from .base import (
    ClinicalRecord,
    PatientSnapshot,
    RecordType,
    STALENESS_SENSITIVE_TYPES,
    parse_record_date,
    utc_date,
)

__all__ = [
    "ClinicalRecord",
    "PatientSnapshot",
    "RecordType",
    "STALENESS_SENSITIVE_TYPES",
    "parse_record_date",
    "utc_date",
]
