"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    RiskPipelineError,
    ValidationError,
    MissingPrerequisiteError,
    FatalSubmissionError,
    NonFatalEnrichmentError,
    AlertPersistenceError,
    RecordStoreError,
    PipelineStateError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "RiskPipelineError",
    "ValidationError",
    "MissingPrerequisiteError",
    "FatalSubmissionError",
    "NonFatalEnrichmentError",
    "AlertPersistenceError",
    "RecordStoreError",
    "PipelineStateError",
]
