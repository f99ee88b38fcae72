"""
Pytest Configuration and Fixtures

Shared fixtures for risk pipeline tests. Every test runs against a fixed
"now" so freshness decisions are deterministic.
"""
import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict
from unittest.mock import AsyncMock, Mock
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from maternal_risk.core.pipeline import (
    AlertDispatcher,
    Classification,
    RiskAssessmentPipeline,
    SubmissionResult,
)
from maternal_risk.core.records import PatientSnapshot

FIXED_NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
THRESHOLD_DAYS = 30


@pytest.fixture
def now() -> datetime:
    """Fixed clock for freshness checks."""
    return FIXED_NOW


@pytest.fixture
def days_ago() -> Callable[[int], str]:
    """ISO date `n` days before the fixed clock."""
    def _days_ago(n: int) -> str:
        return (FIXED_NOW - timedelta(days=n)).date().isoformat()
    return _days_ago


@pytest.fixture
def patient_data(days_ago) -> Dict[str, Any]:
    """Patient JSON as returned by the record store, all records fresh."""
    return {
        "patientId": "P-001",
        "name": "Amina Njeri",
        "age": 31,
        "tenant": "public",
        "patientHistories": [
            {
                "id": "H-1",
                "date": days_ago(400),
                "preeclampsiaHistory": "yes",
                "gestationalDiabetesHistory": "no",
                "gravida": 3,
                "parity": 2,
                "chronicHypertension": "no",
                "famHistoryDiabetes": None,
            }
        ],
        "triages": [
            {
                "id": "T-1",
                "date": days_ago(10),
                "gestationWeek": 28,
                "systolic": 120,
                "diastolic": 80,
                "weight": 72.5,
                "bmi": 26.1,
            }
        ],
        "labworks": [
            {
                "id": "L-1",
                "date": days_ago(5),
                "haemoglobin": 11.2,
                "hba1c": "normal",
                "urine_protein": "trace",
            }
        ],
        "ultrasounds": [
            {"id": "U-1", "date": days_ago(3), "amniotic": 14, "fhr": 142}
        ],
        "lifestyles": [
            {
                "id": "LS-1",
                "date": days_ago(200),
                "smoking": "no",
                "diet": "balanced",
                "exercise": "",
            }
        ],
    }


@pytest.fixture
def snapshot(patient_data) -> PatientSnapshot:
    return PatientSnapshot.from_dict(patient_data)


@pytest.fixture
def record_store(snapshot) -> Mock:
    store = Mock()
    store.fetch = AsyncMock(return_value=snapshot)
    store.list_patients = AsyncMock(return_value=[{"patientId": "P-001", "name": "Amina Njeri"}])
    store.is_configured = True
    return store


@pytest.fixture
def risk_scoring() -> Mock:
    client = Mock()
    client.submit = AsyncMock(return_value=SubmissionResult(
        classification=Classification.HIGH,
        raw={"classification": "High", "rawScore": 0.91},
    ))
    client.is_configured = True
    return client


@pytest.fixture
def factor_extraction() -> Mock:
    client = Mock()
    client.submit = AsyncMock(return_value={"features": "Elevated BP, prior preeclampsia"})
    client.is_configured = True
    return client


@pytest.fixture
def alert_service() -> Mock:
    service = Mock()
    service.create_alert = AsyncMock(return_value={"id": "A-1"})
    return service


@pytest.fixture
def patient_cache() -> Mock:
    cache = Mock()
    cache.refresh = AsyncMock(return_value=[])
    cache.get_or_refresh = AsyncMock(return_value=[{"patientId": "P-001"}])
    return cache


@pytest.fixture
def notifier() -> Mock:
    notifier = Mock()
    notifier.emit = AsyncMock(return_value=1)
    return notifier


@pytest.fixture
def pipeline(
    record_store, risk_scoring, factor_extraction, alert_service, patient_cache, notifier
) -> RiskAssessmentPipeline:
    return RiskAssessmentPipeline(
        record_store=record_store,
        risk_scoring=risk_scoring,
        factor_extraction=factor_extraction,
        alert_dispatcher=AlertDispatcher(alert_service),
        patient_cache=patient_cache,
        notifier=notifier,
        threshold_days=THRESHOLD_DAYS,
        clock=lambda: FIXED_NOW,
    )
