"""
Patient Records — Base Types

Defines the snapshot that the risk pipeline assembles its payload from.
Every record carries an explicit RecordType tag assigned from the collection
it was loaded into, so no code has to guess a record's kind from the fields
it happens to contain.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from maternal_risk.utils import get_logger

logger = get_logger(__name__)


class RecordType(str, Enum):
    """
    Kind of time-series clinical record.

    HISTORY    – obstetric, medical and family history
    TRIAGE     – vitals taken at a visit (BP, weight, BMI)
    LABWORK    – blood and urine panel
    ULTRASOUND – fetal biometry and amniotic fluid
    LIFESTYLE  – smoking, diet, exercise, caffeine
    """
    HISTORY    = "history"
    TRIAGE     = "triage"
    LABWORK    = "labwork"
    ULTRASOUND = "ultrasound"
    LIFESTYLE  = "lifestyle"

    @property
    def collection(self) -> str:
        """Name of the snapshot collection holding this record type."""
        return _COLLECTION_NAMES[self]

    @property
    def staleness_sensitive(self) -> bool:
        """Whether an old record of this type must not be trusted."""
        return self in STALENESS_SENSITIVE_TYPES


_COLLECTION_NAMES = {
    RecordType.HISTORY:    "histories",
    RecordType.TRIAGE:     "triages",
    RecordType.LABWORK:    "labworks",
    RecordType.ULTRASOUND: "ultrasounds",
    RecordType.LIFESTYLE:  "lifestyles",
}

STALENESS_SENSITIVE_TYPES = frozenset({
    RecordType.TRIAGE,
    RecordType.LABWORK,
    RecordType.ULTRASOUND,
})

# Keys the record store may use for each collection, first match wins
_SOURCE_KEYS = {
    RecordType.HISTORY:    ("histories", "patientHistories", "patienthistories"),
    RecordType.TRIAGE:     ("triages", "triage"),
    RecordType.LABWORK:    ("labworks", "labwork"),
    RecordType.ULTRASOUND: ("ultrasounds", "ultrasound"),
    RecordType.LIFESTYLE:  ("lifestyles", "lifestyle"),
}

_ALL_SOURCE_KEYS = frozenset(k for keys in _SOURCE_KEYS.values() for k in keys)


def utc_date(moment: datetime) -> date:
    """Calendar date of a datetime in UTC; naive datetimes are taken as UTC."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def parse_record_date(value: Any) -> Optional[date]:
    """
    Parse a stored record date.

    Accepts `date`/`datetime` objects, "YYYY-MM-DD" and ISO-8601 timestamps
    (including a trailing "Z"). Returns None for anything unparseable, which
    the freshness policy treats as stale.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return utc_date(value)
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return utc_date(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug(f"Unparseable record date {value!r}, treating as absent")
        return None


@dataclass(frozen=True)
class ClinicalRecord:
    """One dated record from a patient's history."""
    record_type: RecordType
    date: Optional[date] = None
    fields: Mapping[str, Any] = field(default_factory=dict)
    record_id: Optional[str] = None

    def __post_init__(self):
        # Read-only view so resolution can never mutate stored data
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    @classmethod
    def from_dict(cls, record_type: RecordType, data: Mapping[str, Any]) -> "ClinicalRecord":
        record_id = data.get("id") or data.get("_id")
        return cls(
            record_type=record_type,
            date=parse_record_date(data.get("date")),
            fields={k: v for k, v in data.items() if k != "date"},
            record_id=str(record_id) if record_id is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_type": self.record_type.value,
            "date": self.date.isoformat() if self.date else None,
            "record_id": self.record_id,
            "fields": dict(self.fields),
        }


@dataclass(frozen=True)
class PatientSnapshot:
    """
    Everything the pipeline knows about a patient for one run.

    Collections keep the order the record store returned them in; the
    freshness layer sorts by date explicitly instead of trusting that order.
    """
    patient_id: str
    demographics: Mapping[str, Any] = field(default_factory=dict)
    histories: Tuple[ClinicalRecord, ...] = ()
    triages: Tuple[ClinicalRecord, ...] = ()
    labworks: Tuple[ClinicalRecord, ...] = ()
    ultrasounds: Tuple[ClinicalRecord, ...] = ()
    lifestyles: Tuple[ClinicalRecord, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "demographics", MappingProxyType(dict(self.demographics)))
        for record_type in RecordType:
            records = tuple(getattr(self, record_type.collection))
            for record in records:
                if record.record_type is not record_type:
                    raise ValueError(
                        f"{record_type.collection} holds a {record.record_type.value} record"
                    )
            object.__setattr__(self, record_type.collection, records)

    def records(self, record_type: RecordType) -> Tuple[ClinicalRecord, ...]:
        return getattr(self, record_type.collection)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PatientSnapshot":
        """Build a snapshot from the record store's patient JSON."""
        patient_id = data.get("patientId") or data.get("id") or data.get("_id")
        if patient_id is None:
            raise ValueError("Patient data has no identifier")

        collections: Dict[str, Tuple[ClinicalRecord, ...]] = {}
        for record_type, keys in _SOURCE_KEYS.items():
            raw = next((data[k] for k in keys if data.get(k) is not None), [])
            collections[record_type.collection] = tuple(
                ClinicalRecord.from_dict(record_type, item)
                for item in _iter_records(raw)
            )

        demographics = {k: v for k, v in data.items() if k not in _ALL_SOURCE_KEYS}
        return cls(patient_id=str(patient_id), demographics=demographics, **collections)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "patient_id": self.patient_id,
            "demographics": dict(self.demographics),
        }
        for record_type in RecordType:
            result[record_type.collection] = [
                r.to_dict() for r in self.records(record_type)
            ]
        return result


def _iter_records(raw: Any) -> Iterable[Mapping[str, Any]]:
    if isinstance(raw, Mapping):
        # A single record stored without a list wrapper
        return [raw]
    return [item for item in raw if isinstance(item, Mapping)]
