"""
Field Resolver

Extracts the latest value of each scoring feature from a patient snapshot.

Design principles:
  - Pure: (snapshot, threshold, now) -> payload. No I/O, no clock reads,
    no mutation of the snapshot.
  - Total: every declared feature is present in the payload, holding either
    a concrete value or the "Unknown" sentinel. Never None.
  - A stale record of a staleness-sensitive type yields the sentinel even if
    the stored value is present.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from maternal_risk.core.records import ClinicalRecord, PatientSnapshot
from .field_specs import DEMOGRAPHIC_FIELDS, FIELD_SPECS, UNKNOWN, FieldSpec
from .freshness import Moment, is_record_stale, latest_record


def normalize_value(value: Any, default: Any = UNKNOWN) -> Any:
    """
    Normalise a stored value for the scoring service.

    Strings get their first letter upper-cased ("yes" -> "Yes"); blank
    strings and None become the default. Numbers, booleans and lists pass
    through unchanged.
    """
    if value is None:
        return default
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default
        return text[0].upper() + text[1:]
    return value


def resolve_field(
    records: Sequence[ClinicalRecord],
    field_name: str,
    default: Any = UNKNOWN,
    threshold_days: Optional[int] = None,
    now: Optional[Moment] = None,
) -> Any:
    """
    Latest value of `field_name` in a collection.

    Staleness is only applied when both `threshold_days` and `now` are given
    and the latest record's type is staleness-sensitive.
    """
    record = latest_record(records)
    if record is None:
        return default

    if (
        record.record_type.staleness_sensitive
        and threshold_days is not None
        and now is not None
        and is_record_stale(record, threshold_days, now)
    ):
        return default

    return normalize_value(record.get(field_name), default)


def assemble_payload(
    snapshot: PatientSnapshot,
    threshold_days: int,
    now: Moment,
    specs: Iterable[FieldSpec] = FIELD_SPECS,
) -> Dict[str, Any]:
    """
    Build the scoring payload for a snapshot.

    Returns a new dict with one entry per declared feature plus the
    demographic features.
    """
    payload: Dict[str, Any] = {}

    for destination, key in DEMOGRAPHIC_FIELDS.items():
        payload[destination] = normalize_value(snapshot.demographics.get(key))

    for spec in specs:
        payload[spec.destination] = resolve_field(
            snapshot.records(spec.source),
            spec.source_field,
            spec.default,
            threshold_days,
            now,
        )

    return payload


def unknown_fields(payload: Dict[str, Any]) -> list:
    """Features that will be submitted as the sentinel."""
    return [name for name, value in payload.items() if value == UNKNOWN]
