"""
Freshness Evaluator

Decides whether a time-series record is too old to trust. Triage, labwork and
ultrasound readings describe the current state of a pregnancy and lose their
value after the staleness threshold; history and lifestyle records do not.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Sequence, Union

from maternal_risk.core.records import ClinicalRecord, PatientSnapshot, RecordType, utc_date

# Collections checked for staleness, in the order they are reported
FRESHNESS_CHECKED_TYPES = (
    RecordType.LABWORK,
    RecordType.TRIAGE,
    RecordType.ULTRASOUND,
)

Moment = Union[date, datetime]


def _as_date(moment: Moment) -> date:
    if isinstance(moment, datetime):
        return utc_date(moment)
    return moment


def is_stale(record_date: Optional[Moment], threshold_days: int, now: Moment) -> bool:
    """
    A record is stale when it has no date or is older than the threshold.

    Age is measured in whole calendar days, so a record exactly
    `threshold_days` old is still fresh. Future dates are fresh.
    """
    if record_date is None:
        return True
    age_days = (_as_date(now) - _as_date(record_date)).days
    return age_days > threshold_days


def latest_record(records: Sequence[ClinicalRecord]) -> Optional[ClinicalRecord]:
    """
    Most recent record of a collection.

    Sorts by date instead of trusting insertion order. Undated records sort
    as oldest; the sort is stable, so among equal dates (or a collection with
    no dates at all) the last-inserted record wins.
    """
    if not records:
        return None
    ordered = sorted(
        records,
        key=lambda r: (r.date is not None, r.date or date.min),
    )
    return ordered[-1]


def is_record_stale(
    record: Optional[ClinicalRecord],
    threshold_days: int,
    now: Moment,
) -> bool:
    """Staleness of a single record; a missing record counts as stale."""
    if record is None:
        return True
    return is_stale(record.date, threshold_days, now)


def find_outdated(
    snapshot: PatientSnapshot,
    threshold_days: int,
    now: Moment,
) -> List[str]:
    """
    Names of the staleness-checked collections whose latest record is stale.

    An empty collection has no latest date and is reported as outdated.
    """
    outdated = []
    for record_type in FRESHNESS_CHECKED_TYPES:
        latest = latest_record(snapshot.records(record_type))
        if is_record_stale(latest, threshold_days, now):
            outdated.append(record_type.collection)
    return outdated
