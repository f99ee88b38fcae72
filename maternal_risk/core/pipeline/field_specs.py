"""
Scoring Feature Catalogue

Maps every feature the risk-scoring service expects onto the record
collection and stored field it is read from. Feature names follow the
scoring service's upper-case convention; source fields keep the names the
record forms store them under.

Adding a feature:
    1. Append a FieldSpec to the block of its source collection.
    2. Keep destination names unique (checked at import time).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from maternal_risk.core.records import RecordType

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class FieldSpec:
    """One scoring feature and where its value comes from."""
    destination: str          # feature name sent to the scoring service
    source: RecordType        # collection the value is read from
    source_field: str         # field name as stored on the record
    default: Any = UNKNOWN    # value used when the source is missing or stale

    @property
    def staleness_sensitive(self) -> bool:
        return self.source.staleness_sensitive


def _specs(source: RecordType, *pairs: Tuple[str, str]) -> Tuple[FieldSpec, ...]:
    return tuple(FieldSpec(dest, source, src) for dest, src in pairs)


# ── Patient history (never staleness-checked) ────────────────────────────────
HISTORY_FIELDS = _specs(
    RecordType.HISTORY,
    # Previous pregnancies
    ("PREECLAMPSIA_HISTORY",        "preeclampsiaHistory"),
    ("GDM_HISTORY",                 "gestationalDiabetesHistory"),
    ("GHTN_HISTORY",                "gestationalHypertensionHistory"),
    ("ECLAMPSIA_HISTORY",           "eclampsiaHistory"),
    ("FIRST_PREECLAMPSIA_HISTORY",  "firstPreeclampsiaHistory"),
    ("GRAVIDA",                     "gravida"),
    ("PARITY",                      "parity"),
    # Chronic conditions
    ("CHRONIC_HYPERTENSION",        "chronicHypertension"),
    ("DIABETES_MELLITUS",           "diabetesMelitus"),
    ("CHRONIC_RENAL_DISEASE",       "chronicRenalDisease"),
    ("CARDIAC_DISEASE",             "cardiacDisease"),
    ("AUTOIMMUNE_DISEASE",          "autoimmune"),
    ("ANEMIA",                      "anemia"),
    ("THYROID_DISORDER",            "thyroid"),
    ("HYPOTHYROIDISM",              "hypothyroidism"),
    ("PCOS",                        "pcos"),
    ("UTERINE_FIBROIDS",            "uterineFibroids"),
    # Family history
    ("FAM_HISTORY_PREECLAMPSIA",    "famHistoryPreeclampsia"),
    ("FAM_HISTORY_GHTN",            "famHistoryGestationalHypertension"),
    ("FAM_HISTORY_GDM",             "famHistoryGestationalDiabetes"),
    ("FAM_HISTORY_CARDIAC",         "famHistoryCardiacDisease"),
    ("FAM_HISTORY_DIABETES",        "famHistoryDiabetes"),
    ("FAM_HISTORY_HYPERTENSION",    "famHistoryHypertension"),
    ("FAM_HISTORY_OBESITY",         "famObeseHistory"),
    # Obstetric details
    ("MISCARRIAGE",                 "miscarriage"),
    ("MISCARRIAGE_COUNT",           "miscarriageNum"),
    ("CSECTION",                    "csection"),
    ("CSECTION_COUNT",              "csectionNum"),
    ("STILLBIRTH",                  "stillbirth"),
    ("STILLBIRTH_COUNT",            "stillbirthNum"),
    ("PPH",                         "pph"),
    ("PREGNANCY_INTERVAL",          "interval"),
    ("INFERTILITY",                 "infertility"),
    ("IVF",                         "ivf"),
    ("PREV_CHILD_WEIGHT",           "prevChildWeight"),
    ("PARTNER_AGE",                 "maleAge"),
)

# ── Triage vitals ────────────────────────────────────────────────────────────
TRIAGE_FIELDS = _specs(
    RecordType.TRIAGE,
    ("GESTATION_WEEK",              "gestationWeek"),
    ("HEIGHT",                      "height"),
    ("WEIGHT",                      "weight"),
    ("BMI",                         "bmi"),
    ("SYSTOLIC",                    "systolic"),
    ("DIASTOLIC",                   "diastolic"),
    ("HEART_RATE",                  "heartRate"),
    ("TEMPERATURE",                 "temperature"),
)

# ── Laboratory panel ─────────────────────────────────────────────────────────
LABWORK_FIELDS = _specs(
    RecordType.LABWORK,
    ("HAEMOGLOBIN",                 "haemoglobin"),
    ("HBA1C",                       "hba1c"),
    ("HBA1C_VALUE",                 "hba1c_value"),
    ("FBS",                         "fbs"),
    ("RANDOM_BLOOD_SUGAR",          "randombloodsugar"),
    ("PLATELETS",                   "platelets"),
    ("WBC",                         "wbc"),
    ("RBC",                         "rbc"),
    ("MCV",                         "mcv"),
    ("MCH",                         "mch"),
    ("MCHC",                        "mchc"),
    ("HEMATOCRIT",                  "ht"),
    ("CREATININE",                  "creatinine"),
    ("URIC_ACID",                   "uric"),
    ("BUN",                         "bun"),
    ("ALT",                         "alt"),
    ("AST",                         "ast"),
    ("ALP",                         "alp"),
    ("ALBUMIN",                     "albumin"),
    ("BILIRUBIN",                   "bilirubin"),
    ("SODIUM",                      "sodium"),
    ("POTASSIUM",                   "potassium"),
    ("TSH",                         "tsh"),
    ("URINE_PROTEIN",               "urine_protein"),
    ("URINE_GLUCOSE",               "urine_glucose"),
    ("KETONES",                     "ketones"),
)

# ── Ultrasound biometry ──────────────────────────────────────────────────────
ULTRASOUND_FIELDS = _specs(
    RecordType.ULTRASOUND,
    ("AMNIOTIC_FLUID",              "amniotic"),
    ("FETAL_HEART_RATE",            "fhr"),
    ("FEMUR_LENGTH",                "femurHeight"),
    ("HEAD_CIRCUMFERENCE",          "headCircumference"),
    ("BIPARIETAL_DIAMETER",         "biparietal"),
)

# ── Lifestyle (never staleness-checked) ──────────────────────────────────────
LIFESTYLE_FIELDS = _specs(
    RecordType.LIFESTYLE,
    ("SMOKING",                     "smoking"),
    ("DIET",                        "diet"),
    ("EXERCISE",                    "exercise"),
    ("ALCOHOL",                     "alcoholConsumption"),
    ("CAFFEINE",                    "caffeine"),
    ("CAFFEINE_QUANTITY",           "caffeineQuantity"),
    ("SUGAR_DRINK",                 "sugarDrink"),
)

FIELD_SPECS: Tuple[FieldSpec, ...] = (
    HISTORY_FIELDS
    + TRIAGE_FIELDS
    + LABWORK_FIELDS
    + ULTRASOUND_FIELDS
    + LIFESTYLE_FIELDS
)

# Demographic features: destination -> demographics key
DEMOGRAPHIC_FIELDS: Dict[str, str] = {
    "AGE": "age",
}


def _check_unique(specs: Tuple[FieldSpec, ...]) -> None:
    seen = set(DEMOGRAPHIC_FIELDS)
    for spec in specs:
        if spec.destination in seen:
            raise ValueError(f"Duplicate scoring feature: {spec.destination}")
        seen.add(spec.destination)


_check_unique(FIELD_SPECS)
