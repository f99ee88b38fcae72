"""
Pipeline Configuration
======================
Service endpoints, the staleness threshold and timeouts. Values come from the
environment, with a project-level .env file loaded first.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# ── Load .env ───────────────────────────────────────────────────────────
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_STALENESS_THRESHOLD_DAYS = 30
DEFAULT_REQUEST_TIMEOUT_SECONDS = 30.0


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


@dataclass(frozen=True)
class Settings:
    """Externally supplied configuration for one process."""
    staleness_threshold_days: int = DEFAULT_STALENESS_THRESHOLD_DAYS

    # Scoring services
    risk_scoring_url: str = ""
    factor_extraction_url: str = ""

    # Record manager backend (patients, alerts)
    records_api_url: str = ""
    alerts_api_url: str = ""
    records_api_token: Optional[str] = None

    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS

    # Patient list cache
    patient_cache_dir: str = str(PROJECT_ROOT / ".patient_cache")
    patient_cache_ttl_seconds: int = 300

    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        records_api_url = os.getenv("RECORDS_API_URL", "").rstrip("/")
        return cls(
            staleness_threshold_days=_env_int(
                "STALENESS_THRESHOLD_DAYS", DEFAULT_STALENESS_THRESHOLD_DAYS
            ),
            risk_scoring_url=os.getenv("RISK_SCORING_URL", "").rstrip("/"),
            factor_extraction_url=os.getenv("FACTOR_EXTRACTION_URL", "").rstrip("/"),
            records_api_url=records_api_url,
            alerts_api_url=os.getenv("ALERTS_API_URL", records_api_url).rstrip("/"),
            records_api_token=os.getenv("RECORDS_API_TOKEN") or None,
            request_timeout_seconds=_env_float(
                "REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS
            ),
            patient_cache_dir=os.getenv(
                "PATIENT_CACHE_DIR", str(PROJECT_ROOT / ".patient_cache")
            ),
            patient_cache_ttl_seconds=_env_int("PATIENT_CACHE_TTL_SECONDS", 300),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
        )

    def __post_init__(self):
        if self.staleness_threshold_days < 0:
            raise ValueError("STALENESS_THRESHOLD_DAYS must be >= 0")
        if self.request_timeout_seconds <= 0:
            raise ValueError("REQUEST_TIMEOUT_SECONDS must be > 0")


settings = Settings.from_env()
