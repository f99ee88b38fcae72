"""
Patient List Cache

Disk-backed cache of patient summaries per tenant, so list views do not hit
the record store on every request. A successful risk assessment refreshes
the tenant's entry.
"""
from typing import Any, Dict, List, Optional

from diskcache import Cache

from maternal_risk.utils import get_logger
from .records import PatientRecordStore

logger = get_logger(__name__)


class PatientListCache:
    """Per-tenant patient list backed by diskcache."""

    KEY_PREFIX = "patients:"

    def __init__(
        self,
        record_store: PatientRecordStore,
        cache_dir: str,
        ttl_seconds: int = 300,
        cache: Optional[Cache] = None,
    ):
        self.record_store = record_store
        self.ttl_seconds = ttl_seconds
        self.cache = cache if cache is not None else Cache(cache_dir)

    def _key(self, tenant_scope: str) -> str:
        return f"{self.KEY_PREFIX}{tenant_scope}"

    def get(self, tenant_scope: str) -> Optional[List[Dict[str, Any]]]:
        return self.cache.get(self._key(tenant_scope))

    async def refresh(self, tenant_scope: str = "public") -> List[Dict[str, Any]]:
        """Re-fetch the tenant's patient list and replace the cached copy."""
        patients = await self.record_store.list_patients(tenant_scope)
        self.cache.set(self._key(tenant_scope), patients, expire=self.ttl_seconds)
        logger.info(f"Patient list cache refreshed for {tenant_scope}: {len(patients)} patients")
        return patients

    async def get_or_refresh(self, tenant_scope: str = "public") -> List[Dict[str, Any]]:
        cached = self.get(tenant_scope)
        if cached is not None:
            return cached
        return await self.refresh(tenant_scope)

    def close(self) -> None:
        self.cache.close()
