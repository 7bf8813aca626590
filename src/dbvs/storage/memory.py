"""In-process vulnerability store"""

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from ..core.models import VulnerabilityRecord
from .base import VulnerabilityStore, key_admits, record_keys


class MemoryStore(VulnerabilityStore):
    """Insertion-ordered store backed by a dict, for tests and ``memory://`` DSNs"""

    def __init__(self):
        self._rows: Dict[tuple, Tuple[VulnerabilityRecord, tuple]] = {}
        self._next_id = 1

    async def insert_or_update(self, record: VulnerabilityRecord) -> None:
        key = record.natural_key()
        existing = self._rows.get(key)
        if existing is None:
            stored = replace(record, id=self._next_id)
            self._next_id += 1
        else:
            stored = replace(existing[0],
                             vuln_name=record.vuln_name,
                             description=record.description,
                             cvss_score=record.cvss_score,
                             cnvd_score=record.cnvd_score,
                             aliyun_score=record.aliyun_score,
                             final_score=record.final_score,
                             severity=record.severity,
                             patch_info=record.patch_info,
                             scan_date=record.scan_date)
        self._rows[key] = (stored, record_keys(stored))

    async def query_by_normalized_key(self, vendor: str, product: str, target_key: int,
                                      timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return [replace(record) for record, keys in self._rows.values()
                if record.vendor == vendor and record.product == product
                and key_admits(target_key, *keys)]

    async def query_all_for_product(self, vendor: str, product: str,
                                    timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return [replace(record) for record, _ in self._rows.values()
                if record.vendor == vendor and record.product == product]

    async def list_all(self, timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return [replace(record) for record, _ in self._rows.values()]

    def __len__(self) -> int:
        return len(self._rows)
