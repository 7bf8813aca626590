"""Vulnerability store interface"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from ..core.models import Source, TargetDescriptor, VulnerabilityRecord
from ..matching.versions import version_key


class VulnerabilityStore(ABC):
    """Persistent set of vulnerability records keyed by their natural key.

    Implementations raise :class:`~dbvs.core.exceptions.StorageError` for any
    backend failure. Query results come back in insertion order.
    """

    async def connect(self) -> None:
        """Open connections and prepare the schema"""

    @abstractmethod
    async def insert_or_update(self, record: VulnerabilityRecord) -> None:
        """Insert the record, or update the mutable fields of the existing row"""

    @abstractmethod
    async def query_by_normalized_key(self, vendor: str, product: str, target_key: int,
                                      timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        """Candidates whose version keys admit ``target_key``"""

    @abstractmethod
    async def query_all_for_product(self, vendor: str, product: str,
                                    timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        """Every record stored for the vendor/product pair"""

    @abstractmethod
    async def list_all(self, timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        """Every stored record"""

    async def close(self) -> None:
        """Release backend resources"""

    async def save_scan_result(self, target: TargetDescriptor, results: List[VulnerabilityRecord],
                               when: datetime) -> int:
        """Store the outcome of a scan as ``scan`` records and return how many were written"""
        if not results:
            await self.insert_or_update(VulnerabilityRecord(
                source=Source.SCAN,
                vendor=target.vendor,
                product=target.product,
                version_number=target.version,
                vuln_id=f"SCAN-{int(when.timestamp())}",
                vuln_name="No matching vulnerabilities",
                scan_date=when,
            ))
            logging.info(f"Saved clean scan result for {target.vendor} {target.product} {target.version}")
            return 1

        for result in results:
            await self.insert_or_update(replace(
                result,
                id=None,
                source=Source.SCAN,
                version_number=target.version,
                scan_date=when,
            ))
        logging.info(f"Saved {len(results)} scan findings for {target.vendor} {target.product} {target.version}")
        return len(results)


def record_keys(record: VulnerabilityRecord):
    """Version keys stored next to a record: (start, end, number)"""
    return (
        version_key(record.version_start),
        version_key(record.version_end),
        version_key(record.version_number),
    )


def key_admits(target_key: int, start_key: Optional[int], end_key: Optional[int],
               number_key: Optional[int]) -> bool:
    """Fast-path filter shared by the store backends"""
    if number_key is not None and number_key == target_key:
        return True
    return ((start_key is None or start_key <= target_key)
            and (end_key is None or end_key >= target_key))
