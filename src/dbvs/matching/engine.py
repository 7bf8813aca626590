"""Match a target database version against stored vulnerability records"""

import logging
from dataclasses import replace
from typing import List, Optional

from ..classification.cpe import severity_for_score
from ..core.exceptions import MatchError, StorageError
from ..core.models import Severity, Source, TargetDescriptor, VulnerabilityRecord
from ..scoring.aggregator import ScoreAggregator
from ..storage.base import VulnerabilityStore
from .range_matcher import matches
from .versions import version_key


class MatchEngine:
    """Two-tier matcher: indexed version-key query first, full product scan on failure.

    Rows from either path are re-checked with the version comparator, so the
    key query only has to return a superset of the real matches.
    """

    def __init__(self, store: VulnerabilityStore, aggregator: Optional[ScoreAggregator] = None):
        self.store = store
        self.aggregator = aggregator or ScoreAggregator()

    async def _candidates(self, vendor: str, product: str, version: str,
                          timeout: Optional[float]) -> List[VulnerabilityRecord]:
        fast_error: Optional[StorageError] = None
        target_key = version_key(version)

        if target_key is not None:
            try:
                rows = await self.store.query_by_normalized_key(vendor, product, target_key, timeout=timeout)
                logging.debug(f"Key query returned {len(rows)} candidates for {vendor} {product} {version}")
                return rows
            except StorageError as e:
                fast_error = e
                logging.warning(f"Key query failed, falling back to full product scan: {e}")
        else:
            logging.debug(f"No version key for '{version}' - using full product scan")

        try:
            return await self.store.query_all_for_product(vendor, product, timeout=timeout)
        except StorageError as e:
            raise MatchError(
                f"Cannot match {vendor} {product} {version}: "
                f"key query: {fast_error or 'skipped'}; full scan: {e}",
                fast_error=fast_error,
                fallback_error=e,
            ) from e

    async def match(self, vendor: str, product: str, version: str,
                    timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        """Records affecting ``version``, in storage order, with final scores attached"""
        rows = await self._candidates(vendor, product, version, timeout)

        results = []
        for row in rows:
            # saved scan outcomes share the table but are not advisories
            if row.source is Source.SCAN or not matches(version, row):
                continue
            final = self.aggregator.score_record(row)
            severity = row.severity
            if severity is Severity.UNKNOWN:
                severity = severity_for_score(final)
            results.append(replace(row, final_score=final, severity=severity))

        logging.info(f"{vendor} {product} {version}: {len(results)} matching vulnerabilities")
        return results

    async def match_target(self, target: TargetDescriptor,
                           timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return await self.match(target.vendor, target.product, target.version, timeout=timeout)
