"""Feed collectors turning advisories into stored vulnerability records"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional

from ..classification.cpe import (
    canonical_product,
    canonical_vendor,
    is_tracked_product,
    parse_cpe,
    severity_for_score,
)
from ..clients.nvd_client import NVDClient
from ..core.exceptions import FeedError, MalformedPayloadError
from ..core.models import Severity, Source, VulnerabilityRecord
from ..storage.base import VulnerabilityStore
from .schema import CPEMatch, NVDVulnerability


class Collector(ABC):
    """Populates the store from one feed"""

    source: Source

    def __init__(self, store: VulnerabilityStore):
        self.store = store

    @abstractmethod
    async def collect(self, since: Optional[str] = None) -> int:
        """Ingest advisories published since ``since`` (YYYY-MM-DD); returns records upserted"""


def records_for_match(vuln: NVDVulnerability, match: CPEMatch,
                      observed: datetime) -> List[VulnerabilityRecord]:
    """Records stored for one vulnerable CPE match of a tracked product.

    A range (or an open interval when neither a range nor a version is given)
    becomes one record; a concrete CPE version becomes a separate exact-version
    record with the range cleared.
    """
    cpe = parse_cpe(match.criteria)
    if not match.vulnerable or not is_tracked_product(cpe.vendor, cpe.product):
        return []

    base = VulnerabilityRecord(
        source=Source.CVE,
        vendor=canonical_vendor(cpe.vendor, cpe.product),
        product=canonical_product(cpe.vendor, cpe.product),
        vuln_id=vuln.cve_id,
        vuln_name=vuln.cve_id,
        description=vuln.description,
        cvss_score=vuln.base_score,
        severity=severity_for_score(vuln.base_score),
        scan_date=observed,
    )

    records = []
    has_range = bool(match.version_start or match.version_end)
    if has_range or not cpe.version:
        records.append(replace(base, version_start=match.version_start, version_end=match.version_end))
    if cpe.version:
        records.append(replace(base, version_number=cpe.version))
    return records


class CVECollector(Collector):
    """NVD CVE feed, paged until exhausted"""

    source = Source.CVE

    def __init__(self, store: VulnerabilityStore, client: NVDClient,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        super().__init__(store)
        self.client = client
        self.sleep = sleep

    async def collect(self, since: Optional[str] = None) -> int:
        """Page through NVD and upsert every tracked CPE match.

        Collection stops quietly on an empty page, at the reported total, or
        when a page cannot be fetched or parsed; records already stored are
        kept.
        """
        page_size = self.client.config.page_size
        start_index = 0
        stored = 0
        observed = datetime.now(timezone.utc)

        while True:
            try:
                page = await self.client.fetch_page(start_index, since)
            except MalformedPayloadError as e:
                logging.warning(f"Stopping CVE collection: {e}")
                break
            except FeedError as e:
                logging.warning(f"Stopping CVE collection after fetch failure: {e}")
                break

            if page is None or not page.vulnerabilities:
                break

            for vuln in page.vulnerabilities:
                for match in vuln.cpe_matches:
                    for record in records_for_match(vuln, match, observed):
                        await self.store.insert_or_update(record)
                        stored += 1

            logging.info(f"CVE page at offset {start_index}: {len(page.vulnerabilities)} advisories, "
                         f"{stored} records stored so far")

            start_index += page_size
            if page.total_results and start_index >= page.total_results:
                break
            await self.sleep(self.client.config.page_delay)

        logging.info(f"CVE collection complete: {stored} records")
        return stored


class StaticFeedCollector(Collector):
    """Feed served from built-in advisories instead of a remote API"""

    advisories: List[VulnerabilityRecord] = []

    async def collect(self, since: Optional[str] = None) -> int:
        observed = datetime.now(timezone.utc)
        for advisory in self.advisories:
            await self.store.insert_or_update(replace(advisory, scan_date=observed))
        logging.info(f"{self.source.value} collection complete: {len(self.advisories)} records")
        return len(self.advisories)


class CNVDCollector(StaticFeedCollector):
    source = Source.CNVD
    advisories = [
        VulnerabilityRecord(
            source=Source.CNVD,
            vendor="Oracle",
            product="MySQL",
            version_start="8.0.0",
            version_end="8.0.33",
            vuln_id="CNVD-DEMO",
            vuln_name="Demo",
            description="Demo CNVD entry",
            cnvd_score=6.5,
            severity=Severity.MEDIUM,
        ),
    ]


class AliyunCollector(StaticFeedCollector):
    source = Source.ALIYUN
    advisories = [
        VulnerabilityRecord(
            source=Source.ALIYUN,
            vendor="PostgreSQL",
            product="PostgreSQL",
            version_start="14.0",
            version_end="14.9",
            vuln_id="ALIYUN-DEMO",
            vuln_name="Demo",
            description="Demo Aliyun entry",
            aliyun_score=5.0,
            severity=Severity.MEDIUM,
        ),
    ]
