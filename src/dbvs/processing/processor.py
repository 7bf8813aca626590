"""DBVS Processor wiring feeds, store, scanner and match engine"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from ..clients.nvd_client import USER_AGENT, NVDClient
from ..config.settings import DBVSConfig
from ..core.models import TargetDescriptor, VulnerabilityRecord
from ..ingestion.collectors import AliyunCollector, CNVDCollector, CVECollector, Collector
from ..matching.engine import MatchEngine
from ..scanning.target import TargetScanner
from ..scoring.aggregator import ScoreAggregator
from ..storage import VulnerabilityStore, create_store


SOURCES = ('cve', 'cnvd', 'aliyun')


class DBVSProcessor:
    """Owns the HTTP session and the store for the duration of one CLI command"""

    def __init__(self, config: DBVSConfig, store: Optional[VulnerabilityStore] = None):
        self.config = config
        self.store = store if store is not None else create_store(config)
        self.session: Optional[ClientSession] = None
        self.nvd_client: Optional[NVDClient] = None
        self.engine = MatchEngine(self.store, ScoreAggregator(config.weights))

    async def __aenter__(self):
        """Async context manager entry"""
        await self.store.connect()

        timeout = ClientTimeout(
            total=self.config.request_timeout * 2,
            connect=10,
            sock_read=self.config.request_timeout,
        )
        connector = aiohttp.TCPConnector(
            limit=10,
            ttl_dns_cache=300,
            use_dns_cache=True,
        )
        self.session = ClientSession(
            timeout=timeout,
            connector=connector,
            headers={'User-Agent': USER_AGENT},
        )
        self.nvd_client = NVDClient(self.session, self.config)

        logging.info("DBVS processor initialized")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        if self.session:
            await self.session.close()
        await self.store.close()
        logging.info("DBVS processor closed")

    def collector_for(self, source: str) -> Collector:
        source = source.lower()
        if source == 'cve':
            return CVECollector(self.store, self.nvd_client)
        if source == 'cnvd':
            return CNVDCollector(self.store)
        if source == 'aliyun':
            return AliyunCollector(self.store)
        raise ValueError(f"Unknown source {source}")

    async def collect(self, source: str, since: Optional[str] = None) -> int:
        """Ingest one feed into the store"""
        logging.info(f"Collecting {source.upper()} advisories" + (f" since {since}" if since else ""))
        return await self.collector_for(source).collect(since)

    async def match(self, vendor: str, product: str, version: str,
                    timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return await self.engine.match(vendor, product, version, timeout=timeout)

    async def scan(self, scanner: TargetScanner, save: bool = True,
                   timeout: Optional[float] = None) -> Tuple[TargetDescriptor, List[VulnerabilityRecord]]:
        """Detect the target version, match it and optionally save the outcome"""
        target = await scanner.fetch_target()
        logging.info(f"Detected: vendor={target.vendor} product={target.product} version={target.version}")

        results = await self.engine.match_target(target, timeout=timeout)
        if save:
            await self.store.save_scan_result(target, results, datetime.now(timezone.utc))
        return target, results

    async def export_records(self) -> List[VulnerabilityRecord]:
        return await self.store.list_all()
