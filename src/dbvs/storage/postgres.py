"""PostgreSQL vulnerability store (asyncpg)"""

import asyncio
import logging
from typing import List, Optional

import asyncpg

from ..core.exceptions import StorageError
from ..core.models import Severity, Source, VulnerabilityRecord
from .base import VulnerabilityStore, record_keys


CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS vulnerability_scans (
    id BIGSERIAL PRIMARY KEY,
    source VARCHAR(20) NOT NULL,
    vendor_name VARCHAR(100) NOT NULL,
    product_name VARCHAR(200) NOT NULL,
    version_start VARCHAR(50) NOT NULL DEFAULT '',
    version_end VARCHAR(50) NOT NULL DEFAULT '',
    version_number VARCHAR(50) NOT NULL DEFAULT '',
    version_start_key BIGINT NULL,
    version_end_key BIGINT NULL,
    version_number_key BIGINT NULL,
    vuln_id VARCHAR(50) NOT NULL,
    vuln_name VARCHAR(200) NOT NULL DEFAULT '',
    vuln_description TEXT NOT NULL DEFAULT '',
    cvss_score DOUBLE PRECISION NULL,
    cnvd_score DOUBLE PRECISION NULL,
    aliyun_score DOUBLE PRECISION NULL,
    score_final DOUBLE PRECISION NULL,
    severity VARCHAR(20) NOT NULL DEFAULT 'UNKNOWN',
    patch_info TEXT NOT NULL DEFAULT '',
    scan_date TIMESTAMPTZ NULL,
    CONSTRAINT uniq_vuln UNIQUE (source, vendor_name, product_name,
                                 version_start, version_end, version_number, vuln_id)
)
"""

CREATE_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_vendor_product ON vulnerability_scans (vendor_name, product_name)",
    "CREATE INDEX IF NOT EXISTS idx_version_keys ON vulnerability_scans "
    "(version_start_key, version_end_key, version_number_key)",
]

UPSERT = """
INSERT INTO vulnerability_scans
    (source, vendor_name, product_name, version_start, version_end, version_number,
     version_start_key, version_end_key, version_number_key,
     vuln_id, vuln_name, vuln_description, cvss_score, cnvd_score, aliyun_score,
     score_final, severity, patch_info, scan_date)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, $17, $18, $19)
ON CONFLICT ON CONSTRAINT uniq_vuln DO UPDATE SET
    vuln_name = EXCLUDED.vuln_name,
    vuln_description = EXCLUDED.vuln_description,
    cvss_score = EXCLUDED.cvss_score,
    cnvd_score = EXCLUDED.cnvd_score,
    aliyun_score = EXCLUDED.aliyun_score,
    score_final = EXCLUDED.score_final,
    severity = EXCLUDED.severity,
    patch_info = EXCLUDED.patch_info,
    scan_date = EXCLUDED.scan_date
"""

SELECT_COLUMNS = """
SELECT id, source, vendor_name, product_name, version_start, version_end, version_number,
       vuln_id, vuln_name, vuln_description, cvss_score, cnvd_score, aliyun_score,
       score_final, severity, patch_info, scan_date
FROM vulnerability_scans
"""

QUERY_BY_KEY = SELECT_COLUMNS + """
WHERE vendor_name = $1 AND product_name = $2 AND (
    (version_number_key IS NOT NULL AND version_number_key = $3) OR
    (
        (version_start_key IS NULL OR version_start_key <= $3) AND
        (version_end_key IS NULL OR version_end_key >= $3)
    )
)
ORDER BY id
"""

QUERY_BY_PRODUCT = SELECT_COLUMNS + """
WHERE vendor_name = $1 AND product_name = $2
ORDER BY id
"""

QUERY_ALL = SELECT_COLUMNS + "ORDER BY id"

DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def row_to_record(row) -> VulnerabilityRecord:
    """Build a record from a ``vulnerability_scans`` row"""
    return VulnerabilityRecord(
        id=row['id'],
        source=Source(row['source']),
        vendor=row['vendor_name'],
        product=row['product_name'],
        version_start=row['version_start'] or "",
        version_end=row['version_end'] or "",
        version_number=row['version_number'] or "",
        vuln_id=row['vuln_id'],
        vuln_name=row['vuln_name'] or "",
        description=row['vuln_description'] or "",
        cvss_score=row['cvss_score'],
        cnvd_score=row['cnvd_score'],
        aliyun_score=row['aliyun_score'],
        final_score=row['score_final'],
        severity=Severity(row['severity'] or Severity.UNKNOWN.value),
        patch_info=row['patch_info'] or "",
        scan_date=row['scan_date'],
    )


class PostgresStore(VulnerabilityStore):
    """Store backed by the ``vulnerability_scans`` table"""

    def __init__(self, dsn: str, min_size: int = 1, max_size: int = 10):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        """Create the connection pool and the schema"""
        try:
            self.pool = await asyncpg.create_pool(self.dsn, min_size=self.min_size, max_size=self.max_size)
            async with self.pool.acquire() as conn:
                await conn.execute(CREATE_TABLE)
                for ddl in CREATE_INDEXES:
                    await conn.execute(ddl)
        except DB_ERRORS as e:
            raise StorageError(f"Cannot open vulnerability store: {e}") from e
        logging.info("Vulnerability store ready")

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise StorageError("Vulnerability store is not connected")
        return self.pool

    async def insert_or_update(self, record: VulnerabilityRecord) -> None:
        start_key, end_key, number_key = record_keys(record)
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                await conn.execute(
                    UPSERT,
                    record.source.value, record.vendor, record.product,
                    record.version_start, record.version_end, record.version_number,
                    start_key, end_key, number_key,
                    record.vuln_id, record.vuln_name, record.description,
                    record.cvss_score, record.cnvd_score, record.aliyun_score,
                    record.final_score, record.severity.value, record.patch_info, record.scan_date,
                )
        except DB_ERRORS as e:
            raise StorageError(f"Upsert of {record.vuln_id} failed: {e}") from e

    async def _fetch(self, query: str, *args, timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(query, *args, timeout=timeout)
        except DB_ERRORS as e:
            raise StorageError(f"Query failed: {e}") from e
        return [row_to_record(row) for row in rows]

    async def query_by_normalized_key(self, vendor: str, product: str, target_key: int,
                                      timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return await self._fetch(QUERY_BY_KEY, vendor, product, target_key, timeout=timeout)

    async def query_all_for_product(self, vendor: str, product: str,
                                    timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return await self._fetch(QUERY_BY_PRODUCT, vendor, product, timeout=timeout)

    async def list_all(self, timeout: Optional[float] = None) -> List[VulnerabilityRecord]:
        return await self._fetch(QUERY_ALL, timeout=timeout)
