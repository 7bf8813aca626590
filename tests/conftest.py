"""Shared fixtures for DBVS tests."""

import pytest

from dbvs.config.settings import DBVSConfig, RetryPolicy
from dbvs.core.models import Source, VulnerabilityRecord
from dbvs.storage.memory import MemoryStore


@pytest.fixture
def config():
    return DBVSConfig(
        nvd_base_url="https://nvd.example/rest/json/cves/2.0",
        database_dsn="memory://",
        page_size=2,
        page_delay=0.0,
        retry=RetryPolicy(attempts=3, backoff=0.2, rate_limit_backoff=0.4),
    )


@pytest.fixture
def store():
    return MemoryStore()


def make_record(vuln_id="CVE-2024-0001", vendor="PostgreSQL", product="PostgreSQL",
                source=Source.CVE, **kwargs) -> VulnerabilityRecord:
    return VulnerabilityRecord(source=source, vendor=vendor, product=product, vuln_id=vuln_id, **kwargs)


@pytest.fixture
def record_factory():
    return make_record
