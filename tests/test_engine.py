"""Unit tests for dbvs.matching.engine: fast path, fallback and scoring."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from dbvs.core.exceptions import MatchError, StorageError
from dbvs.core.models import Severity, Source, TargetDescriptor
from dbvs.matching.engine import MatchEngine
from dbvs.matching.range_matcher import matches
from dbvs.matching.versions import version_key
from dbvs.storage.memory import MemoryStore
from tests.conftest import make_record


FIXTURE_RECORDS = [
    make_record("CVE-2023-0001", version_start="14.0", version_end="14.9", cvss_score=7.5),
    make_record("CVE-2023-0002", version_start="13.0", version_end="13.11", cvss_score=5.3),
    make_record("CVE-2023-0003", version_number="14.5", cvss_score=9.1),
    make_record("CVE-2023-0004", version_number="14.6", cvss_score=4.0),
    make_record("CVE-2023-0005", version_end="12.4", cvss_score=6.1),
    make_record("CVE-2023-0006", version_start="15.0", cvss_score=8.8),
    make_record("CVE-2023-0007", cvss_score=3.1),
    make_record("CVE-2023-0008", version_start="14.2", version_end="15.1"),
    make_record("CNVD-2023-0009", source=Source.CNVD, version_start="14.0", version_end="14.3", cnvd_score=6.0),
    make_record("CVE-2023-0010", vendor="Oracle", product="MySQL", version_start="8.0.0", version_end="8.0.33",
                cvss_score=7.2),
]

TARGETS = ["12.1", "12.4", "13.0", "13.11", "14.0", "14.2", "14.5", "14.6", "14.9", "15.0", "15.1", "16.2"]


async def _seed(store, records):
    for record in records:
        await store.insert_or_update(record)


class FailingKeyStore(MemoryStore):
    async def query_by_normalized_key(self, vendor, product, target_key, timeout=None):
        raise StorageError("index unavailable")


class FailingStore(FailingKeyStore):
    async def query_all_for_product(self, vendor, product, timeout=None):
        raise StorageError("connection refused")


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_postgres_range_scenario(self, store):
        await store.insert_or_update(make_record(
            "CVE-2024-1000", version_start="14.0", version_end="14.9", cvss_score=7.5))
        engine = MatchEngine(store)

        results = await engine.match("PostgreSQL", "PostgreSQL", "14.5")
        assert len(results) == 1
        assert results[0].severity is Severity.HIGH
        assert results[0].final_score == pytest.approx(7.5)

        assert await engine.match("PostgreSQL", "PostgreSQL", "15.0") == []

    @pytest.mark.asyncio
    async def test_match_target(self, store):
        await store.insert_or_update(make_record(version_start="14.0", version_end="14.9", cvss_score=7.5))
        engine = MatchEngine(store)
        target = TargetDescriptor(vendor="PostgreSQL", product="PostgreSQL", version="14.9")
        assert len(await engine.match_target(target)) == 1


class TestMatch:
    @pytest.mark.asyncio
    async def test_exact_records_do_not_match_through_range_clause(self, store):
        # An exact record has no start/end keys, so the key query returns it for any target
        await store.insert_or_update(make_record(version_number="14.5", cvss_score=9.1))
        engine = MatchEngine(store)
        assert await engine.match("PostgreSQL", "PostgreSQL", "14.6") == []
        assert len(await engine.match("PostgreSQL", "PostgreSQL", "14.5")) == 1

    @pytest.mark.asyncio
    async def test_storage_order_preserved(self, store):
        await _seed(store, FIXTURE_RECORDS)
        results = await MatchEngine(store).match("PostgreSQL", "PostgreSQL", "14.2")
        ids = [r.vuln_id for r in results]
        assert ids == ["CVE-2023-0001", "CVE-2023-0007", "CVE-2023-0008", "CNVD-2023-0009"]

    @pytest.mark.asyncio
    async def test_other_products_excluded(self, store):
        await _seed(store, FIXTURE_RECORDS)
        results = await MatchEngine(store).match("Oracle", "MySQL", "8.0.30")
        assert [r.vuln_id for r in results] == ["CVE-2023-0010"]

    @pytest.mark.asyncio
    async def test_final_score_and_severity(self, store):
        await _seed(store, FIXTURE_RECORDS)
        results = await MatchEngine(store).match("PostgreSQL", "PostgreSQL", "14.2")
        by_id = {r.vuln_id: r for r in results}

        assert by_id["CVE-2023-0008"].final_score is None
        assert by_id["CVE-2023-0008"].severity is Severity.UNKNOWN
        assert by_id["CNVD-2023-0009"].final_score == pytest.approx(6.0)
        assert by_id["CNVD-2023-0009"].severity is Severity.MEDIUM

    @pytest.mark.asyncio
    async def test_explicit_severity_kept(self, store):
        await store.insert_or_update(make_record(cvss_score=9.8, severity=Severity.MEDIUM))
        results = await MatchEngine(store).match("PostgreSQL", "PostgreSQL", "14.1")
        assert results[0].severity is Severity.MEDIUM
        assert results[0].final_score == pytest.approx(9.8)

    @pytest.mark.asyncio
    async def test_stored_records_not_mutated(self, store):
        await store.insert_or_update(make_record(cvss_score=7.5))
        await MatchEngine(store).match("PostgreSQL", "PostgreSQL", "14.1")
        stored = await store.list_all()
        assert stored[0].final_score is None

    @pytest.mark.asyncio
    async def test_saved_scan_records_are_not_findings(self, store):
        await store.insert_or_update(make_record(version_start="14.0", version_end="14.9", cvss_score=7.5))
        engine = MatchEngine(store)
        target = TargetDescriptor(vendor="PostgreSQL", product="PostgreSQL", version="14.5")

        first = await engine.match_target(target)
        await store.save_scan_result(target, first, datetime(2025, 3, 1, tzinfo=timezone.utc))
        await store.save_scan_result(TargetDescriptor("PostgreSQL", "PostgreSQL", "14.5"), [],
                                     datetime(2025, 3, 2, tzinfo=timezone.utc))

        again = await engine.match_target(target)
        assert [r.source for r in again] == [Source.CVE]

    @pytest.mark.asyncio
    async def test_no_records(self, store):
        assert await MatchEngine(store).match("PostgreSQL", "PostgreSQL", "14.1") == []


class TestFastAndFallbackPaths:
    @pytest.mark.asyncio
    async def test_fast_path_used_when_key_available(self):
        store = MemoryStore()
        store.query_by_normalized_key = AsyncMock(return_value=[])
        store.query_all_for_product = AsyncMock(return_value=[])

        await MatchEngine(store).match("Oracle", "MySQL", "8.0.33", timeout=5)

        store.query_by_normalized_key.assert_awaited_once_with("Oracle", "MySQL", 8_000_033, timeout=5)
        store.query_all_for_product.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_keyless_version_goes_straight_to_fallback(self):
        store = MemoryStore()
        store.query_by_normalized_key = AsyncMock(return_value=[])
        store.query_all_for_product = AsyncMock(return_value=[])

        await MatchEngine(store).match("Microsoft", "SQL Server", "15.0.2000.5")

        store.query_by_normalized_key.assert_not_awaited()
        store.query_all_for_product.assert_awaited_once_with("Microsoft", "SQL Server", timeout=None)

    @pytest.mark.asyncio
    async def test_fast_path_failure_falls_back(self):
        store = FailingKeyStore()
        await _seed(store, FIXTURE_RECORDS)
        results = await MatchEngine(store).match("PostgreSQL", "PostgreSQL", "14.5")
        assert {r.vuln_id for r in results} == {
            "CVE-2023-0001", "CVE-2023-0003", "CVE-2023-0007", "CVE-2023-0008",
        }

    @pytest.mark.asyncio
    async def test_both_paths_failing_raises_one_error(self):
        store = FailingStore()
        with pytest.raises(MatchError) as excinfo:
            await MatchEngine(store).match("PostgreSQL", "PostgreSQL", "14.5")

        err = excinfo.value
        assert isinstance(err.fast_error, StorageError)
        assert isinstance(err.fallback_error, StorageError)
        assert "index unavailable" in str(err)
        assert "connection refused" in str(err)

    @pytest.mark.asyncio
    async def test_fast_and_fallback_agree(self):
        fast_store = MemoryStore()
        fallback_store = FailingKeyStore()
        await _seed(fast_store, FIXTURE_RECORDS)
        await _seed(fallback_store, FIXTURE_RECORDS)

        for target in TARGETS:
            fast = await MatchEngine(fast_store).match("PostgreSQL", "PostgreSQL", target)
            fallback = await MatchEngine(fallback_store).match("PostgreSQL", "PostgreSQL", target)
            assert {r.vuln_id for r in fast} == {r.vuln_id for r in fallback}, target

    @pytest.mark.asyncio
    async def test_key_query_is_superset_of_range_matches(self):
        store = MemoryStore()
        await _seed(store, FIXTURE_RECORDS)
        everything = await store.query_all_for_product("PostgreSQL", "PostgreSQL")

        for target in TARGETS:
            candidates = await store.query_by_normalized_key("PostgreSQL", "PostgreSQL", version_key(target))
            candidate_ids = {r.vuln_id for r in candidates}
            expected = {r.vuln_id for r in everything if matches(target, r)}
            assert expected <= candidate_ids, target
