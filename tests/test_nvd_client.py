"""Unit tests for dbvs.clients.nvd_client"""

import asyncio
import json

import aiohttp
import pytest

from dbvs.clients.nvd_client import NVDClient, format_pub_start
from dbvs.core.exceptions import FeedError, MalformedPayloadError, RateLimitedError, TransientFeedError
from dbvs.ingestion.collectors import CVECollector


class FakeResponse:
    def __init__(self, status, body=b""):
        self.status = status
        self._body = body.encode("utf-8") if isinstance(body, str) else body

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Replays canned responses (or raises canned exceptions) in order"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({'url': url, 'params': params, 'headers': headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def page_body(*cve_ids, total=None):
    return json.dumps({
        "resultsPerPage": len(cve_ids),
        "startIndex": 0,
        "totalResults": total if total is not None else len(cve_ids),
        "vulnerabilities": [{"cve": {"id": cve_id}} for cve_id in cve_ids],
    })


@pytest.fixture
def sleep():
    return RecordingSleep()


def test_format_pub_start():
    assert format_pub_start("2024-06-01") == "2024-06-01T00:00:00.000"
    assert format_pub_start("2024-06-01T15:30:00Z") == "2024-06-01T00:00:00.000"


class TestBuildParams:
    def test_repeats_cpe_filters(self, config):
        client = NVDClient(FakeSession(), config)
        params = client.build_params(40, since="2024-06-01")

        assert ('resultsPerPage', '2') in params
        assert ('startIndex', '40') in params
        assert ('keywordSearch', 'mysql,postgresql,sql server,oracle') in params
        assert ('pubStartDate', '2024-06-01T00:00:00.000') in params
        assert [value for name, value in params if name == 'cpeName'] == config.cpe_filters

    def test_no_since(self, config):
        params = NVDClient(FakeSession(), config).build_params(0)
        assert 'pubStartDate' not in dict(params)


class TestFetchPage:
    @pytest.mark.asyncio
    async def test_success(self, config, sleep):
        session = FakeSession(FakeResponse(200, page_body("CVE-1", "CVE-2", total=9)))
        page = await NVDClient(session, config, sleep=sleep).fetch_page(0)

        assert [v.cve_id for v in page.vulnerabilities] == ["CVE-1", "CVE-2"]
        assert page.total_results == 9
        assert session.calls[0]['url'] == config.nvd_base_url
        assert 'apiKey' not in session.calls[0]['headers']
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_api_key_header(self, config, sleep):
        config.nvd_api_key = "secret"
        session = FakeSession(FakeResponse(200, page_body("CVE-1")))
        await NVDClient(session, config, sleep=sleep).fetch_page(0)
        assert session.calls[0]['headers']['apiKey'] == "secret"

    @pytest.mark.asyncio
    async def test_rate_limit_retried_with_longer_backoff(self, config, sleep):
        session = FakeSession(
            FakeResponse(429),
            FakeResponse(429),
            FakeResponse(200, page_body("CVE-1")),
        )
        page = await NVDClient(session, config, sleep=sleep).fetch_page(0)

        assert len(page.vulnerabilities) == 1
        assert len(session.calls) == 3
        assert sleep.delays == pytest.approx([0.4, 0.8])

    @pytest.mark.asyncio
    async def test_network_errors_use_plain_backoff(self, config, sleep):
        session = FakeSession(
            aiohttp.ClientConnectionError("connection reset"),
            asyncio.TimeoutError(),
            FakeResponse(200, page_body("CVE-1")),
        )
        page = await NVDClient(session, config, sleep=sleep).fetch_page(0)

        assert len(page.vulnerabilities) == 1
        assert sleep.delays == pytest.approx([0.2, 0.4])

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, config, sleep):
        session = FakeSession(FakeResponse(503), FakeResponse(503), FakeResponse(503))
        with pytest.raises(RateLimitedError):
            await NVDClient(session, config, sleep=sleep).fetch_page(0)
        assert len(session.calls) == config.retry.attempts

    @pytest.mark.asyncio
    async def test_client_error_status_not_retried(self, config, sleep):
        session = FakeSession(FakeResponse(404, "not found"))
        with pytest.raises(FeedError) as excinfo:
            await NVDClient(session, config, sleep=sleep).fetch_page(0)

        assert not isinstance(excinfo.value, TransientFeedError)
        assert len(session.calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_empty_body(self, config, sleep):
        session = FakeSession(FakeResponse(200, "  \n"))
        assert await NVDClient(session, config, sleep=sleep).fetch_page(0) is None

    @pytest.mark.asyncio
    async def test_invalid_json(self, config, sleep):
        session = FakeSession(FakeResponse(200, "{not json"))
        with pytest.raises(MalformedPayloadError):
            await NVDClient(session, config, sleep=sleep).fetch_page(0)

    @pytest.mark.asyncio
    async def test_invalid_utf8_body(self, config, sleep):
        body = b'{"vulnerabilities": [{"cve": {"id": "CVE-\xff\xfe"}}]}'
        session = FakeSession(FakeResponse(200, body))
        with pytest.raises(MalformedPayloadError):
            await NVDClient(session, config, sleep=sleep).fetch_page(0)
        assert len(session.calls) == 1

    @pytest.mark.asyncio
    async def test_error_status_with_binary_body(self, config, sleep):
        session = FakeSession(FakeResponse(403, b"\xff\xfe forbidden"))
        with pytest.raises(FeedError):
            await NVDClient(session, config, sleep=sleep).fetch_page(0)


class TestCollectionOverClient:
    @pytest.mark.asyncio
    async def test_invalid_utf8_page_ends_collection_quietly(self, config, store, sleep):
        session = FakeSession(FakeResponse(200, b'{"vulnerabilities": [{"cve": {"id": "CVE-\xff\xfe"}}]}'))
        collector = CVECollector(store, NVDClient(session, config, sleep=sleep), sleep=sleep)

        assert await collector.collect() == 0
        assert len(store) == 0
