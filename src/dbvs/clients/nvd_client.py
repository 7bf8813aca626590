"""NVD API Client"""

import asyncio
import json
import logging
from typing import Awaitable, Callable, List, Optional, Tuple

from aiohttp import ClientError, ClientSession, ClientTimeout
from dateutil import parser as date_parser
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from ..config.settings import DBVSConfig
from ..core.exceptions import FeedError, MalformedPayloadError, RateLimitedError, TransientFeedError
from ..ingestion.schema import NVDPage


USER_AGENT = 'DBVS/1.0.0 (Database Vulnerability Scanner)'


def format_pub_start(since: str) -> str:
    """NVD ``pubStartDate`` for a ``YYYY-MM-DD`` (or any ISO 8601) date"""
    day = date_parser.isoparse(since).date()
    return f"{day.isoformat()}T00:00:00.000"


class NVDClient:
    """Paginated NVD CVE API client with bounded retry"""

    def __init__(self, session: ClientSession, config: DBVSConfig,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.session = session
        self.config = config
        self.sleep = sleep

    def build_params(self, start_index: int, since: Optional[str] = None) -> List[Tuple[str, str]]:
        """Query string for one page; ``cpeName`` repeats once per filter"""
        params = [
            ('resultsPerPage', str(self.config.page_size)),
            ('startIndex', str(start_index)),
            ('keywordSearch', ",".join(self.config.keywords)),
        ]
        if since:
            params.append(('pubStartDate', format_pub_start(since)))
        params.extend(('cpeName', cpe) for cpe in self.config.cpe_filters)
        return params

    async def fetch_page(self, start_index: int, since: Optional[str] = None) -> Optional[NVDPage]:
        """Fetch and parse one page; None when the API returns an empty body.

        Transport failures, 429 and 5xx answers are retried according to the
        configured :class:`RetryPolicy`; the last error is re-raised.
        """
        policy = self.config.retry
        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.attempts),
            wait=policy.wait,
            retry=retry_if_exception_type(TransientFeedError),
            sleep=self.sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logging.info(f"Retrying NVD page {start_index} (attempt {attempt.retry_state.attempt_number})")
                body = await self._get(self.build_params(start_index, since))

        if not body.strip():
            return None
        try:
            payload = json.loads(body.decode("utf-8"))
        except ValueError as e:
            # UnicodeDecodeError is a ValueError
            raise MalformedPayloadError(f"NVD page {start_index} is not valid UTF-8 JSON: {e}") from e
        return NVDPage.from_payload(payload, start_index=start_index)

    async def _get(self, params: List[Tuple[str, str]]) -> bytes:
        headers = {'User-Agent': USER_AGENT}
        if self.config.nvd_api_key:
            headers['apiKey'] = self.config.nvd_api_key

        timeout = ClientTimeout(total=self.config.request_timeout, connect=10)
        try:
            async with self.session.get(self.config.nvd_base_url, params=params,
                                        headers=headers, timeout=timeout) as response:
                logging.debug(f"NVD API response status: {response.status}")

                if response.status == 200:
                    return await response.read()

                if response.status == 429 or response.status >= 500:
                    logging.warning(f"NVD API returned {response.status} - will retry")
                    raise RateLimitedError(f"NVD API returned HTTP {response.status}")

                error_text = (await response.read()).decode("utf-8", errors="replace")
                logging.error(f"NVD API error {response.status}: {error_text[:200]}")
                if response.status == 403 and "api key" in error_text.lower():
                    logging.error("Check your NVD API key configuration")
                raise FeedError(f"NVD API returned HTTP {response.status}")

        except asyncio.TimeoutError as e:
            logging.warning("Timeout fetching NVD page")
            raise TransientFeedError("Timeout fetching NVD page") from e
        except ClientError as e:
            logging.warning(f"Network error fetching NVD page: {e}")
            raise TransientFeedError(f"Network error: {e}") from e
