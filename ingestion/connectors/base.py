"""
Connector contract and the shared HTTP implementation.

A connector returns one page of raw records per call and reports whether
the source claims to have more. Connectors never retry: a failure surfaces
as TransientFetchError and the next invocation resumes from the persisted
cursor.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple
import logging

import httpx

from core.config import settings
from core.exceptions import ConnectorResponseError, TransientFetchError
from models.base import SourceSystem
from schemas.pipeline import ExtractionCursor, Page

logger = logging.getLogger(__name__)


class Connector(ABC):
    """Pull-based page source for one source system"""

    source: SourceSystem

    @abstractmethod
    async def fetch_page(self, cursor: ExtractionCursor, limit: int) -> Page:
        """Fetch ``limit`` records starting at ``cursor.offset``"""

    @abstractmethod
    async def test_connection(self) -> bool:
        """Return True when the source answers a minimal request"""


class HTTPConnector(Connector):
    """
    Connector backed by a JSON-over-HTTP API.

    Subclasses describe the request (``build_request``), the headers
    (``build_headers``) and how to read a page out of the decoded body
    (``parse_page``). Everything else lives here:
    - Fixed request timeout
    - Mapping of timeouts, network errors and non-2xx responses to
      TransientFetchError
    - JSON decoding
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.FETCH_TIMEOUT_SECONDS
        self._client = client

    @abstractmethod
    def build_request(self, offset: int, limit: int) -> Tuple[str, Dict[str, Any]]:
        """Return (url, query params) for the page at ``offset``"""

    @abstractmethod
    def build_headers(self) -> Dict[str, str]:
        pass

    @abstractmethod
    def parse_page(self, data: Any, offset: int, limit: int) -> Page:
        pass

    async def fetch_page(self, cursor: ExtractionCursor, limit: int) -> Page:
        url, params = self.build_request(cursor.offset, limit)
        logger.info(f"Fetching {self.source.value} page at offset {cursor.offset} (limit {limit})")

        data = await self._get_json(url, params, offset=cursor.offset)
        page = self.parse_page(data, cursor.offset, limit)

        logger.debug(
            f"Fetched {len(page.records)} records from {self.source.value}, has_next={page.has_next}"
        )
        return page

    async def test_connection(self) -> bool:
        try:
            await self.fetch_page(ExtractionCursor.initial(self.source.value), 1)
            return True
        except (TransientFetchError, ConnectorResponseError) as e:
            logger.error(f"{self.source.value} connection test failed: {e.message}")
            return False

    async def _get_json(self, url: str, params: Dict[str, Any], offset: int) -> Any:
        if self._client is not None:
            response = await self._request(self._client, url, params, offset)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await self._request(client, url, params, offset)

        try:
            return response.json()
        except ValueError as e:
            raise ConnectorResponseError(
                "Failed to parse JSON response",
                context={
                    "source_system": self.source.value,
                    "url": url,
                    "offset": offset,
                    "response_body": response.text[:500]
                },
                original_exception=e
            )

    async def _request(
        self,
        client: httpx.AsyncClient,
        url: str,
        params: Dict[str, Any],
        offset: int,
    ) -> httpx.Response:
        context = {"source_system": self.source.value, "url": url, "offset": offset}

        try:
            response = await client.get(
                url,
                headers=self.build_headers(),
                params=params,
                timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise TransientFetchError(
                f"Request timed out after {self.timeout}s",
                context={**context, "timeout": self.timeout},
                original_exception=e
            )
        except httpx.HTTPError as e:
            raise TransientFetchError(
                "Network error while fetching page",
                context=context,
                original_exception=e
            )

        if not 200 <= response.status_code < 300:
            raise TransientFetchError(
                f"{self.source.value} API request failed: {response.status_code}",
                context={
                    **context,
                    "status_code": response.status_code,
                    "response_body": response.text[:500]
                }
            )

        return response


def records_from(data: Any, *keys: str) -> list:
    """Pull the record list out of a bare-list or enveloped response"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []
