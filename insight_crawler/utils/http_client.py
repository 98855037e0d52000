# utils/http_client.py

"""
Async HTTP fetching with browser-like headers and explicit timeouts.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from common.logger import LoggerFactory, LoggerType, LogLevel

from ..core.config import settings
from ..core.exceptions import FetchError

logger = LoggerFactory.get_logger(
    name="http-client", logger_type=LoggerType.STANDARD, level=LogLevel.INFO
)


def default_headers(user_agent: Optional[str] = None) -> Dict[str, str]:
    return {
        "User-Agent": user_agent or settings.user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": settings.accept_language,
    }


@dataclass
class FetchResponse:
    """Status, headers and decoded body of one GET."""

    url: str
    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "").lower()

    def json(self) -> Any:
        return json.loads(self.text)


class HttpFetcher:
    """
    Thin wrapper around httpx.AsyncClient.

    Usable as an async context manager; every call takes its own timeout so
    probes and page fetches can use different budgets on one client.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout or settings.http_timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.timeout,
            headers=default_headers(user_agent),
            follow_redirects=True,
        )

    async def __aenter__(self) -> "HttpFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def get(
        self,
        url: str,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> FetchResponse:
        """GET a URL. Network failures raise FetchError; any status is returned."""
        try:
            response = await self.client.get(
                url, timeout=timeout or self.timeout, headers=headers, params=params
            )
        except httpx.HTTPError as e:
            raise FetchError(f"Request failed: {e.__class__.__name__}", url=url)
        return FetchResponse(
            url=str(response.url),
            status=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
            text=response.text,
        )

    async def get_html(self, url: str, timeout: Optional[float] = None) -> str:
        """GET a page and return its body, raising FetchError on non-2xx."""
        response = await self.get(url, timeout=timeout)
        if not response.ok:
            raise FetchError(
                f"HTTP {response.status}", url=url, status=response.status
            )
        return response.text

    async def request_json(
        self,
        method: str,
        url: str,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Any] = None,
    ) -> Any:
        """Send a request and decode the JSON response."""
        request_headers = {"Accept": "application/json"}
        request_headers.update(headers or {})
        try:
            response = await self.client.request(
                method.upper(),
                url,
                timeout=timeout or self.timeout,
                headers=request_headers,
                params=params or None,
                json=body if method.upper() != "GET" else None,
            )
        except httpx.HTTPError as e:
            raise FetchError(f"Request failed: {e.__class__.__name__}", url=url)
        if not response.is_success:
            raise FetchError(
                f"HTTP {response.status_code}", url=url, status=response.status_code
            )
        try:
            return response.json()
        except json.JSONDecodeError:
            raise FetchError("Response is not JSON", url=url)

    async def exists(self, url: str, timeout: Optional[float] = None) -> bool:
        """HEAD probe following redirects. Any failure counts as absent."""
        try:
            response = await self.client.head(
                url, timeout=timeout or settings.head_timeout
            )
        except httpx.HTTPError as e:
            logger.debug(f"HEAD {url} failed: {e}")
            return False
        return response.is_success

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()
