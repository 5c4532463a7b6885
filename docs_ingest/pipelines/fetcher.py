"""Bounded-concurrency documentation fetcher."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import aiohttp
from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from ..core.errors import AppError, classify_http_status, classify_network_error, validation_error
from ..core.retry import retry_config_from, with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAIN_CONTENT_SELECTORS = ["main", "article", ".content", "#content"]
NON_CONTENT_TAGS = ["script", "style", "nav", "footer", "header"]


class FetchResult(BaseModel):
    """Raw content acquired from a URL."""

    content: str
    content_type: str = "text/plain"
    status_code: int
    headers: Dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DocumentationFetcher:
    """Fetch documents over HTTP with a shared in-flight cap and retry."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        default_config = {
            "max_concurrent": 5,
            "timeout": 30.0,
            "max_retries": 3,
            "retry_delay": 1.0,
            "user_agent": "Docs-Ingest-Documentation-Fetcher/1.0.0",
        }

        if config:
            default_config.update(config)

        self.config = default_config
        self.session: Optional[aiohttp.ClientSession] = None
        self._semaphore = asyncio.Semaphore(self.config["max_concurrent"])
        self._in_flight = 0

    @property
    def in_flight(self) -> int:
        """Number of requests currently holding a slot."""
        return self._in_flight

    async def __aenter__(self) -> "DocumentationFetcher":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session."""
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config["timeout"])
            self.session = aiohttp.ClientSession(
                timeout=timeout, headers={"User-Agent": self.config["user_agent"]}
            )
        return self.session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    async def fetch(self, url: str, headers: Optional[Dict[str, str]] = None) -> FetchResult:
        """Fetch a URL, retrying transient failures, then validate the result.

        Validation runs once after the retry loop and is never retried itself.
        """

        async def attempt_fetch(attempt: int) -> FetchResult:
            logger.debug(f"Fetching {url} (attempt {attempt})")
            return await self.run_with_slot(lambda: self._perform_request(url, headers))

        result = await with_retry(attempt_fetch, retry_config_from(self.config))
        self.validate_content(result, url)
        return result

    async def run_with_slot(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run one acquisition attempt while holding a concurrency slot.

        Browser renders and API calls share the cap with plain fetches.
        """
        async with self._semaphore:
            self._in_flight += 1
            try:
                return await operation()
            finally:
                self._in_flight -= 1

    async def _perform_request(
        self, url: str, headers: Optional[Dict[str, str]] = None
    ) -> FetchResult:
        session = await self._get_session()
        try:
            async with session.get(url, headers=headers) as response:
                if response.status >= 400:
                    raise classify_http_status(response.status, url)

                content = await response.text()
                return FetchResult(
                    content=content,
                    content_type=response.headers.get("Content-Type", "text/plain"),
                    status_code=response.status,
                    headers={k: v for k, v in response.headers.items()},
                )
        except AppError:
            raise
        except Exception as e:
            raise classify_network_error(e, url)

    def validate_content(self, result: FetchResult, url: Optional[str] = None) -> None:
        """Reject empty bodies and anything other than a plain 200."""
        if not result.content:
            raise validation_error("Empty content received", context={"url": url})
        if result.status_code != 200:
            raise validation_error(
                f"Unexpected status code: {result.status_code}",
                context={"url": url, "status": result.status_code},
            )

    def extract_main_content(self, html: str) -> str:
        """Strip page chrome and return the main content region's markup."""
        soup = BeautifulSoup(html, "html.parser")

        for unwanted in soup.find_all(NON_CONTENT_TAGS):
            unwanted.decompose()

        for selector in MAIN_CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element:
                return element.decode_contents().strip()

        if soup.body:
            return soup.body.decode_contents().strip()

        return str(soup).strip()
