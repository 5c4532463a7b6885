"""GitHub REST client for repository metadata, README, file and directory access."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from ...core.errors import (
    AppError,
    ErrorCode,
    classify_http_status,
    classify_network_error,
    invalid_input_error,
)
from ...core.retry import default_should_retry, retry_config_from, with_retry
from ..fetcher import DocumentationFetcher
from .models import GithubContentItem, RateLimitInfo, RepositoryMetadata

logger = logging.getLogger(__name__)

JSON_ACCEPT = "application/vnd.github.v3+json"
RAW_ACCEPT = "application/vnd.github.raw"


def _should_retry_github(error: AppError) -> bool:
    # Rate limiting will not clear within the retry window
    if error.status_code == 403:
        return False
    return default_should_retry(error)


class GitHubClient:
    """Async GitHub API client.

    Every call is retried on transient failures; missing repositories and files
    raise NOT_FOUND, exhausted rate limits raise NETWORK_ERROR with the reset time.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        fetcher: Optional[DocumentationFetcher] = None,
    ):
        default_config = {
            "token": None,
            "max_concurrent": 5,
            "base_url": "https://api.github.com",
            "timeout": 30.0,
            "max_retries": 3,
            "retry_delay": 1.0,
            "user_agent": "Docs-Ingest/1.0",
        }

        if config:
            default_config.update(config)

        self.config = default_config
        self.base_url = self.config["base_url"].rstrip("/")
        self.session: Optional[aiohttp.ClientSession] = None
        self._retry_config = retry_config_from(self.config, should_retry=_should_retry_github)
        # Requests share the fetcher's in-flight cap when one is given
        self.fetcher = fetcher
        self._semaphore = asyncio.Semaphore(self.config["max_concurrent"])

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session with GitHub authentication."""
        if self.session is None or self.session.closed:
            headers = {"User-Agent": self.config["user_agent"]}
            if self.config["token"]:
                headers["Authorization"] = f"token {self.config['token']}"
            timeout = aiohttp.ClientTimeout(total=self.config["timeout"])
            self.session = aiohttp.ClientSession(headers=headers, timeout=timeout)
        return self.session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None

    async def _request(
        self,
        path: str,
        accept: str = JSON_ACCEPT,
        raw: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        context = context or {}

        async def send() -> Any:
            session = await self._get_session()
            try:
                async with session.get(url, headers={"Accept": accept}) as response:
                    if response.status >= 400:
                        raise self._error_for_response(response, url, context)
                    if raw:
                        return await response.text()
                    return await response.json()
            except AppError:
                raise
            except Exception as e:
                raise classify_network_error(e, url, context)

        async def attempt_request(attempt: int) -> Any:
            logger.debug(f"GitHub request {path} (attempt {attempt})")
            return await self._with_slot(send)

        return await with_retry(attempt_request, self._retry_config)

    async def _with_slot(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        if self.fetcher is not None:
            return await self.fetcher.run_with_slot(operation)
        async with self._semaphore:
            return await operation()

    def _error_for_response(
        self, response: aiohttp.ClientResponse, url: str, context: Dict[str, Any]
    ) -> AppError:
        reset_header = response.headers.get("x-ratelimit-reset")
        if response.status == 403 and reset_header:
            reset = datetime.fromtimestamp(int(reset_header), tz=timezone.utc)
            return AppError(
                f"GitHub API rate limit exceeded. Resets at {reset.isoformat()}",
                ErrorCode.NETWORK_ERROR,
                403,
                context={**context, "rate_limit_reset": reset.isoformat()},
            )
        return classify_http_status(response.status, url, context)

    async def get_repository_metadata(self, owner: str, repo: str) -> RepositoryMetadata:
        """Fetch repository facts; registry fields are left at their defaults."""
        context = {"owner": owner, "repo": repo}
        try:
            data = await self._request(f"/repos/{owner}/{repo}", context=context)
        except AppError as e:
            if e.code == ErrorCode.NOT_FOUND:
                raise AppError(
                    f"Repository not found: {owner}/{repo}",
                    ErrorCode.NOT_FOUND,
                    404,
                    e,
                    context,
                )
            raise

        license_info = data.get("license") or {}
        updated_at = data.get("updated_at")
        return RepositoryMetadata(
            id=f"{owner}/{repo}",
            name=data.get("name", repo),
            owner=(data.get("owner") or {}).get("login", owner),
            url=data.get("html_url", f"https://github.com/{owner}/{repo}"),
            description=data.get("description") or "",
            default_branch=data.get("default_branch") or "main",
            updated_at=datetime.fromisoformat(updated_at.replace("Z", "+00:00"))
            if updated_at
            else None,
            stars=data.get("stargazers_count", 0),
            forks=data.get("forks_count", 0),
            open_issues=data.get("open_issues_count", 0),
            topics=data.get("topics") or [],
            size=data.get("size", 0),
            license=license_info.get("name"),
        )

    async def get_readme_content(self, owner: str, repo: str) -> str:
        """Raw README text, or an empty string when the repository has none."""
        try:
            return await self._request(
                f"/repos/{owner}/{repo}/readme",
                accept=RAW_ACCEPT,
                raw=True,
                context={"owner": owner, "repo": repo},
            )
        except AppError as e:
            if e.code == ErrorCode.NOT_FOUND:
                logger.debug(f"No README in {owner}/{repo}")
                return ""
            raise

    async def get_file_content(self, owner: str, repo: str, path: str) -> str:
        context = {"owner": owner, "repo": repo, "path": path}
        try:
            return await self._request(
                f"/repos/{owner}/{repo}/contents/{quote(path)}",
                accept=RAW_ACCEPT,
                raw=True,
                context=context,
            )
        except AppError as e:
            if e.code == ErrorCode.NOT_FOUND:
                raise AppError(
                    f"File not found: {path} in {owner}/{repo}",
                    ErrorCode.NOT_FOUND,
                    404,
                    e,
                    context,
                )
            raise

    async def get_directory_contents(
        self, owner: str, repo: str, path: str = ""
    ) -> List[GithubContentItem]:
        """List a directory; listing a file path raises INVALID_INPUT."""
        context = {"owner": owner, "repo": repo, "path": path}
        data = await self._request(
            f"/repos/{owner}/{repo}/contents/{quote(path)}", context=context
        )

        if not isinstance(data, list):
            raise invalid_input_error(
                f"Path is not a directory: {path} in {owner}/{repo}",
                context={**context, "response_type": type(data).__name__},
            )

        return [
            GithubContentItem(
                name=item["name"],
                path=item["path"],
                type=item.get("type", "file"),
                sha=item.get("sha", ""),
            )
            for item in data
        ]

    async def check_rate_limits(self) -> RateLimitInfo:
        data = await self._request("/rate_limit")
        core = (data.get("resources") or {}).get("core") or data.get("rate") or {}
        return RateLimitInfo(
            limit=core.get("limit", 0),
            remaining=core.get("remaining", 0),
            reset=datetime.fromtimestamp(core.get("reset", 0), tz=timezone.utc),
        )
