"""Breadth-first same-site crawler with repository link discovery."""

import logging
from collections import deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from pydantic import BaseModel, Field

from ...core.errors import AppError, ErrorCode
from ...core.retry import retry_config_from, with_retry
from ..fetcher import DocumentationFetcher
from ..parsing.metadata import slugify
from ..parsing.models import ProcessedSection
from ..parsing.parser import DocumentationParser, is_markdown
from .links import extract_links, extract_repository_links, is_same_site, normalize_url
from .rendering import RenderedPage, render_page

logger = logging.getLogger(__name__)

HTML_ACCEPT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}

Renderer = Callable[..., Awaitable[RenderedPage]]


class FrontierEntry(BaseModel):
    url: str
    depth: int
    parent: Optional[str] = None


class CrawlFrontier:
    """FIFO queue of crawl targets plus the visited set.

    A URL is enqueued at most once, so depths come out of the queue in
    non-decreasing order.
    """

    def __init__(self, start_url: str):
        self.visited: Set[str] = set()
        self.queue: Deque[FrontierEntry] = deque()
        self._enqueued: Set[str] = set()
        self.push(start_url, 0, None)

    def push(self, url: str, depth: int, parent: Optional[str]) -> bool:
        if url in self._enqueued or url in self.visited:
            return False
        self._enqueued.add(url)
        self.queue.append(FrontierEntry(url=url, depth=depth, parent=parent))
        return True

    def pop(self) -> FrontierEntry:
        return self.queue.popleft()

    def __bool__(self) -> bool:
        return bool(self.queue)


class PageRecord(BaseModel):
    """Everything acquired from one crawled page."""

    url: str
    depth: int
    parent: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    sections: List[ProcessedSection] = Field(default_factory=list)


class CrawlSkip(BaseModel):
    url: str
    error_code: ErrorCode
    message: str


class CrawlResult(BaseModel):
    content_tree: Dict[str, Any] = Field(default_factory=dict)
    all_pages: List[str] = Field(default_factory=list)
    repositories: List[str] = Field(default_factory=list)
    pages: List[PageRecord] = Field(default_factory=list)
    skipped: List[CrawlSkip] = Field(default_factory=list)


def extract_page_metadata(html: str) -> Dict[str, Any]:
    """Title, description, author, modification time and keywords of a page."""
    soup = BeautifulSoup(html, "html.parser")

    def meta_content(**attrs: str) -> Optional[str]:
        tag = soup.find("meta", attrs=attrs)
        if tag and tag.get("content"):
            return tag["content"].strip()
        return None

    title = meta_content(property="og:title")
    if not title and soup.title:
        title = soup.title.get_text().strip()
    if not title:
        h1 = soup.find("h1")
        title = h1.get_text().strip() if h1 else ""

    keywords = meta_content(name="keywords")

    return {
        "title": title,
        "description": meta_content(name="description")
        or meta_content(property="og:description")
        or "",
        "author": meta_content(name="author"),
        "last_modified": meta_content(property="article:modified_time"),
        "keywords": [k.strip() for k in keywords.split(",") if k.strip()] if keywords else [],
    }


def source_id_for(url: str) -> str:
    parsed = urlparse(url)
    return slugify(f"{parsed.netloc}{parsed.path}") or "index"


class SiteCrawler:
    """Explore a documentation site breadth-first up to a link depth.

    Pages are visited one at a time in queue order; concurrency is bounded by
    the shared fetcher, not by the crawler.
    """

    def __init__(
        self,
        fetcher: DocumentationFetcher,
        parser: DocumentationParser,
        config: Optional[Dict[str, Any]] = None,
        renderer: Optional[Renderer] = None,
    ):
        default_config = {
            "max_depth": 3,
            "use_javascript": False,
            "render_wait": 2.0,
            "include_repositories": True,
            "user_agent": None,
            "timeout": 30.0,
        }

        if config:
            default_config.update(config)

        self.config = default_config
        self.fetcher = fetcher
        self.parser = parser
        self.renderer = renderer or render_page
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def explore(
        self,
        start_url: str,
        max_depth: Optional[int] = None,
        include_repositories: Optional[bool] = None,
    ) -> CrawlResult:
        """Crawl same-site links from ``start_url``.

        Per-page failures are recorded in ``skipped`` and the crawl continues.
        """
        max_depth = self.config["max_depth"] if max_depth is None else max_depth
        if include_repositories is None:
            include_repositories = self.config["include_repositories"]

        start_url = normalize_url(start_url)
        self.logger.info(f"Starting site exploration from {start_url} with max depth {max_depth}")

        frontier = CrawlFrontier(start_url)
        result = CrawlResult()
        tree_nodes: Dict[str, Dict[str, Any]] = {}

        while frontier:
            entry = frontier.pop()
            if entry.url in frontier.visited or entry.depth > max_depth:
                continue

            self.logger.debug(f"Exploring {entry.url} at depth {entry.depth}")
            frontier.visited.add(entry.url)
            result.all_pages.append(entry.url)

            try:
                html, content_type = await self.fetch_page(entry.url)
                page = self._process_page(entry, html, content_type)
            except Exception as e:
                self._record_skip(result, entry.url, e)
                continue

            result.pages.append(page)
            path_key = self._add_to_tree(result.content_tree, tree_nodes, page)

            for link in extract_links(html, entry.url):
                if is_same_site(link, start_url):
                    frontier.push(link, entry.depth + 1, path_key)

            if include_repositories:
                for repo_url in extract_repository_links(html, entry.url):
                    if repo_url not in result.repositories:
                        result.repositories.append(repo_url)
                        self.logger.info(f"Found repository: {repo_url}")

        self.logger.info(
            f"Site exploration finished: {len(result.pages)} pages, "
            f"{len(result.repositories)} repositories, {len(result.skipped)} skipped"
        )
        return result

    async def fetch_page(self, url: str) -> Tuple[str, str]:
        """Fetch raw or script-rendered page markup and its content type.

        Renders go through the fetcher's retry policy and concurrency cap.
        """
        if self.config["use_javascript"]:

            async def attempt_render(attempt: int) -> RenderedPage:
                self.logger.debug(f"Rendering {url} (attempt {attempt})")
                return await self.fetcher.run_with_slot(
                    lambda: self.renderer(
                        url,
                        timeout=self.config["timeout"],
                        wait_after_load=self.config["render_wait"],
                        user_agent=self.config["user_agent"],
                    )
                )

            rendered = await with_retry(attempt_render, retry_config_from(self.fetcher.config))
            return rendered.html, "text/html"

        fetched = await self.fetcher.fetch(url, headers=HTML_ACCEPT_HEADERS)
        return fetched.content, fetched.content_type

    def _process_page(self, entry: FrontierEntry, html: str, content_type: str) -> PageRecord:
        if is_markdown(content_type, entry.url):
            metadata: Dict[str, Any] = {"title": "", "description": ""}
            body = html
        else:
            metadata = extract_page_metadata(html)
            body = self.fetcher.extract_main_content(html)

        sections = self.parser.process_documentation(
            body,
            source_id_for(entry.url),
            entry.url,
            content_type=content_type,
            document_title=metadata.get("title") or None,
        )
        return PageRecord(
            url=entry.url,
            depth=entry.depth,
            parent=entry.parent,
            metadata=metadata,
            sections=sections,
        )

    def _add_to_tree(
        self,
        content_tree: Dict[str, Any],
        tree_nodes: Dict[str, Dict[str, Any]],
        page: PageRecord,
    ) -> str:
        """Attach the page under its parent's node, keyed by URL path."""
        path_key = urlparse(page.url).path or "/"
        node = {
            "url": page.url,
            "title": page.metadata.get("title", ""),
            "description": page.metadata.get("description", ""),
            "sections": len(page.sections),
            "children": {},
        }

        parent_node = tree_nodes.get(page.parent) if page.parent else None
        if parent_node is not None:
            parent_node["children"][path_key] = node
        else:
            content_tree[path_key] = node

        tree_nodes.setdefault(path_key, node)
        return path_key

    def _record_skip(self, result: CrawlResult, url: str, error: Exception) -> None:
        if isinstance(error, AppError):
            skip = CrawlSkip(url=url, error_code=error.code, message=error.message)
        else:
            skip = CrawlSkip(url=url, error_code=ErrorCode.INTERNAL_ERROR, message=str(error))
        result.skipped.append(skip)
        self.logger.warning(f"Error exploring {url}: {skip.error_code.value} {skip.message}")
