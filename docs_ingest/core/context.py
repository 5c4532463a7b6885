"""Explicit ingestion context wiring shared collaborators together."""

import logging
from typing import Dict, List, Optional

from ..pipelines.crawler.site_crawler import SiteCrawler
from ..pipelines.fetcher import DocumentationFetcher
from ..pipelines.parsing.parser import DocumentationParser
from ..pipelines.repositories.domains import default_domains
from ..pipelines.repositories.github_client import GitHubClient
from ..pipelines.repositories.indexer import RepositoryIndexer
from ..pipelines.repositories.models import IndexingResult
from ..pipelines.repositories.processors import ContentProcessor, default_processors
from ..pipelines.repositories.registry import RepositoryRegistry
from ..pipelines.repositories.storage import InMemoryRepositoryStorage
from .config import Settings

logger = logging.getLogger(__name__)


class IngestionContext:
    """Collaborators for one ingestion process, constructed once and passed through.

    The per-repository indexing status map lives here rather than in module
    state, so separate contexts never observe each other's runs.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: DocumentationFetcher,
        parser: DocumentationParser,
        github_client: GitHubClient,
        registry: RepositoryRegistry,
        storage: InMemoryRepositoryStorage,
        processors: List[ContentProcessor],
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.parser = parser
        self.github_client = github_client
        self.registry = registry
        self.storage = storage
        self.processors = processors
        self.indexing_status: Dict[str, IndexingResult] = {}
        self.indexer = RepositoryIndexer(
            github_client=github_client,
            storage=storage,
            registry=registry,
            processors=processors,
            status_map=self.indexing_status,
            config={"max_age_hours": settings.index_max_age_hours},
        )
        self.crawler = SiteCrawler(fetcher, parser, settings.crawler_config())

    async def __aenter__(self) -> "IngestionContext":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Release network sessions."""
        await self.fetcher.close()
        await self.github_client.close()


def create_ingestion_context(
    settings: Optional[Settings] = None,
    registry: Optional[RepositoryRegistry] = None,
    storage: Optional[InMemoryRepositoryStorage] = None,
    processors: Optional[List[ContentProcessor]] = None,
) -> IngestionContext:
    """Build a context with default collaborators, overriding any that are given."""
    if settings is None:
        from .config import settings as global_settings

        settings = global_settings

    parser = DocumentationParser(settings.parser_config())
    fetcher = DocumentationFetcher(settings.fetcher_config())
    return IngestionContext(
        settings=settings,
        fetcher=fetcher,
        parser=parser,
        github_client=GitHubClient(settings.github_config(), fetcher=fetcher),
        registry=registry if registry is not None else RepositoryRegistry(default_domains()),
        storage=storage if storage is not None else InMemoryRepositoryStorage(),
        processors=processors if processors is not None else default_processors(parser),
    )
