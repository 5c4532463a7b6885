"""Repository indexer: metadata refresh, README processing and a worklist tree walk."""

import logging
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Deque, Dict, List, Optional, Tuple

from ...core.errors import AppError, ErrorCode
from .github_client import GitHubClient
from .models import (
    ContentMetadata,
    ContentType,
    GithubContentItem,
    IndexingResult,
    IndexingStatus,
    RepositoryConfig,
    RepositoryContent,
    RepositoryMetadata,
    SkippedItem,
)
from .processors import README_PATTERN, ContentProcessor
from .registry import RepositoryRegistry
from .storage import InMemoryRepositoryStorage

logger = logging.getLogger(__name__)

README_PATH = "README.md"

LANGUAGE_MAP = {
    "js": "javascript",
    "ts": "typescript",
    "jsx": "javascript",
    "tsx": "typescript",
    "py": "python",
    "rb": "ruby",
    "java": "java",
    "go": "go",
    "cs": "csharp",
    "php": "php",
    "html": "html",
    "css": "css",
    "json": "json",
    "md": "markdown",
    "rs": "rust",
    "c": "c",
    "cpp": "cpp",
    "h": "c",
    "hpp": "cpp",
    "sh": "shell",
    "bat": "batch",
    "ps1": "powershell",
    "sql": "sql",
    "yaml": "yaml",
    "yml": "yaml",
    "xml": "xml",
    "swift": "swift",
    "kt": "kotlin",
    "pl": "perl",
    "hs": "haskell",
    "ex": "elixir",
    "exs": "elixir",
    "erl": "erlang",
    "lua": "lua",
    "r": "r",
    "dart": "dart",
    "scala": "scala",
    "clj": "clojure",
}


def should_exclude_path(path: str, include_paths: List[str], exclude_paths: List[str]) -> bool:
    """Path filter for the tree walk.

    A non-empty include list keeps only paths equal to or below an include entry;
    otherwise paths equal to or below an exclude entry are dropped.
    """
    if include_paths:
        return not any(path == p or path.startswith(f"{p}/") for p in include_paths)
    return any(path == p or path.startswith(f"{p}/") for p in exclude_paths)


def is_ancestor_of_include(path: str, include_paths: List[str]) -> bool:
    """Whether a directory must be entered to reach an included path."""
    return any(p.startswith(f"{path}/") for p in include_paths)


def detect_language(path: str) -> Optional[str]:
    filename = path.rsplit("/", 1)[-1]
    if "." not in filename:
        return None
    return LANGUAGE_MAP.get(filename.rsplit(".", 1)[-1].lower())


class IndexingSession:
    """State of one ``index_repository`` run, threaded through the walk."""

    def __init__(
        self,
        config: RepositoryConfig,
        result: IndexingResult,
        include_paths: List[str],
        exclude_paths: List[str],
    ):
        self.config = config
        self.result = result
        self.include_paths = include_paths
        self.exclude_paths = exclude_paths

    @property
    def owner(self) -> str:
        return self.config.owner

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def repository_id(self) -> str:
        return self.config.repository_id

    def skip(self, path: str, error: Exception) -> None:
        """Record a recoverable failure and keep walking."""
        if isinstance(error, AppError):
            item = SkippedItem(path=path, error_code=error.code, message=error.message)
        else:
            item = SkippedItem(path=path, error_code=ErrorCode.INTERNAL_ERROR, message=str(error))
        self.result.skipped.append(item)
        logger.warning(
            f"Skipping {path} in {self.repository_id}: {item.error_code.value} {item.message}"
        )


class RepositoryIndexer:
    """Index hosted repositories into storage.

    The status map is owned by the caller (normally the ingestion context) so
    results outlive a single indexer and never live in module state. Concurrent
    runs for the same repository are not serialized here.
    """

    def __init__(
        self,
        github_client: GitHubClient,
        storage: InMemoryRepositoryStorage,
        registry: RepositoryRegistry,
        processors: List[ContentProcessor],
        status_map: Optional[Dict[str, IndexingResult]] = None,
        config: Optional[Dict[str, Any]] = None,
    ):
        default_config = {
            "max_age_hours": 24,
            "max_depth": None,
        }

        if config:
            default_config.update(config)

        self.config = default_config
        self.github_client = github_client
        self.storage = storage
        self.registry = registry
        self.processors = processors
        self.status_map: Dict[str, IndexingResult] = status_map if status_map is not None else {}
        self.default_max_age = timedelta(hours=self.config["max_age_hours"])

    async def index_repository(
        self,
        owner: str,
        name: str,
        include_paths: Optional[List[str]] = None,
        exclude_paths: Optional[List[str]] = None,
        force_reindex: bool = False,
    ) -> IndexingResult:
        """Index one repository.

        Metadata failures mark the run FAILED; README and per-path failures are
        recorded in ``skipped`` and the run still completes.
        """
        repository_id = f"{owner}/{name}"
        result = IndexingResult(repository_id=repository_id)
        self._set_status(result)

        try:
            repo_config = self._resolve_config(owner, name)

            if not force_reindex:
                existing = await self.storage.get_repository_metadata(repository_id)
                if existing is not None and not self.needs_indexing(existing):
                    logger.info(f"Repository {repository_id} is up to date, skipping reindex")
                    return self._finish(result, IndexingStatus.COMPLETED)

            session = IndexingSession(
                config=repo_config,
                result=result,
                include_paths=list(
                    include_paths if include_paths is not None else repo_config.include_paths
                ),
                exclude_paths=list(
                    exclude_paths if exclude_paths is not None else repo_config.exclude_paths
                ),
            )

            logger.info(f"Indexing repository {repository_id}")
            metadata = await self.github_client.get_repository_metadata(owner, name)
            metadata = metadata.model_copy(
                update={
                    "domain": repo_config.domain,
                    "importance": repo_config.importance,
                    "is_official": repo_config.is_official,
                    "tags": list(repo_config.tags),
                    "last_indexed": datetime.now(timezone.utc),
                }
            )
            await self.storage.store_repository_metadata(metadata)

            if await self._process_readme(session):
                result.readme_processed = True
                result.files_processed += 1

            await self._walk_tree(session)

            logger.info(
                f"Indexed {repository_id}: {result.files_processed} files processed, "
                f"{len(result.skipped)} skipped"
            )
            return self._finish(result, IndexingStatus.COMPLETED)

        except Exception as e:
            logger.error(f"Indexing failed for {repository_id}: {e}")
            result.error = str(e)
            return self._finish(result, IndexingStatus.FAILED)

    def needs_indexing(
        self, metadata: RepositoryMetadata, max_age: Optional[timedelta] = None
    ) -> bool:
        age = datetime.now(timezone.utc) - metadata.last_indexed
        return age > (max_age or self.default_max_age)

    async def get_indexing_status(self, repository_id: str) -> Optional[IndexingResult]:
        return self.status_map.get(repository_id)

    def _resolve_config(self, owner: str, name: str) -> RepositoryConfig:
        repo_config = self.registry.find_repository(owner, name)
        if repo_config is None:
            repo_config = RepositoryConfig(owner=owner, name=name)
            self.registry.add_repository(repo_config)
            logger.debug(f"Registered unknown repository {repo_config.repository_id}")
        return repo_config

    def _find_processor(self, path: str, metadata: Dict[str, Any]) -> Optional[ContentProcessor]:
        for processor in self.processors:
            if processor.can_process(path, metadata):
                return processor
        return None

    async def _process_readme(self, session: IndexingSession) -> bool:
        try:
            readme = await self.github_client.get_readme_content(session.owner, session.name)
            if not readme:
                return False

            processor = self._find_processor(README_PATH, {})
            if processor is None:
                return False

            parsed = await processor.process(
                readme, {"repository_id": session.repository_id, "path": README_PATH}
            )
            await self.storage.store_content(
                RepositoryContent(
                    id=f"{session.repository_id}/{README_PATH}",
                    repository_id=session.repository_id,
                    path=README_PATH,
                    type=ContentType.README,
                    content=readme,
                    parsed_content=parsed,
                    metadata=ContentMetadata(size=len(readme), language="markdown"),
                    domain=session.config.domain,
                )
            )
            return True

        except Exception as e:
            session.skip(README_PATH, e)
            return False

    async def _walk_tree(self, session: IndexingSession) -> None:
        """Breadth-first walk over an explicit worklist of (path, depth)."""
        worklist: Deque[Tuple[str, int]] = deque([("", 0)])
        max_depth = self.config["max_depth"]

        while worklist:
            path, depth = worklist.popleft()

            try:
                items = await self.github_client.get_directory_contents(
                    session.owner, session.name, path
                )
            except Exception as e:
                session.skip(path or "/", e)
                continue

            for item in items:
                if item.type == "dir":
                    if self._is_excluded(session, item.path, directory=True):
                        continue
                    if max_depth is not None and depth + 1 > max_depth:
                        logger.debug(f"Not descending into {item.path}: depth limit reached")
                        continue
                    worklist.append((item.path, depth + 1))

                elif item.type == "file":
                    if self._is_excluded(session, item.path):
                        continue
                    if "/" not in item.path and README_PATTERN.match(item.name):
                        continue
                    if await self._process_file(session, item):
                        session.result.files_processed += 1

    def _is_excluded(self, session: IndexingSession, path: str, directory: bool = False) -> bool:
        if not should_exclude_path(path, session.include_paths, session.exclude_paths):
            return False
        return not (directory and is_ancestor_of_include(path, session.include_paths))

    async def _process_file(self, session: IndexingSession, item: GithubContentItem) -> bool:
        processor = self._find_processor(item.path, {"type": item.type, "sha": item.sha})
        if processor is None:
            logger.debug(f"No processor for {item.path}")
            return False

        try:
            content = await self.github_client.get_file_content(
                session.owner, session.name, item.path
            )
            parsed = await processor.process(
                content,
                {"repository_id": session.repository_id, "path": item.path, "sha": item.sha},
            )
            await self.storage.store_content(
                RepositoryContent(
                    id=f"{session.repository_id}/{item.path}",
                    repository_id=session.repository_id,
                    path=item.path,
                    type=ContentType.FILE,
                    content=content,
                    parsed_content=parsed,
                    metadata=ContentMetadata(
                        size=len(content), language=detect_language(item.path), sha=item.sha
                    ),
                    domain=session.config.domain,
                )
            )
            return True

        except Exception as e:
            session.skip(item.path, e)
            return False

    def _set_status(self, result: IndexingResult) -> None:
        self.status_map[result.repository_id] = result.model_copy(deep=True)

    def _finish(self, result: IndexingResult, status: IndexingStatus) -> IndexingResult:
        result.status = status
        result.completed_at = datetime.now(timezone.utc)
        self._set_status(result)
        return result
