"""Unit tests for the repository indexer and tree walk."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from docs_ingest.core.errors import ErrorCode, network_error, not_found_error
from docs_ingest.pipelines.repositories.indexer import (
    RepositoryIndexer,
    detect_language,
    is_ancestor_of_include,
    should_exclude_path,
)
from docs_ingest.pipelines.repositories.models import (
    ContentType,
    DomainRepositoryConfig,
    GithubContentItem,
    IndexingStatus,
    RepositoryConfig,
    RepositoryMetadata,
)
from docs_ingest.pipelines.repositories.processors import default_processors
from docs_ingest.pipelines.repositories.registry import RepositoryRegistry
from docs_ingest.pipelines.repositories.storage import InMemoryRepositoryStorage

README = "# Guide\n\nProduct guide.\n\n## Install\n\nRun the installer.\n"

TREE = {
    "": [("docs", "dir"), ("test", "dir"), ("README.md", "file"), ("setup.py", "file")],
    "docs": [("docs/guide.md", "file"), ("docs/api.md", "file"), ("docs/img", "dir")],
    "docs/img": [("docs/img/logo.png", "file")],
    "test": [("test/notes.md", "file")],
}

FILES = {
    "docs/guide.md": "# Guide\n\nHow to use the product.\n",
    "docs/api.md": "# API\n\nEndpoints exposed by the service.\n",
    "test/notes.md": "# Notes\n\nTest plan notes for the team.\n",
}


def build_github(tree=None, files=None):
    """Mock GitHub client serving a fixed repository tree."""
    tree = TREE if tree is None else tree
    files = FILES if files is None else files
    github = AsyncMock()

    async def get_directory_contents(owner, name, path=""):
        return [
            GithubContentItem(name=p.rsplit("/", 1)[-1], path=p, type=t, sha=f"sha-{p}")
            for p, t in tree[path]
        ]

    async def get_file_content(owner, name, path):
        if path not in files:
            raise not_found_error(path)
        return files[path]

    github.get_repository_metadata.return_value = RepositoryMetadata(
        id="acme/guide", owner="acme", name="guide", url="https://github.com/acme/guide"
    )
    github.get_readme_content.return_value = README
    github.get_directory_contents.side_effect = get_directory_contents
    github.get_file_content.side_effect = get_file_content
    return github


def listed_paths(github):
    return [c.args[2] for c in github.get_directory_contents.await_args_list]


class TestRepositoryIndexer:
    """Test indexing runs end to end against a mocked GitHub client."""

    @pytest.fixture
    def storage(self):
        return InMemoryRepositoryStorage()

    @pytest.fixture
    def registry(self):
        return RepositoryRegistry(
            [
                DomainRepositoryConfig(
                    domain="docs",
                    repositories=[
                        RepositoryConfig(
                            owner="acme",
                            name="guide",
                            domain="docs",
                            importance=8,
                            is_official=True,
                            tags=["guide"],
                        )
                    ],
                )
            ]
        )

    def make_indexer(self, github, storage, registry, **config):
        return RepositoryIndexer(
            github_client=github,
            storage=storage,
            registry=registry,
            processors=default_processors(),
            config=config or None,
        )

    @pytest.mark.asyncio
    async def test_index_repository(self, storage, registry):
        github = build_github()
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide")

        assert result.status == IndexingStatus.COMPLETED
        assert result.error is None
        assert result.readme_processed is True
        # README plus three Markdown documents; setup.py and logo.png have no processor
        assert result.files_processed == 4
        assert result.skipped == []
        assert result.completed_at is not None
        assert listed_paths(github) == ["", "docs", "test", "docs/img"]

        metadata = await storage.get_repository_metadata("acme/guide")
        assert metadata.domain == "docs"
        assert metadata.importance == 8
        assert metadata.is_official is True

        readme = await storage.find_content_by_path("acme/guide", "README.md")
        assert readme.type == ContentType.README
        assert readme.parsed_content.title == "Guide"

        guide = await storage.find_content_by_path("acme/guide", "docs/guide.md")
        assert guide.type == ContentType.FILE
        assert guide.metadata.language == "markdown"
        assert guide.metadata.sha == "sha-docs/guide.md"
        assert guide.parsed_content[0]["id"] == "acme-guide-guide"

    @pytest.mark.asyncio
    async def test_exclude_paths(self, storage, registry):
        github = build_github()
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide", exclude_paths=["test"])

        assert result.files_processed == 3
        assert "test" not in listed_paths(github)
        assert await storage.find_content_by_path("acme/guide", "test/notes.md") is None

    @pytest.mark.asyncio
    async def test_include_paths(self, storage, registry):
        github = build_github()
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide", include_paths=["docs"])

        assert result.files_processed == 3
        assert listed_paths(github) == ["", "docs", "docs/img"]

    @pytest.mark.asyncio
    async def test_include_path_below_directory(self, storage, registry):
        """Test directories on the way to an include path are still entered."""
        github = build_github()
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide", include_paths=["docs/img"])

        assert listed_paths(github) == ["", "docs", "docs/img"]
        assert result.files_processed == 1
        assert await storage.find_content_by_path("acme/guide", "docs/guide.md") is None

    @pytest.mark.asyncio
    async def test_skipped_files_tallied(self, storage, registry):
        """Test per-file failures are recorded with their error kind and the walk continues."""
        files = {k: v for k, v in FILES.items() if k != "docs/api.md"}
        github = build_github(files=files)
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide")

        assert result.status == IndexingStatus.COMPLETED
        assert result.files_processed == 3
        assert [(s.path, s.error_code) for s in result.skipped] == [
            ("docs/api.md", ErrorCode.NOT_FOUND)
        ]
        assert result.skipped_by_code() == {"NOT_FOUND": 1}

    @pytest.mark.asyncio
    async def test_listing_failure_skipped(self, storage, registry):
        github = build_github()
        original = github.get_directory_contents.side_effect

        async def flaky_listing(owner, name, path=""):
            if path == "docs":
                raise network_error("connection reset")
            return await original(owner, name, path)

        github.get_directory_contents.side_effect = flaky_listing
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide")

        assert result.status == IndexingStatus.COMPLETED
        assert result.skipped[0].path == "docs"
        assert result.skipped[0].error_code == ErrorCode.NETWORK_ERROR
        assert await storage.find_content_by_path("acme/guide", "test/notes.md") is not None

    @pytest.mark.asyncio
    async def test_readme_failure_not_fatal(self, storage, registry):
        github = build_github()
        github.get_readme_content.side_effect = network_error("reset")
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide")

        assert result.status == IndexingStatus.COMPLETED
        assert result.readme_processed is False
        assert result.files_processed == 3
        assert result.skipped[0].path == "README.md"

    @pytest.mark.asyncio
    async def test_missing_readme(self, storage, registry):
        github = build_github()
        github.get_readme_content.return_value = ""
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide")

        assert result.readme_processed is False
        assert result.skipped == []

    @pytest.mark.asyncio
    async def test_root_readme_variants_not_walked(self, storage, registry):
        """Test a root README in any supported spelling is stored once."""
        tree = {
            "": [("readme.rst", "file"), ("docs", "dir")],
            "docs": [("docs/README.markdown", "file")],
        }
        files = {"readme.rst": README, "docs/README.markdown": README}
        github = build_github(tree=tree, files=files)
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide")

        assert result.files_processed == 2
        fetched = [c.args[2] for c in github.get_file_content.await_args_list]
        assert fetched == ["docs/README.markdown"]
        stored = [c.path for c in await storage.list_repository_content("acme/guide")]
        assert sorted(stored) == ["README.md", "docs/README.markdown"]

    @pytest.mark.asyncio
    async def test_metadata_failure_marks_failed(self, storage, registry):
        github = build_github()
        github.get_repository_metadata.side_effect = not_found_error("acme/guide")
        indexer = self.make_indexer(github, storage, registry)

        result = await indexer.index_repository("acme", "guide")

        assert result.status == IndexingStatus.FAILED
        assert result.error == "Resource not found: acme/guide"
        github.get_directory_contents.assert_not_awaited()

        status = await indexer.get_indexing_status("acme/guide")
        assert status.status == IndexingStatus.FAILED

    @pytest.mark.asyncio
    async def test_fresh_metadata_skips_reindex(self, storage, registry):
        github = build_github()
        indexer = self.make_indexer(github, storage, registry)

        await indexer.index_repository("acme", "guide")
        second = await indexer.index_repository("acme", "guide")

        assert second.status == IndexingStatus.COMPLETED
        assert second.files_processed == 0
        assert github.get_repository_metadata.await_count == 1

        forced = await indexer.index_repository("acme", "guide", force_reindex=True)

        assert forced.files_processed == 4
        assert github.get_repository_metadata.await_count == 2

    @pytest.mark.asyncio
    async def test_max_depth(self, storage, registry):
        github = build_github()
        indexer = self.make_indexer(github, storage, registry, max_depth=1)

        await indexer.index_repository("acme", "guide")

        assert listed_paths(github) == ["", "docs", "test"]

    @pytest.mark.asyncio
    async def test_unknown_repository_registered(self, storage):
        registry = RepositoryRegistry()
        github = build_github()
        indexer = self.make_indexer(github, storage, registry)

        await indexer.index_repository("acme", "guide")

        assert registry.find_repository("acme", "guide") is not None

    @pytest.mark.asyncio
    async def test_status_map_shared(self, storage, registry):
        status_map = {}
        indexer = RepositoryIndexer(
            github_client=build_github(),
            storage=storage,
            registry=registry,
            processors=default_processors(),
            status_map=status_map,
        )

        await indexer.index_repository("acme", "guide")

        assert status_map["acme/guide"].status == IndexingStatus.COMPLETED
        assert await indexer.get_indexing_status("acme/other") is None

    def test_needs_indexing(self, storage, registry):
        indexer = self.make_indexer(build_github(), storage, registry)
        now = datetime.now(timezone.utc)

        stale = RepositoryMetadata(
            id="a/b", owner="a", name="b", url="u", last_indexed=now - timedelta(hours=25)
        )
        fresh = RepositoryMetadata(
            id="a/b", owner="a", name="b", url="u", last_indexed=now - timedelta(hours=1)
        )

        assert indexer.needs_indexing(stale) is True
        assert indexer.needs_indexing(fresh) is False
        assert indexer.needs_indexing(fresh, timedelta(minutes=30)) is True


class TestPathFilters:
    """Test include/exclude verdicts and language detection."""

    def test_include_paths(self):
        assert should_exclude_path("test/file.ts", ["src"], []) is True
        assert should_exclude_path("src/a.ts", ["src"], []) is False
        assert should_exclude_path("src", ["src"], []) is False
        assert should_exclude_path("srcfoo/a.ts", ["src"], []) is True

    def test_exclude_paths(self):
        assert should_exclude_path("test/file.ts", [], ["test"]) is True
        assert should_exclude_path("src/a.ts", [], ["test"]) is False

    def test_include_wins_over_exclude(self):
        assert should_exclude_path("src/a.ts", ["src"], ["src"]) is False

    def test_ancestor_of_include(self):
        assert is_ancestor_of_include("docs", ["docs/img"]) is True
        assert is_ancestor_of_include("doc", ["docs/img"]) is False

    @pytest.mark.parametrize(
        "path,language",
        [
            ("src/main.py", "python"),
            ("web/App.TSX", "typescript"),
            ("Makefile", None),
            ("data.unknown", None),
        ],
    )
    def test_detect_language(self, path, language):
        assert detect_language(path) == language
