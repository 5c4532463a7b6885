"""Unit tests for the repository registry and in-memory storage."""

import pytest

from docs_ingest.pipelines.repositories.domains import default_domains
from docs_ingest.pipelines.repositories.models import (
    ContentType,
    DomainRepositoryConfig,
    RepositoryConfig,
    RepositoryContent,
    RepositoryMetadata,
)
from docs_ingest.pipelines.repositories.registry import RepositoryRegistry
from docs_ingest.pipelines.repositories.storage import InMemoryRepositoryStorage


class TestRepositoryRegistry:
    """Test domain-keyed repository configuration."""

    @pytest.fixture
    def registry(self):
        return RepositoryRegistry(
            [
                DomainRepositoryConfig(
                    domain="docs",
                    repositories=[
                        RepositoryConfig(owner="acme", name="guide", domain="docs"),
                        RepositoryConfig(owner="acme", name="api", domain="docs"),
                    ],
                )
            ]
        )

    def test_add_domain_merges_without_duplicates(self, registry):
        registry.add_domain(
            DomainRepositoryConfig(
                domain="docs",
                repositories=[
                    RepositoryConfig(owner="acme", name="guide", domain="docs"),
                    RepositoryConfig(owner="acme", name="cli", domain="docs"),
                ],
            )
        )

        names = [r.name for r in registry.get_repositories_for_domain("docs")]
        assert names == ["guide", "api", "cli"]

    def test_add_repository(self, registry):
        registry.add_repository(RepositoryConfig(owner="other", name="sdk", domain="sdk"))
        registry.add_repository(RepositoryConfig(owner="other", name="sdk", domain="sdk"))

        assert registry.get_domains() == ["docs", "sdk"]
        assert len(registry.get_repositories_for_domain("sdk")) == 1

    def test_get_repositories_returns_copy(self, registry):
        repositories = registry.get_repositories_for_domain("docs")
        repositories.clear()

        assert len(registry.get_repositories_for_domain("docs")) == 2
        assert registry.get_repositories_for_domain("missing") == []

    def test_find_and_remove(self, registry):
        assert registry.find_repository("acme", "api").repository_id == "acme/api"
        assert registry.find_repository("acme", "nope") is None

        registry.remove_repository("acme", "api")

        assert registry.find_repository("acme", "api") is None
        assert [r.name for r in registry.get_all_repositories()] == ["guide"]

    def test_default_domains(self):
        registry = RepositoryRegistry(default_domains())

        assert registry.get_domains() == ["cardano"]
        node = registry.find_repository("input-output-hk", "cardano-node")
        assert node is not None
        assert node.is_official is True
        assert node.importance == 10

    def test_default_domains_are_independent(self):
        first = RepositoryRegistry(default_domains())
        first.remove_repository("input-output-hk", "cardano-node")

        second = RepositoryRegistry(default_domains())

        assert second.find_repository("input-output-hk", "cardano-node") is not None


class TestInMemoryRepositoryStorage:
    """Test storage lookups."""

    @pytest.fixture
    def storage(self):
        return InMemoryRepositoryStorage()

    def make_content(self, repository_id: str, path: str) -> RepositoryContent:
        return RepositoryContent(
            id=f"{repository_id}/{path}",
            repository_id=repository_id,
            path=path,
            type=ContentType.FILE,
            content="body",
        )

    @pytest.mark.asyncio
    async def test_metadata_round_trip(self, storage):
        metadata = RepositoryMetadata(
            id="acme/guide", owner="acme", name="guide", url="https://github.com/acme/guide"
        )

        await storage.store_repository_metadata(metadata)

        assert await storage.get_repository_metadata("acme/guide") == metadata
        assert await storage.get_repository_metadata("acme/other") is None

    @pytest.mark.asyncio
    async def test_find_content_by_path(self, storage):
        await storage.store_content(self.make_content("acme/guide", "docs/intro.md"))
        await storage.store_content(self.make_content("acme/other", "docs/intro.md"))

        found = await storage.find_content_by_path("acme/guide", "/docs/intro.md")

        assert found is not None
        assert found.repository_id == "acme/guide"
        assert await storage.find_content_by_path("acme/guide", "missing.md") is None

    @pytest.mark.asyncio
    async def test_list_and_delete(self, storage):
        await storage.store_content(self.make_content("acme/guide", "a.md"))
        await storage.store_content(self.make_content("acme/guide", "b.md"))
        await storage.store_content(self.make_content("acme/other", "c.md"))

        assert len(await storage.list_repository_content("acme/guide")) == 2

        await storage.delete_content("acme/guide/a.md")
        await storage.delete_content("acme/guide/never-stored.md")

        remaining = await storage.list_repository_content("acme/guide")
        assert [c.path for c in remaining] == ["b.md"]

    @pytest.mark.asyncio
    async def test_store_overwrites(self, storage):
        await storage.store_content(self.make_content("acme/guide", "a.md"))
        updated = self.make_content("acme/guide", "a.md").model_copy(update={"content": "new"})

        await storage.store_content(updated)

        assert (await storage.get_content("acme/guide/a.md")).content == "new"
