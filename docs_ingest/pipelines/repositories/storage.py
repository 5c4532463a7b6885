"""In-memory repository storage."""

from typing import Dict, List, Optional

from .models import RepositoryContent, RepositoryMetadata


class InMemoryRepositoryStorage:
    """Dictionary-backed storage; writes overwrite by id."""

    def __init__(self):
        self._metadata: Dict[str, RepositoryMetadata] = {}
        self._content: Dict[str, RepositoryContent] = {}

    async def store_repository_metadata(self, metadata: RepositoryMetadata) -> None:
        self._metadata[metadata.id] = metadata

    async def get_repository_metadata(self, repository_id: str) -> Optional[RepositoryMetadata]:
        return self._metadata.get(repository_id)

    async def store_content(self, content: RepositoryContent) -> None:
        self._content[content.id] = content

    async def get_content(self, content_id: str) -> Optional[RepositoryContent]:
        return self._content.get(content_id)

    async def find_content_by_path(
        self, repository_id: str, path: str
    ) -> Optional[RepositoryContent]:
        """Find content by repository-relative path; a leading slash is ignored."""
        normalized = path.lstrip("/")
        for content in self._content.values():
            if content.repository_id == repository_id and content.path.lstrip("/") == normalized:
                return content
        return None

    async def list_repository_content(self, repository_id: str) -> List[RepositoryContent]:
        return [c for c in self._content.values() if c.repository_id == repository_id]

    async def delete_content(self, content_id: str) -> None:
        self._content.pop(content_id, None)
