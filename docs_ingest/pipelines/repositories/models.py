"""Repository indexing records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ...core.errors import ErrorCode


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RepositoryConfig(BaseModel):
    """Registry entry for a repository; owner and name form the natural key."""

    owner: str
    name: str
    domain: str = ""
    importance: int = 5
    is_official: bool = False
    tags: List[str] = Field(default_factory=list)
    include_paths: List[str] = Field(default_factory=list)
    exclude_paths: List[str] = Field(default_factory=list)

    @property
    def repository_id(self) -> str:
        return f"{self.owner}/{self.name}"

    def matches(self, owner: str, name: str) -> bool:
        return self.owner == owner and self.name == name


class DomainRepositoryConfig(BaseModel):
    """Repositories grouped under a knowledge domain."""

    domain: str
    repositories: List[RepositoryConfig] = Field(default_factory=list)


class RepositoryMetadata(BaseModel):
    """Repository facts from the hosting API merged with the registry entry."""

    id: str
    owner: str
    name: str
    url: str
    description: str = ""
    default_branch: str = "main"
    updated_at: Optional[datetime] = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    topics: List[str] = Field(default_factory=list)
    size: int = 0
    license: Optional[str] = None
    domain: str = ""
    importance: int = 0
    is_official: bool = False
    tags: List[str] = Field(default_factory=list)
    last_indexed: datetime = Field(default_factory=utc_now)


class ContentType(str, Enum):
    """Kind of stored repository content."""

    README = "readme"
    FILE = "file"


class ContentMetadata(BaseModel):
    last_modified: datetime = Field(default_factory=utc_now)
    size: int = 0
    language: Optional[str] = None
    sha: Optional[str] = None


class RepositoryContent(BaseModel):
    """A processed repository file, overwritten on every reindex."""

    id: str
    repository_id: str
    path: str
    type: ContentType
    content: str
    parsed_content: Any = None
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)
    domain: str = ""
    last_indexed: datetime = Field(default_factory=utc_now)


class GithubContentItem(BaseModel):
    """Directory listing entry."""

    name: str
    path: str
    type: str
    sha: str = ""


class RateLimitInfo(BaseModel):
    limit: int
    remaining: int
    reset: datetime


class IndexingStatus(str, Enum):
    """Per-repository indexing state."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class SkippedItem(BaseModel):
    """A path the walk could not process, with the error kind that stopped it."""

    path: str
    error_code: ErrorCode
    message: str


class IndexingResult(BaseModel):
    """Outcome of one indexing run."""

    repository_id: str
    status: IndexingStatus = IndexingStatus.IN_PROGRESS
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    files_processed: int = 0
    readme_processed: bool = False
    skipped: List[SkippedItem] = Field(default_factory=list)

    def skipped_by_code(self) -> Dict[str, int]:
        """Count skipped items per error kind."""
        counts: Dict[str, int] = {}
        for item in self.skipped:
            counts[item.error_code.value] = counts.get(item.error_code.value, 0) + 1
        return counts
