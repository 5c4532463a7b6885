"""Records produced by the parsing stage."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExtractedSection(BaseModel):
    """A heading and the content window that follows it."""

    model_config = ConfigDict(frozen=True)

    title: str
    content: str
    code_blocks: List[str] = Field(default_factory=list)
    level: int = Field(ge=1, le=6)
    original_html: Optional[str] = None


class DocumentationMetadata(BaseModel):
    """Stable identity and topics for an extracted section."""

    model_config = ConfigDict(frozen=True)

    id: str
    source_id: str
    title: str
    topics: List[str] = Field(default_factory=list)
    path: str
    order: int


class ProcessedSection(BaseModel):
    """Per-source artifact entry handed to the storage collaborator."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    metadata: DocumentationMetadata
    code_blocks: List[str] = Field(default_factory=list)
