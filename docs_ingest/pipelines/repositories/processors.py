"""Pluggable processors turning raw repository files into parsed content."""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..parsing.parser import DocumentationParser

README_PATTERN = re.compile(r"^readme(\.md|\.markdown|\.rst|\.txt)?$", re.IGNORECASE)
MARKDOWN_FILE_PATTERN = re.compile(r"\.(md|markdown)$", re.IGNORECASE)
TITLE_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)
ANY_HEADING_PATTERN = re.compile(r"^#{1,6}\s+", re.MULTILINE)


def _basename(path: str) -> str:
    return path.rstrip("/").split("/")[-1]


class ContentProcessor(ABC):
    """Processor contract; the first registered processor that accepts a path wins."""

    @abstractmethod
    def can_process(self, path: str, metadata: Dict[str, Any]) -> bool:
        """Whether this processor handles the file at ``path``."""
        pass

    @abstractmethod
    async def process(self, content: str, metadata: Dict[str, Any]) -> Any:
        """Parse raw file content."""
        pass


class ReadmeSection(BaseModel):
    title: str
    content: str
    level: int
    subsections: List["ReadmeSection"] = Field(default_factory=list)


class ProcessedReadme(BaseModel):
    title: str = ""
    description: str = ""
    sections: List[ReadmeSection] = Field(default_factory=list)


class ReadmeProcessor(ContentProcessor):
    """Split a Markdown README into title, description and level-2 sections."""

    def can_process(self, path: str, metadata: Dict[str, Any]) -> bool:
        return bool(README_PATTERN.match(_basename(path)))

    async def process(self, content: str, metadata: Dict[str, Any]) -> ProcessedReadme:
        if not content.strip():
            return ProcessedReadme()

        title = ""
        title_match = TITLE_PATTERN.search(content)
        if title_match:
            title = title_match.group(1).strip()
            rest = content[title_match.end():]
            next_heading = ANY_HEADING_PATTERN.search(rest)
            description = (rest[: next_heading.start()] if next_heading else rest).strip()
        else:
            first_heading = ANY_HEADING_PATTERN.search(content)
            description = (content[: first_heading.start()] if first_heading else content).strip()

        return ProcessedReadme(
            title=title,
            description=description,
            sections=self._parse_sections(content, level=2),
        )

    def _parse_sections(self, content: str, level: int) -> List[ReadmeSection]:
        """Headings of exactly ``level``; level-2 sections collect level-3 subsections."""
        pattern = re.compile(rf"^#{{{level}}}\s+(.+)$", re.MULTILINE)
        matches = list(pattern.finditer(content))
        sections: List[ReadmeSection] = []

        for index, match in enumerate(matches):
            end = matches[index + 1].start() if index + 1 < len(matches) else len(content)
            section = ReadmeSection(
                title=match.group(1).strip(),
                content=content[match.end():end].strip(),
                level=level,
            )
            if level == 2:
                section.subsections = self._parse_sections(content[match.start():end], level=3)
            sections.append(section)

        return sections


class MarkdownDocumentProcessor(ContentProcessor):
    """Section Markdown documents other than READMEs with the documentation parser."""

    def __init__(self, parser: Optional[DocumentationParser] = None):
        self.parser = parser or DocumentationParser()

    def can_process(self, path: str, metadata: Dict[str, Any]) -> bool:
        return bool(MARKDOWN_FILE_PATTERN.search(path)) and not README_PATTERN.match(
            _basename(path)
        )

    async def process(self, content: str, metadata: Dict[str, Any]) -> List[Dict[str, Any]]:
        source_id = metadata.get("repository_id", "repository").replace("/", "-")
        base_path = metadata.get("path", "")
        processed = self.parser.process_documentation(
            content, source_id, base_path, content_type="text/markdown"
        )
        return [section.model_dump() for section in processed]


def default_processors(parser: Optional[DocumentationParser] = None) -> List[ContentProcessor]:
    return [ReadmeProcessor(), MarkdownDocumentProcessor(parser)]
