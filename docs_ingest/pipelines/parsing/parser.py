"""Documentation parser: validation, extraction and metadata for one source document."""

import logging
import re
from typing import Any, Dict, List, Optional

import markdown
from bs4 import BeautifulSoup

from ...core.errors import AppError, parse_error
from .cleaner import ContentCleaner
from .extractor import SectionExtractor
from .metadata import MetadataGenerator
from .models import DocumentationMetadata, ExtractedSection, ProcessedSection
from .validator import HtmlValidator

logger = logging.getLogger(__name__)

MARKDOWN_HEADING_PATTERN = re.compile(r"^#+ ", re.MULTILINE)
MARKDOWN_EXTENSIONS = ["fenced_code", "tables"]
MARKDOWN_SUFFIXES = (".md", ".markdown")


def is_markdown(content_type: Optional[str] = None, location: Optional[str] = None) -> bool:
    """Decide whether a payload is Markdown from its content type or location."""
    if content_type and "markdown" in content_type.lower():
        return True
    if location:
        path = location.split("#", 1)[0].split("?", 1)[0].lower()
        return path.endswith(MARKDOWN_SUFFIXES)
    return False


class DocumentationParser:
    """Turn HTML or Markdown documentation into ordered sections with metadata."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        default_config = {
            "max_title_length": 100,
            "min_content_length": 10,
            "extract_code_blocks": True,
            "preserve_formatting": False,
            "custom_selectors": [],
            "lenient_parsing": False,
        }

        if config:
            default_config.update(config)

        self.config = default_config
        self.validator = HtmlValidator(self.config)
        self.extractor = SectionExtractor(self.config)
        self.metadata_generator = MetadataGenerator(self.config)
        self.cleaner = ContentCleaner(self.config)

    def parse_html(
        self, html: str, document_title: Optional[str] = None
    ) -> List[ExtractedSection]:
        """Validate markup and split it into sections.

        Raises:
            AppError: PARSE_ERROR when the markup is rejected or cannot be decomposed
        """
        if not html or not html.strip():
            return []

        try:
            self.validator.validate(html)
            return self.extractor.extract_sections(html, document_title=document_title)
        except AppError:
            raise
        except Exception as e:
            raise parse_error("Failed to parse HTML content", e, {"html": html[:100]})

    def parse_markdown(self, text: str) -> List[ExtractedSection]:
        """Convert Markdown to HTML and extract sections from it.

        Inline HTML embedded in the Markdown is validated as is.

        Raises:
            AppError: PARSE_ERROR when no line starts with a heading marker
        """
        if not text or not text.strip():
            return []

        return self.parse_html(self.markdown_to_html(text))

    def markdown_to_html(self, text: str) -> str:
        """Render Markdown that has at least one heading line to HTML."""
        if not MARKDOWN_HEADING_PATTERN.search(text):
            raise parse_error(
                "Invalid Markdown: no headings found", context={"markdown": text[:100]}
            )

        try:
            return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
        except Exception as e:
            raise parse_error("Failed to parse Markdown content", e, {"markdown": text[:100]})

    def generate_metadata(
        self, section: ExtractedSection, source_id: str, base_path: str
    ) -> DocumentationMetadata:
        return self.metadata_generator.generate_metadata(section, source_id, base_path)

    def process_documentation(
        self,
        content: str,
        source_id: str,
        base_path: str,
        content_type: Optional[str] = None,
        document_title: Optional[str] = None,
    ) -> List[ProcessedSection]:
        """Parse fetched content into per-section artifacts.

        HTML, and the HTML rendered from Markdown, is cleaned and restricted to
        the supported tag set first, since pages in the wild and inline HTML in
        repository docs carry markup the validator would reject outright.
        """
        if is_markdown(content_type, base_path):
            if not content or not content.strip():
                sections = []
            else:
                html = self.markdown_to_html(content)
                sections = self.parse_html(self._normalize_html(html))
        else:
            if document_title is None:
                title_tag = BeautifulSoup(content, "html.parser").find("title")
                document_title = title_tag.get_text() if title_tag else None
            sections = self.parse_html(
                self._normalize_html(content), document_title=document_title
            )

        processed: List[ProcessedSection] = []
        for section in sections:
            metadata = self.generate_metadata(section, source_id, base_path)
            processed.append(
                ProcessedSection(
                    id=metadata.id,
                    content=section.content,
                    metadata=metadata,
                    code_blocks=list(section.code_blocks),
                )
            )

        logger.debug(f"Processed {len(processed)} sections from {base_path}")
        return processed

    def _normalize_html(self, html: str) -> str:
        cleaned = self.cleaner.clean_html(html)
        return self.cleaner.restrict_to_tags(cleaned, self.validator.allowed_tags)
