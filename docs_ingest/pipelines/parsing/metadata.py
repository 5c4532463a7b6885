"""Section identity, path and topic generation."""

import re
from collections import Counter
from typing import Any, Dict, List, Optional

from ...core.config import DEFAULT_STOPWORDS
from .models import DocumentationMetadata, ExtractedSection

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
PUNCTUATION_PATTERN = re.compile(r"[^\w\s]", re.ASCII)
FRAGMENT_PATTERN = re.compile(r"#.*$")
EMPTY_SLUG = "section"


def slugify(text: str) -> str:
    """Lowercase, collapse non-alphanumeric runs to one hyphen, trim hyphens."""
    return SLUG_PATTERN.sub("-", text.lower()).strip("-")


class MetadataGenerator:
    """Derive id, path, order and topics for extracted sections."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.min_topic_length: int = config.get("min_topic_length", 3)
        self.max_topic_count: int = config.get("max_topic_count", 10)
        self.stopwords = frozenset(config.get("stopwords") or DEFAULT_STOPWORDS)

    def generate_metadata(
        self, section: ExtractedSection, source_id: str, base_path: str
    ) -> DocumentationMetadata:
        return DocumentationMetadata(
            id=self.generate_section_id(section, source_id),
            source_id=source_id,
            title=section.title,
            topics=self.extract_topics(section),
            path=self.generate_section_path(section, base_path),
            order=section.level * 1000,
        )

    def generate_section_id(self, section: ExtractedSection, source_id: str) -> str:
        return f"{source_id}-{slugify(section.title) or EMPTY_SLUG}"

    def generate_section_path(self, section: ExtractedSection, base_path: str) -> str:
        # One trailing slash only, after any fragment is removed
        clean_base = FRAGMENT_PATTERN.sub("", base_path)
        if clean_base.endswith("/"):
            clean_base = clean_base[:-1]
        return f"{clean_base}#{slugify(section.title) or EMPTY_SLUG}"

    def extract_topics(self, section: ExtractedSection) -> List[str]:
        """Most frequent non-stopword tokens of the title and content.

        Ties keep first-seen order.
        """
        text = PUNCTUATION_PATTERN.sub(" ", f"{section.title} {section.content}".lower())
        words = [
            word
            for word in text.split()
            if len(word) >= self.min_topic_length and word not in self.stopwords
        ]
        return [word for word, _ in Counter(words).most_common(self.max_topic_count)]
