"""Section extraction from HTML by heading boundaries."""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Set

from bs4 import BeautifulSoup, Tag
from bs4.element import Comment, PageElement
from markdownify import ATX, markdownify

from ...core.errors import AppError, parse_error
from .models import ExtractedSection

logger = logging.getLogger(__name__)

HEADING_TAG_PATTERN = re.compile(r"^h([1-6])$")
WHITESPACE_PATTERN = re.compile(r"\s+")
CUSTOM_SELECTOR_LEVEL = 2


def clean_text(text: str) -> str:
    """Trim and collapse internal whitespace."""
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def html_to_markdown(html: str) -> str:
    """Convert a markup fragment to Markdown with ATX headings and fenced code."""
    return markdownify(html, heading_style=ATX, bullets="-").strip()


class SectionExtractor:
    """Split a document into sections at every heading.

    A section's content window runs from its heading to the next heading of
    any level in document order, so a level-1 window stops at a following
    level-3 heading too.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        default_config = {
            "max_title_length": 100,
            "min_content_length": 10,
            "extract_code_blocks": True,
            "preserve_formatting": False,
            "custom_selectors": [],
            "title_selector": "h1, h2, h3, h4, h5, h6",
            "default_title": "",
        }

        if config:
            default_config.update({k: v for k, v in config.items() if k in default_config})

        self.config = default_config

    def extract_sections(
        self, html: Optional[str], document_title: Optional[str] = None
    ) -> List[ExtractedSection]:
        """Extract ordered sections from HTML.

        Args:
            html: Markup to decompose
            document_title: Title for the whole-document section used when the
                markup has no headings; defaults to the ``<title>`` element

        Returns:
            Sections in document order; headings with an empty or overlong
            title, or too little content, are dropped
        """
        if html is None:
            raise parse_error("Invalid input: html cannot be None")

        if not html.strip():
            return []

        try:
            soup = BeautifulSoup(html, "html.parser")
            headings = self.find_headings(soup)

            if not headings:
                section = self._whole_document_section(soup, document_title)
                return [section] if section else []

            return self._sections_from_headings(headings)

        except AppError:
            raise
        except Exception as e:
            raise parse_error(
                "Failed to extract sections from HTML", e, {"html": html[:100]}
            )

    def find_headings(self, soup: BeautifulSoup) -> List[Tag]:
        """Heading and custom-selector elements in document order."""
        selectors = [self.config["title_selector"], *self.config["custom_selectors"]]
        return soup.select(", ".join(s for s in selectors if s))

    def _sections_from_headings(self, headings: List[Tag]) -> List[ExtractedSection]:
        sections: List[ExtractedSection] = []

        for index, heading in enumerate(headings):
            next_heading = headings[index + 1] if index + 1 < len(headings) else None
            title = clean_text(heading.get_text())

            if not title or len(title) > self.config["max_title_length"]:
                logger.debug(f"Skipping heading with unusable title: {title[:50]!r}")
                continue

            window = self._content_window(heading, next_heading)
            window_html = "".join(str(node) for node in window)
            content = self._render_content(window_html)

            if len(content) < self.config["min_content_length"]:
                logger.debug(f"Skipping section {title!r}: content too short")
                continue

            sections.append(
                ExtractedSection(
                    title=title,
                    content=content,
                    code_blocks=self._code_blocks(window),
                    level=self._heading_level(heading),
                    original_html=window_html if self.config["preserve_formatting"] else None,
                )
            )

        return sections

    def _whole_document_section(
        self, soup: BeautifulSoup, document_title: Optional[str]
    ) -> Optional[ExtractedSection]:
        """One level-1 section for markup without headings; None when it has no text or code."""
        if document_title is None:
            title_tag = soup.find("title")
            document_title = title_tag.get_text() if title_tag else self.config["default_title"]

        for title_tag in soup.find_all("title"):
            title_tag.decompose()

        root = soup.body or soup
        window = list(root.children)
        window_html = "".join(str(node) for node in window)
        content = self._render_content(window_html)
        code_blocks = self._code_blocks(window)

        if not content and not code_blocks:
            return None

        return ExtractedSection(
            title=clean_text(document_title or "")[: self.config["max_title_length"]],
            content=content,
            code_blocks=code_blocks,
            level=1,
            original_html=window_html if self.config["preserve_formatting"] else None,
        )

    def _content_window(self, heading: Tag, next_heading: Optional[Tag]) -> List[PageElement]:
        """Nodes after the heading up to, not including, the next heading.

        A following sibling that contains the next heading is entered, so text
        placed before the next heading inside that container stays in this window.
        """
        containers = set()
        if next_heading is not None:
            containers.update(id(parent) for parent in next_heading.parents)

        window: List[PageElement] = []
        self._collect_until(heading.next_siblings, next_heading, containers, window)
        return window

    def _collect_until(
        self,
        nodes: Iterable[PageElement],
        next_heading: Optional[Tag],
        containers: Set[int],
        window: List[PageElement],
    ) -> bool:
        """Append nodes to the window; True once the next heading is reached."""
        for node in nodes:
            if node is next_heading:
                return True
            if id(node) in containers:
                self._collect_until(node.children, next_heading, containers, window)
                return True
            if isinstance(node, Comment):
                continue
            window.append(node)
        return False

    def _render_content(self, window_html: str) -> str:
        if self.config["preserve_formatting"]:
            return window_html.strip()
        return html_to_markdown(window_html)

    def _code_blocks(self, window: List[PageElement]) -> List[str]:
        """Text of each <pre> in the window, preferring its inner <code>."""
        if not self.config["extract_code_blocks"]:
            return []

        blocks: List[str] = []
        for node in window:
            if not isinstance(node, Tag):
                continue
            candidates = [node] if node.name == "pre" else node.find_all("pre")
            for pre in candidates:
                if pre is not node and pre.find_parent("pre") is not None:
                    continue
                code = pre.find("code")
                text = code.get_text().strip() if code else ""
                if not text:
                    text = pre.get_text().strip()
                if text:
                    blocks.append(text)
        return blocks

    def _heading_level(self, heading: Tag) -> int:
        match = HEADING_TAG_PATTERN.match(heading.name.lower())
        if match:
            return int(match.group(1))
        return CUSTOM_SELECTOR_LEVEL

