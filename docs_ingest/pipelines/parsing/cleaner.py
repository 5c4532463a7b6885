"""HTML cleanup helpers applied to fetched pages before parsing."""

import logging
import re
from typing import Any, Dict, Iterable, Optional

from bs4 import BeautifulSoup, Comment, Doctype

from ...core.config import DEFAULT_ALLOWED_TAGS
from ...core.errors import parse_error

logger = logging.getLogger(__name__)

COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)
SCRIPT_PATTERN = re.compile(r"<script\b.*?</script>", re.DOTALL | re.IGNORECASE)
STYLE_PATTERN = re.compile(r"<style\b.*?</style>", re.DOTALL | re.IGNORECASE)
BLANK_LINES_PATTERN = re.compile(r"\n{3,}")

# Removed with their content when restricting markup to a tag whitelist
DROPPED_WITH_CONTENT = ["head", "script", "style", "noscript", "template", "svg", "iframe"]


class ContentCleaner:
    """Strip scripts, page chrome and unsupported markup from HTML."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        default_config = {
            "elements_to_remove": ["script", "style", "nav", "footer", "header", "aside"],
            "allowed_tags": list(DEFAULT_ALLOWED_TAGS),
        }

        if config:
            default_config.update({k: v for k, v in config.items() if k in default_config})

        self.config = default_config

    def clean_html(self, html: Optional[str]) -> str:
        """Remove comments, scripts and styles."""
        if html is None:
            raise parse_error("Invalid input: html cannot be None")

        if not html.strip():
            return html

        cleaned = COMMENT_PATTERN.sub("", html)
        cleaned = SCRIPT_PATTERN.sub("", cleaned)
        return STYLE_PATTERN.sub("", cleaned)

    def extract_text_content(self, html: Optional[str]) -> str:
        """Visible text with page chrome removed and whitespace collapsed."""
        if html is None:
            raise parse_error("Invalid input: html cannot be None")

        if not html.strip():
            return ""

        try:
            soup = BeautifulSoup(html, "html.parser")
            for element in soup.find_all(self.config["elements_to_remove"]):
                element.decompose()
            root = soup.body or soup
            return " ".join(root.get_text(separator=" ").split())
        except Exception as e:
            raise parse_error(
                "Failed to parse HTML for text extraction", e, {"html": html[:100]}
            )

    def restrict_to_tags(self, html: str, allowed_tags: Optional[Iterable[str]] = None) -> str:
        """Re-serialize markup keeping only whitelisted tags.

        Unsupported tags are unwrapped so their text survives; scripts, styles and
        the document head are dropped entirely. The output is balanced markup.
        """
        allowed = {tag.lower() for tag in (allowed_tags or self.config["allowed_tags"])}
        soup = BeautifulSoup(html, "html.parser")

        for node in soup.find_all(string=lambda text: isinstance(text, (Comment, Doctype))):
            node.extract()

        for element in soup.find_all(DROPPED_WITH_CONTENT):
            element.decompose()

        for element in soup.find_all(True):
            if element.name.lower() not in allowed:
                element.unwrap()

        return str(soup)

    def sanitize_markdown(self, markdown: str) -> str:
        """Collapse runs of blank lines and trim."""
        return BLANK_LINES_PATTERN.sub("\n\n", markdown).strip()
