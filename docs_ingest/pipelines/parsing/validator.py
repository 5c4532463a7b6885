"""Tag whitelist and nesting validation for markup about to be parsed."""

import logging
import re
from typing import Any, Dict, List, Optional

from ...core.config import DEFAULT_ALLOWED_TAGS
from ...core.errors import parse_error

logger = logging.getLogger(__name__)

TAG_PATTERN = re.compile(r"</?([a-zA-Z][a-zA-Z0-9]*)\s*([^>]*)>")
INVALID_TAG_PATTERN = re.compile(r"</?([0-9][^>\s]*)")
COMMENT_PATTERN = re.compile(r"<!--.*?-->", re.DOTALL)

VOID_TAGS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)


class HtmlValidator:
    """Left-to-right tag scanner enforcing a whitelist and balanced nesting.

    In lenient mode unmatched closing tags are discarded and tags left open at
    the end of input are ignored; unsupported tags are always rejected.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        config = config or {}
        self.lenient_parsing: bool = bool(config.get("lenient_parsing", False))
        allowed = config.get("allowed_tags") or DEFAULT_ALLOWED_TAGS
        self.allowed_tags = frozenset(tag.lower() for tag in allowed)

    def validate(self, html: Optional[str], require_tags: bool = False) -> None:
        """Validate markup, raising a PARSE_ERROR AppError on the first violation."""
        if not html or not html.strip():
            if require_tags:
                raise parse_error("Invalid HTML: empty content", context={"html": html})
            return

        has_tags = "<" in html and ">" in html
        if require_tags and not has_tags:
            raise parse_error("Invalid HTML: no tags found", context={"html": html[:100]})

        if has_tags:
            self._validate_syntax(COMMENT_PATTERN.sub("", html))

    def _validate_syntax(self, html: str) -> None:
        if INVALID_TAG_PATTERN.search(html):
            raise parse_error("Invalid HTML: malformed tag syntax", context={"html": html[:100]})

        tag_stack: List[str] = []

        for match in TAG_PATTERN.finditer(html):
            full_tag, tag_name, attributes = match.group(0), match.group(1), match.group(2)
            normalized = tag_name.lower()
            is_closing = full_tag.startswith("</")
            is_self_closing = not is_closing and (
                attributes.endswith("/") or normalized in VOID_TAGS
            )

            if normalized not in self.allowed_tags:
                raise parse_error(
                    f'Invalid HTML: unsupported tag "{tag_name}"', context={"tag": tag_name}
                )

            if is_self_closing:
                continue

            if is_closing:
                last_tag = tag_stack.pop() if tag_stack else None
                if last_tag != normalized:
                    if self.lenient_parsing:
                        logger.debug(f"Discarding unmatched closing tag </{tag_name}>")
                        continue
                    raise parse_error(
                        "Invalid HTML: unmatched closing tag",
                        context={"tag": tag_name, "last_tag": last_tag},
                    )
            else:
                tag_stack.append(normalized)

        if tag_stack and not self.lenient_parsing:
            raise parse_error(
                "Invalid HTML: unclosed tags detected", context={"unclosed_tags": tag_stack}
            )
