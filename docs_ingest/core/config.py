"""Configuration management using Pydantic Settings."""

# Load environment variables from .env file if it exists
# In Docker/production, environment variables are set directly
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE_OPT: str | None = None

# Only load .env if it exists (for local development)
_env_path = Path(".env")
if _env_path.exists():
    load_dotenv(dotenv_path=_env_path)
    ENV_FILE_OPT = str(_env_path)


DEFAULT_ALLOWED_TAGS: List[str] = [
    "div",
    "span",
    "p",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "ul",
    "ol",
    "li",
    "a",
    "code",
    "pre",
    "strong",
    "em",
    "table",
    "thead",
    "tbody",
    "tr",
    "th",
    "td",
    "blockquote",
    "img",
    "br",
    "hr",
    "html",
    "body",
]

DEFAULT_STOPWORDS: List[str] = [
    "the",
    "and",
    "that",
    "this",
    "with",
    "for",
    "from",
    "your",
    "have",
    "not",
    "are",
    "use",
    "has",
    "will",
    "can",
    "but",
    "all",
    "was",
    "what",
    "when",
    "how",
    "where",
    "who",
    "which",
    "they",
    "you",
    "their",
    "there",
    "been",
]


class Settings(BaseSettings):
    """Application configuration.

    Loads settings from environment variables. In local development, these can be
    provided via a .env file. In Docker/production, they should be set directly.
    """

    model_config = SettingsConfigDict(
        # Only hint an env file to pydantic if it actually exists
        env_file=ENV_FILE_OPT,
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Application
    app_name: str = "Docs Ingest"
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # Fetcher
    fetch_max_concurrent: int = Field(
        default=5, description="Maximum number of in-flight fetches across all callers"
    )
    fetch_timeout: float = Field(default=30.0, description="Per-request timeout in seconds")
    fetch_max_retries: int = Field(default=3, description="Maximum attempts per fetch")
    fetch_retry_delay: float = Field(
        default=1.0, description="Base retry delay in seconds (multiplied by the attempt number)"
    )
    fetch_user_agent: str = Field(
        default="Docs-Ingest-Documentation-Fetcher/1.0.0",
        description="User-Agent header sent with every fetch",
    )

    # GitHub
    github_token: Optional[SecretStr] = Field(
        default=None, description="GitHub API token (optional, raises rate limits)"
    )
    github_api_url: str = Field(default="https://api.github.com", description="GitHub API base URL")
    github_timeout: float = Field(default=30.0, description="GitHub request timeout in seconds")

    # Parsing
    parser_max_title_length: int = Field(default=100, description="Longest accepted section title")
    parser_min_content_length: int = Field(
        default=10, description="Shortest accepted section content"
    )
    parser_extract_code_blocks: bool = Field(
        default=True, description="Collect <pre> blocks for each section"
    )
    parser_preserve_formatting: bool = Field(
        default=False, description="Keep section markup instead of converting to Markdown"
    )
    parser_custom_selectors: List[str] = Field(
        default_factory=list, description="Extra CSS selectors treated as level-2 headings"
    )
    validator_allowed_tags: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_TAGS),
        description="Tag whitelist enforced before parsing",
    )
    validator_lenient: bool = Field(
        default=False, description="Discard unmatched closing tags and unclosed tags silently"
    )

    # Metadata
    metadata_min_topic_length: int = Field(default=3, description="Shortest topic token")
    metadata_max_topic_count: int = Field(default=10, description="Topics kept per section")
    metadata_stopwords: List[str] = Field(
        default_factory=lambda: list(DEFAULT_STOPWORDS),
        description="Tokens never reported as topics",
    )

    # Crawler
    crawl_max_depth: int = Field(default=3, description="Deepest link distance explored")
    crawl_use_javascript: bool = Field(
        default=False, description="Render pages in a headless browser before parsing"
    )
    crawl_render_wait: float = Field(
        default=2.0, description="Seconds to wait after navigation before serializing the page"
    )
    crawl_include_repositories: bool = Field(
        default=True, description="Collect GitHub repository links while crawling"
    )

    # Repository indexing
    index_max_age_hours: float = Field(
        default=24, description="Age after which repository metadata is considered stale"
    )
    index_include_paths: List[str] = Field(
        default_factory=list, description="Only walk these path prefixes when non-empty"
    )
    index_exclude_paths: List[str] = Field(
        default_factory=list, description="Skip these path prefixes"
    )

    def fetcher_config(self) -> Dict[str, Any]:
        """Fetcher configuration dictionary."""
        return {
            "max_concurrent": self.fetch_max_concurrent,
            "timeout": self.fetch_timeout,
            "max_retries": self.fetch_max_retries,
            "retry_delay": self.fetch_retry_delay,
            "user_agent": self.fetch_user_agent,
        }

    def parser_config(self) -> Dict[str, Any]:
        """Parser, validator and metadata configuration dictionary."""
        return {
            "max_title_length": self.parser_max_title_length,
            "min_content_length": self.parser_min_content_length,
            "extract_code_blocks": self.parser_extract_code_blocks,
            "preserve_formatting": self.parser_preserve_formatting,
            "custom_selectors": list(self.parser_custom_selectors),
            "allowed_tags": list(self.validator_allowed_tags),
            "lenient_parsing": self.validator_lenient,
            "min_topic_length": self.metadata_min_topic_length,
            "max_topic_count": self.metadata_max_topic_count,
            "stopwords": list(self.metadata_stopwords),
        }

    def github_config(self) -> Dict[str, Any]:
        """GitHub client configuration dictionary."""
        return {
            "token": self.github_token.get_secret_value() if self.github_token else None,
            "base_url": self.github_api_url,
            "timeout": self.github_timeout,
            "max_retries": self.fetch_max_retries,
            "retry_delay": self.fetch_retry_delay,
        }

    def crawler_config(self) -> Dict[str, Any]:
        """Site crawler configuration dictionary."""
        return {
            "max_depth": self.crawl_max_depth,
            "use_javascript": self.crawl_use_javascript,
            "render_wait": self.crawl_render_wait,
            "include_repositories": self.crawl_include_repositories,
            "user_agent": self.fetch_user_agent,
            "timeout": self.fetch_timeout,
        }


# Global settings instance
settings = Settings()
