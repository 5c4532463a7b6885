"""Docs Ingest - documentation and repository content acquisition for knowledge indexing."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("docs-ingest")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"  # Fallback for development without install
