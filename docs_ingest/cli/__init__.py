"""Command line interface for docs-ingest."""
