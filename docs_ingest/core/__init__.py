"""Shared building blocks: settings, error taxonomy, retry and the ingestion context."""
