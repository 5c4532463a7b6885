"""Markup validation, section extraction and metadata generation."""
