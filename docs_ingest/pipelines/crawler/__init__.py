"""Breadth-first site exploration with optional script rendering."""
