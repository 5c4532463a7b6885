"""Hosted repository indexing.

Registry of known repositories grouped by domain, a GitHub REST client,
pluggable content processors and the indexer that walks a repository tree.
"""
