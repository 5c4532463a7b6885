"""Content acquisition pipeline.

Fetcher: bounded-concurrency HTTP acquisition with retry
Parsing: markup validation, section extraction and metadata generation
Repositories: hosted repository indexing via a worklist tree walk
Crawler: breadth-first same-site exploration with repository discovery
"""
