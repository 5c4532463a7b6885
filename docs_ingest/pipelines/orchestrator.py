"""Pipeline orchestrator assembling per-source and per-repository artifacts."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.context import IngestionContext
from .crawler.links import parse_repository_url
from .crawler.site_crawler import source_id_for
from .repositories.models import ContentType, IndexingStatus

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Runs acquisition workflows against one ingestion context."""

    def __init__(self, context: IngestionContext):
        self.context = context

    async def run_documentation_source(
        self, url: str, source_id: Optional[str] = None, markdown: bool = False
    ) -> Dict[str, Any]:
        """Fetch one documentation page and return its processed sections.

        With ``markdown`` the body is parsed as Markdown whatever the server
        reports as its content type.
        """
        source_id = source_id or source_id_for(url)
        results: Dict[str, Any] = {
            "pipeline_type": "documentation",
            "started_at": datetime.now(timezone.utc).isoformat(),
            "source_id": source_id,
            "url": url,
            "sections": [],
            "success": False,
        }

        try:
            fetched = await self.context.fetcher.fetch(url)
            content = fetched.content
            content_type = "text/markdown" if markdown else fetched.content_type
            if "html" in content_type.lower():
                content = self.context.fetcher.extract_main_content(content)

            sections = self.context.parser.process_documentation(
                content, source_id, url, content_type=content_type
            )
            results["sections"] = [section.model_dump() for section in sections]
            results["success"] = True
            logger.info(f"Processed {len(sections)} sections from {url}")

        except Exception as e:
            logger.error(f"Documentation source {url} failed: {e}")
            results["error"] = str(e)
            raise

        finally:
            results["completed_at"] = datetime.now(timezone.utc).isoformat()

        return results

    async def run_site_crawl(
        self,
        url: str,
        max_depth: Optional[int] = None,
        include_repositories: Optional[bool] = None,
        index_repositories: bool = False,
    ) -> Dict[str, Any]:
        """Crawl a site and optionally index the repositories it links to."""
        started_at = datetime.now(timezone.utc).isoformat()
        crawl = await self.context.crawler.explore(url, max_depth, include_repositories)

        results: Dict[str, Any] = {
            "pipeline_type": "crawl",
            "started_at": started_at,
            "url": url,
            "pages_visited": len(crawl.all_pages),
            "pages_processed": len(crawl.pages),
            "sections": sum(len(page.sections) for page in crawl.pages),
            "repositories": crawl.repositories,
            "content_tree": crawl.content_tree,
            "skipped": [skip.model_dump(mode="json") for skip in crawl.skipped],
            "repository_results": {},
            "success": True,
        }

        if index_repositories:
            for repo_url in crawl.repositories:
                coordinates = parse_repository_url(repo_url)
                if coordinates is None:
                    continue
                owner, name = coordinates
                repository = await self.run_repository(owner, name)
                results["repository_results"][f"{owner}/{name}"] = {
                    "status": repository["status"],
                    "files_processed": repository["files_processed"],
                    "error": repository.get("error"),
                }

        results["completed_at"] = datetime.now(timezone.utc).isoformat()
        return results

    async def run_repository(
        self,
        owner: str,
        name: str,
        include_paths: Optional[List[str]] = None,
        exclude_paths: Optional[List[str]] = None,
        force_reindex: bool = False,
    ) -> Dict[str, Any]:
        """Index a repository and assemble its artifact from storage."""
        settings = self.context.settings
        result = await self.context.indexer.index_repository(
            owner,
            name,
            include_paths=include_paths if include_paths else settings.index_include_paths or None,
            exclude_paths=exclude_paths if exclude_paths else settings.index_exclude_paths or None,
            force_reindex=force_reindex,
        )

        artifact: Dict[str, Any] = {
            "repository_id": result.repository_id,
            "status": result.status.value,
            "started_at": result.started_at.isoformat(),
            "completed_at": result.completed_at.isoformat() if result.completed_at else None,
            "files_processed": result.files_processed,
            "skipped": [item.model_dump(mode="json") for item in result.skipped],
            "skipped_by_code": result.skipped_by_code(),
            "success": result.status == IndexingStatus.COMPLETED,
        }
        if result.error:
            artifact["error"] = result.error
            return artifact

        storage = self.context.storage
        metadata = await storage.get_repository_metadata(result.repository_id)
        contents = await storage.list_repository_content(result.repository_id)

        readme_sections: List[Dict[str, Any]] = []
        files: List[Dict[str, Any]] = []
        for content in contents:
            if content.type == ContentType.README and content.parsed_content is not None:
                readme_sections = [s.model_dump() for s in content.parsed_content.sections]
            else:
                files.append(
                    {
                        "path": content.path,
                        "language": content.metadata.language,
                        "size": content.metadata.size,
                        "sha": content.metadata.sha,
                    }
                )

        artifact["metadata"] = metadata.model_dump(mode="json") if metadata else None
        artifact["readme_sections"] = readme_sections
        artifact["files"] = files
        return artifact
