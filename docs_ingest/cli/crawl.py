"""CLI commands for site exploration."""

import asyncio
import json as _json
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from ..core.context import create_ingestion_context
from ..pipelines.orchestrator import PipelineOrchestrator


@click.group()
def crawl():
    """Site crawling commands."""
    pass


@crawl.command()
@click.argument("url")
@click.option("--max-depth", type=int, default=None, help="Deepest link distance to follow")
@click.option("--javascript", is_flag=True, help="Render pages in a headless browser")
@click.option(
    "--index-repositories", is_flag=True, help="Index every GitHub repository found"
)
@click.option("--output", type=click.Path(dir_okay=False), help="Write the full result as JSON")
def explore(
    url: str,
    max_depth: Optional[int],
    javascript: bool,
    index_repositories: bool,
    output: Optional[str],
):
    """Explore a documentation site starting at URL."""
    click.echo(f"🔍 Exploring {url}...")

    async def _run():
        async with create_ingestion_context() as context:
            if javascript:
                context.crawler.config["use_javascript"] = True

            orchestrator = PipelineOrchestrator(context)
            return await orchestrator.run_site_crawl(
                url, max_depth=max_depth, index_repositories=index_repositories
            )

    results = asyncio.run(_run())

    if output:
        Path(output).write_text(_json.dumps(results, indent=2, default=str))
        click.echo(f"💾 Results written to {output}")

    click.echo("✅ Exploration completed!")
    click.echo(f"   Pages visited: {results['pages_visited']}")
    click.echo(f"   Pages processed: {results['pages_processed']}")
    click.echo(f"   Sections extracted: {results['sections']}")
    click.echo(f"   Repositories found: {len(results['repositories'])}")

    for repo_url in results["repositories"]:
        click.echo(f"   📦 {repo_url}")

    if results["skipped"]:
        table = Table(title="Skipped pages")
        table.add_column("URL", no_wrap=True)
        table.add_column("Error", no_wrap=True)
        table.add_column("Message")
        for skip in results["skipped"]:
            table.add_row(skip["url"], skip["error_code"], skip["message"])
        Console().print(table)

    for repo_id, repo_result in results["repository_results"].items():
        if repo_result.get("error"):
            click.echo(f"   ❌ {repo_id}: {repo_result['error']}")
        else:
            click.echo(f"   ✅ {repo_id}: {repo_result['files_processed']} files")
