"""CLI commands for repository indexing."""

import asyncio
import json as _json
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.table import Table

from ..core.context import create_ingestion_context
from ..pipelines.orchestrator import PipelineOrchestrator


@click.group()
def repo():
    """Repository indexing commands."""
    pass


@repo.command("index")
@click.argument("owner")
@click.argument("name")
@click.option("--include", "include_paths", multiple=True, help="Only walk this path prefix")
@click.option("--exclude", "exclude_paths", multiple=True, help="Skip this path prefix")
@click.option("--force", is_flag=True, help="Reindex even when stored metadata is fresh")
@click.option("--json", "as_json", is_flag=True, help="Output JSON")
def repo_index(
    owner: str,
    name: str,
    include_paths: Tuple[str, ...],
    exclude_paths: Tuple[str, ...],
    force: bool,
    as_json: bool,
):
    """Index the repository OWNER/NAME."""

    async def _run():
        async with create_ingestion_context() as context:
            orchestrator = PipelineOrchestrator(context)
            return await orchestrator.run_repository(
                owner,
                name,
                include_paths=list(include_paths),
                exclude_paths=list(exclude_paths),
                force_reindex=force,
            )

    artifact = asyncio.run(_run())

    if as_json:
        click.echo(_json.dumps(artifact, indent=2, default=str))
        return

    if not artifact["success"]:
        click.echo(f"❌ Indexing {owner}/{name} failed: {artifact.get('error')}")
        raise SystemExit(1)

    click.echo(f"✅ Indexed {artifact['repository_id']}")
    click.echo(f"   Files processed: {artifact['files_processed']}")
    click.echo(f"   README sections: {len(artifact.get('readme_sections', []))}")
    if artifact["skipped"]:
        click.echo(f"   ⚠️  {len(artifact['skipped'])} paths skipped")
        for code, count in artifact["skipped_by_code"].items():
            click.echo(f"      {code}: {count}")


@repo.command("list")
@click.option("--domain", default=None, help="Only show repositories in this domain")
def repo_list(domain: Optional[str]):
    """List registered repositories."""
    context = create_ingestion_context()
    registry = context.registry
    repositories = (
        registry.get_repositories_for_domain(domain)
        if domain
        else registry.get_all_repositories()
    )

    table = Table(title="Registered repositories")
    table.add_column("Repository", no_wrap=True)
    table.add_column("Domain", no_wrap=True)
    table.add_column("Importance", no_wrap=True)
    table.add_column("Official", no_wrap=True)
    table.add_column("Tags")

    for repository in repositories:
        table.add_row(
            repository.repository_id,
            repository.domain,
            str(repository.importance),
            "✅" if repository.is_official else "-",
            ", ".join(repository.tags),
        )

    Console().print(table)


@repo.command("rate-limit")
def rate_limit():
    """Show the GitHub API rate limit for the configured token."""

    async def _run():
        async with create_ingestion_context() as context:
            return await context.github_client.check_rate_limits()

    info = asyncio.run(_run())
    click.echo(f"📊 GitHub API: {info.remaining}/{info.limit} requests remaining")
    click.echo(f"   Resets at: {info.reset.isoformat()}")
