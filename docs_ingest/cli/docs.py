"""CLI commands for single documentation sources."""

import asyncio
import json as _json

import click

from ..core.context import create_ingestion_context
from ..pipelines.orchestrator import PipelineOrchestrator


@click.group()
def docs():
    """Fetch and section individual documentation pages."""
    pass


@docs.command()
@click.argument("url")
@click.option("--source-id", default=None, help="Source identifier used in section ids")
@click.option("--markdown", is_flag=True, help="Parse the body as Markdown")
def parse(url: str, source_id: str, markdown: bool):
    """Fetch URL and print its processed sections as JSON."""

    async def _run():
        async with create_ingestion_context() as context:
            orchestrator = PipelineOrchestrator(context)
            try:
                results = await orchestrator.run_documentation_source(
                    url, source_id=source_id, markdown=markdown
                )
            except Exception as e:
                click.echo(f"❌ Parsing failed: {e}", err=True)
                raise SystemExit(1)

        click.echo(_json.dumps(results["sections"], indent=2))
        click.echo(f"✅ {len(results['sections'])} sections from {url}", err=True)

    asyncio.run(_run())
