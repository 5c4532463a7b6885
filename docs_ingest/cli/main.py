"""CLI interface for docs-ingest."""

import importlib
import logging

import click

from ..core.config import settings

# Map command names to their module:attribute for lazy import
_COMMANDS = {
    "docs": "docs_ingest.cli.docs:docs",
    "crawl": "docs_ingest.cli.crawl:crawl",
    "repo": "docs_ingest.cli.repo:repo",
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class LazyGroup(click.Group):
    """
    Lazy loading of CLI commands to avoid hard dependencies at top level.

    The crawl commands pull in the browser renderer, which the documentation
    and repository commands never need.
    """

    def list_commands(self, ctx):
        # Keep stable ordering for help output
        return list(_COMMANDS.keys())

    def get_command(self, ctx, name):
        target = _COMMANDS.get(name)
        if not target:
            return None
        module_path, attr = target.split(":", 1)
        mod = importlib.import_module(module_path)
        return getattr(mod, attr)


@click.command(cls=LazyGroup)
@click.option("--log-level", default=None, help="Override the configured log level")
def main(log_level):
    """Documentation and repository ingestion CLI."""
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format=LOG_FORMAT,
    )


if __name__ == "__main__":
    main()
