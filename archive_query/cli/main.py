"""CLI entry point for the archive search query tools."""

import logging

import click
from dotenv import load_dotenv

from archive_query.search.config import SearchConfig

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log parser decisions at DEBUG level.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Parse archive search queries into keywords and engine filter strings."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    )
    ctx.obj = SearchConfig.from_env()


# Import and register commands after cli is defined to avoid circular imports.
from archive_query.cli.commands import parse, request  # noqa: E402

cli.add_command(parse)
cli.add_command(request)
