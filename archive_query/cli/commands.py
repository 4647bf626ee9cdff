"""CLI commands: parse a query, or assemble a full search request."""

from __future__ import annotations

import json
import logging
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from archive_query.query.compiler import chain_operands, compile_expression
from archive_query.query.parser import parse_search_query
from archive_query.query.types import (
    And,
    Filter,
    FilterExpression,
    Leaf,
    Not,
    ParsedQuery,
)
from archive_query.search.config import SearchConfig
from archive_query.search.request import (
    AdvancedFilters,
    MatchingStrategy,
    build_search_request,
)

logger = logging.getLogger(__name__)
console = Console(width=200)


# ── JSON helpers ─────────────────────────────────────────────────────────────


def _filter_to_dict(leaf: Filter) -> dict[str, Any]:
    return {"field": leaf.field.value, "operator": leaf.operator.value, "value": leaf.value}


def _expression_to_dict(expression: FilterExpression) -> dict[str, Any]:
    if isinstance(expression, Leaf):
        return {"type": "filter", "filter": _filter_to_dict(expression.filter)}
    if isinstance(expression, Not):
        return {"type": "not", "operand": _expression_to_dict(expression.operand)}
    # AND/OR chains come out flat so the JSON nests only as deep as the groups.
    kind = "and" if isinstance(expression, And) else "or"
    return {
        "type": kind,
        "operands": [_expression_to_dict(o) for o in chain_operands(expression)],
    }


def _parsed_to_dict(parsed: ParsedQuery) -> dict[str, Any]:
    return {
        "keywords": parsed.keywords,
        "filters": [_filter_to_dict(f) for f in parsed.filters],
        "expression": _expression_to_dict(parsed.expression) if parsed.expression else None,
        "filter": compile_expression(parsed.expression) if parsed.expression else None,
    }


# ── archive-query parse ──────────────────────────────────────────────────────


@click.command()
@click.argument("query")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_obj
def parse(config: SearchConfig, query: str, as_json: bool) -> None:
    """Split QUERY into keywords, field filters and a compiled filter string."""
    parsed = parse_search_query(query, max_depth=config.max_depth)

    if as_json:
        click.echo(json.dumps(_parsed_to_dict(parsed), indent=2))
        return

    if parsed.filters:
        table = Table(box=box.ROUNDED, show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=3)
        table.add_column("Field", width=18)
        table.add_column("Op", width=4)
        table.add_column("Value", max_width=60)
        for i, leaf in enumerate(parsed.filters, start=1):
            table.add_row(
                str(i),
                leaf.field.value,
                leaf.operator.value,
                escape(json.dumps(leaf.value)),
            )
        console.print(table)
    else:
        console.print("[dim]No field filters.[/dim]")

    console.print(f"  [bold]Keywords:[/bold] {escape(parsed.keywords) or '[dim](none)[/dim]'}")
    if parsed.expression is not None:
        console.print(f"  [bold]Filter:[/bold]   {escape(compile_expression(parsed.expression))}")


# ── archive-query request ────────────────────────────────────────────────────


@click.command()
@click.argument("query")
@click.option("--from", "from_", default=None, help="Sender address.")
@click.option("--to", default=None, help="Recipient address.")
@click.option("--cc", default=None, help="Cc address.")
@click.option("--bcc", default=None, help="Bcc address.")
@click.option("--date-from", default=None, help="Earliest date, YYYY-MM-DD (inclusive).")
@click.option("--date-to", default=None, help="Latest date, YYYY-MM-DD.")
@click.option(
    "--has-attachments/--no-attachments",
    default=None,
    help="Only emails with (or without) attachments.",
)
@click.option("--in", "ingestion_source_id", default=None, help="Ingestion source ID.")
@click.option("--tag", "tags", multiple=True, help="Tag; repeat to match any of several.")
@click.option("--path", default=None, help="Folder path.")
@click.option("--access-filter", default=None, help="Access-control clause to AND on.")
@click.option("--page", default=1, show_default=True, type=int, help="Result page.")
@click.option("--limit", default=None, type=int, help="Results per page.")
@click.option("--sort", default=None, help="Sort rule, e.g. timestamp:desc.")
@click.option(
    "--matching-strategy",
    type=click.Choice([s.value for s in MatchingStrategy]),
    default=MatchingStrategy.LAST.value,
    show_default=True,
)
@click.option("--facet", "facets", multiple=True, help="Attribute to count values for; repeatable.")
@click.option(
    "--attachments-only",
    is_flag=True,
    help="Match keywords against attachment names and contents only.",
)
@click.pass_context
def request(
    ctx: click.Context,
    query: str,
    from_: str | None,
    to: str | None,
    cc: str | None,
    bcc: str | None,
    date_from: str | None,
    date_to: str | None,
    has_attachments: bool | None,
    ingestion_source_id: str | None,
    tags: tuple[str, ...],
    path: str | None,
    access_filter: str | None,
    page: int,
    limit: int | None,
    sort: str | None,
    matching_strategy: str,
    facets: tuple[str, ...],
    attachments_only: bool,
) -> None:
    """Assemble the search engine parameters for QUERY plus structured filters."""
    filters = AdvancedFilters(
        from_=from_,
        to=to,
        cc=cc,
        bcc=bcc,
        date_from=date_from,
        date_to=date_to,
        has_attachments=has_attachments,
        ingestion_source_id=ingestion_source_id,
        tags=list(tags),
        path=path,
    )
    try:
        search_request = build_search_request(
            query,
            filters=filters,
            access_filter=access_filter,
            page=page,
            limit=limit,
            sort=sort,
            matching_strategy=matching_strategy,
            facets=facets,
            attachments_only=attachments_only,
            config=ctx.obj,
        )
    except ValueError as exc:
        logger.error("Invalid search request: %s", exc)
        console.print(f"[red]Invalid request: {escape(str(exc))}[/red]")
        ctx.exit(1)

    click.echo(json.dumps(search_request.to_params(), indent=2))
