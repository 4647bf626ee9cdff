"""Assembles search requests from the query string, structured filters and access control.

Combines the three filter sources a search endpoint receives into a single
filter string, in this order:

  1. structured filters from the request body   (AdvancedFilters)
  2. field filters typed into the query string  (parse_search_query)
  3. the caller's access-control clause          (opaque string)

Nothing here executes a search; the SearchRequest is handed to whatever
talks to the search engine.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from archive_query.query.compiler import compile_expression, compile_filter
from archive_query.query.fields import parse_date_millis
from archive_query.query.parser import parse_search_query
from archive_query.query.types import Filter, FilterField, FilterOperator, ParsedQuery
from archive_query.search.config import SearchConfig

logger = logging.getLogger(__name__)


class MatchingStrategy(str, Enum):
    """How the engine treats keywords that match no document."""

    LAST = "last"
    ALL = "all"
    FREQUENCY = "frequency"


#: Attributes searched when a request is restricted to attachments.
ATTACHMENT_ATTRIBUTES: tuple[str, ...] = ("attachments.filename", "attachments.content")


@dataclass(frozen=True)
class AdvancedFilters:
    """Structured filters sent alongside the query string.

    Empty or None fields are ignored. Dates use the ``YYYY-MM-DD`` form;
    ``date_from`` is inclusive, ``date_to`` is inclusive of its midnight.
    """

    from_: str | None = None
    to: str | None = None
    cc: str | None = None
    bcc: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    has_attachments: bool | None = None
    ingestion_source_id: str | None = None
    tags: list[str] = field(default_factory=list)
    path: str | None = None


@dataclass(frozen=True)
class SearchRequest:
    """Everything the search executor needs for one page of results."""

    keywords: str
    filter: str | None
    page: int
    limit: int
    offset: int
    sort: str | None
    matching_strategy: MatchingStrategy
    parsed: ParsedQuery
    facets: tuple[str, ...] = ()
    attachments_only: bool = False

    def to_params(self) -> dict[str, Any]:
        """Return the engine-facing parameters as a JSON-serialisable dict."""
        params: dict[str, Any] = {
            "q": self.keywords,
            "limit": self.limit,
            "offset": self.offset,
            "matchingStrategy": self.matching_strategy.value,
        }
        if self.filter:
            params["filter"] = self.filter
        if self.sort:
            params["sort"] = [self.sort]
        if self.attachments_only:
            params["attributesToSearchOn"] = list(ATTACHMENT_ATTRIBUTES)
        if self.facets:
            params["facets"] = list(self.facets)
        return params


# ── Filter clauses ─────────────────────────────────────────────────────────────


def _date_clause(value: str, operator: FilterOperator, name: str) -> str | None:
    millis = parse_date_millis(value)
    if millis is None:
        logger.debug("Ignoring invalid %s %r", name, value)
        return None
    return compile_filter(Filter(FilterField.TIMESTAMP, operator, millis))


def structured_filter_clauses(filters: AdvancedFilters) -> list[str]:
    """Render each populated structured filter as one clause."""
    clauses: list[str] = []
    for target, value in (
        (FilterField.FROM, filters.from_),
        (FilterField.TO, filters.to),
        (FilterField.CC, filters.cc),
        (FilterField.BCC, filters.bcc),
    ):
        if value:
            clauses.append(compile_filter(Filter(target, FilterOperator.EQ, value)))

    if filters.date_from:
        clause = _date_clause(filters.date_from, FilterOperator.GTE, "date_from")
        if clause:
            clauses.append(clause)
    if filters.date_to:
        clause = _date_clause(filters.date_to, FilterOperator.LTE, "date_to")
        if clause:
            clauses.append(clause)

    if filters.has_attachments is not None:
        clauses.append(
            compile_filter(
                Filter(FilterField.HAS_ATTACHMENTS, FilterOperator.EQ, filters.has_attachments)
            )
        )
    if filters.ingestion_source_id:
        clauses.append(
            compile_filter(
                Filter(FilterField.INGESTION_SOURCE_ID, FilterOperator.EQ, filters.ingestion_source_id)
            )
        )
    if filters.tags:
        tag_clauses = [
            compile_filter(Filter(FilterField.TAGS, FilterOperator.EQ, tag)) for tag in filters.tags
        ]
        clauses.append(f"({' OR '.join(tag_clauses)})")
    if filters.path:
        clauses.append(compile_filter(Filter(FilterField.PATH, FilterOperator.EQ, filters.path)))
    return clauses


def combine_filter_clauses(*clauses: str | None) -> str | None:
    """AND together the non-empty clauses in order. None when nothing is left."""
    parts = [c for c in clauses if c]
    return " AND ".join(parts) if parts else None


# ── Request assembly ───────────────────────────────────────────────────────────


def build_search_request(
    raw_query: str,
    filters: AdvancedFilters | None = None,
    access_filter: str | None = None,
    page: int = 1,
    limit: int | None = None,
    sort: str | None = None,
    matching_strategy: MatchingStrategy | str = MatchingStrategy.LAST,
    facets: Sequence[str] = (),
    attachments_only: bool = False,
    config: SearchConfig | None = None,
) -> SearchRequest:
    """Parse the query string and assemble a SearchRequest.

    ``limit`` defaults to ``config.default_limit`` and is clamped to
    ``config.max_limit``.

    ``attachments_only`` restricts keyword matching to attachment file names
    and contents; ``facets`` names the attributes to count values for.

    Raises:
        ValueError: if page or limit is below 1, or matching_strategy is unknown.
    """
    config = config or SearchConfig()
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if limit is None:
        limit = config.default_limit
    if limit < 1:
        raise ValueError(f"limit must be >= 1, got {limit}")
    if limit > config.max_limit:
        logger.debug("Clamping limit %d to %d", limit, config.max_limit)
        limit = config.max_limit
    strategy = MatchingStrategy(matching_strategy)

    parsed = parse_search_query(raw_query, max_depth=config.max_depth)
    query_clause = compile_expression(parsed.expression) if parsed.expression else None
    structured = structured_filter_clauses(filters) if filters else []

    return SearchRequest(
        keywords=parsed.keywords,
        filter=combine_filter_clauses(*structured, query_clause, access_filter),
        page=page,
        limit=limit,
        offset=(page - 1) * limit,
        sort=sort,
        matching_strategy=strategy,
        parsed=parsed,
        facets=tuple(facets),
        attachments_only=attachments_only,
    )
