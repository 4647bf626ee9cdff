"""Types for the search query language: leaf filters, expression trees, parse results."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum


class FilterField(str, Enum):
    """Filterable attributes of an archived email document.

    Values are the attribute names used by the search engine index, so they
    are rendered into filter strings without a separate mapping step.
    """

    FROM = "from"
    TO = "to"
    CC = "cc"
    BCC = "bcc"
    SUBJECT = "subject"
    HAS_ATTACHMENTS = "hasAttachments"
    TIMESTAMP = "timestamp"
    INGESTION_SOURCE_ID = "ingestionSourceId"
    TAGS = "tags"
    PATH = "path"


class FilterOperator(str, Enum):
    """Comparison operator of a leaf filter."""

    EQ = "eq"
    LT = "lt"
    GT = "gt"
    LTE = "lte"
    GTE = "gte"


# ── Filter syntax mappings ─────────────────────────────────────────────────────

OPERATOR_SYMBOL: dict[FilterOperator, str] = {
    FilterOperator.EQ: "=",
    FilterOperator.LT: "<",
    FilterOperator.GT: ">",
    FilterOperator.LTE: "<=",
    FilterOperator.GTE: ">=",
}


# ── Leaf filter ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Filter:
    """A single ``{field, operator, value}`` triple.

    The value's runtime type follows the field: ``bool`` for hasAttachments,
    ``int`` (epoch milliseconds) for timestamp, ``str`` for everything else.
    """

    field: FilterField
    operator: FilterOperator
    value: str | int | bool

    def __post_init__(self) -> None:
        if self.field is FilterField.HAS_ATTACHMENTS:
            ok = isinstance(self.value, bool)
        elif self.field is FilterField.TIMESTAMP:
            ok = isinstance(self.value, int) and not isinstance(self.value, bool)
        else:
            ok = isinstance(self.value, str)
        if not ok:
            raise TypeError(
                f"{type(self.value).__name__} value is not valid for field {self.field.value!r}"
            )


# ── Expression tree ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Leaf:
    filter: Filter


@dataclass(frozen=True)
class And:
    left: FilterExpression
    right: FilterExpression


@dataclass(frozen=True)
class Or:
    left: FilterExpression
    right: FilterExpression


@dataclass(frozen=True)
class Not:
    operand: FilterExpression


FilterExpression = Leaf | And | Or | Not


def iter_leaves(expression: FilterExpression) -> Iterator[Filter]:
    """Yield the leaf filters of a tree from left to right.

    Walks with an explicit stack so left-deep AND/OR chains of any length
    are safe.
    """
    stack: list[FilterExpression] = [expression]
    while stack:
        node = stack.pop()
        if isinstance(node, Leaf):
            yield node.filter
        elif isinstance(node, Not):
            stack.append(node.operand)
        else:
            stack.append(node.right)
            stack.append(node.left)


# ── Parse result ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ParsedQuery:
    """Result of parsing a raw search string.

    ``expression`` is None exactly when no field token resolved to a filter;
    ``filters`` holds the leaves of ``expression`` in the order they were read.
    """

    keywords: str = ""
    filters: tuple[Filter, ...] = ()
    expression: FilterExpression | None = None
