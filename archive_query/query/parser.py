"""Recursive-descent parser for boolean search queries.

Grammar, lowest precedence first::

    or_expr  := and_expr ("OR" and_expr)*
    and_expr := not_expr (("AND" | <implicit>) not_expr)*
    not_expr := "NOT" not_expr | primary
    primary  := "(" or_expr ")" | field | keyword | quoted

Only field tokens that resolve to a filter contribute to the expression
tree. Keywords, quoted phrases and unresolved fields are collected into a
separate keyword list. Malformed input never raises: stray ``)`` and
operators without operands are skipped, and an unclosed ``(`` runs to the
end of the input.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import reduce

from archive_query.query.fields import resolve_field
from archive_query.query.tokenizer import (
    AndToken,
    FieldToken,
    KeywordToken,
    LParenToken,
    NotToken,
    OrToken,
    QuotedToken,
    RParenToken,
    Token,
    tokenize,
)
from archive_query.query.types import (
    And,
    Filter,
    FilterExpression,
    Leaf,
    Not,
    Or,
    ParsedQuery,
)

logger = logging.getLogger(__name__)

#: Maximum nesting of ``(`` groups and ``NOT`` prefixes honoured per query.
DEFAULT_MAX_DEPTH = 64

#: Upper bound on any configured depth; each level costs several stack frames.
MAX_DEPTH_CEILING = 100


def _combine(
    left: FilterExpression | None,
    right: FilterExpression | None,
    node: Callable[[FilterExpression, FilterExpression], FilterExpression],
) -> FilterExpression | None:
    """Join two optional operands; a missing side leaves the other unchanged."""
    if left is None:
        return right
    if right is None:
        return left
    return node(left, right)


class ExpressionParser:
    """Single-use parser over one token list.

    The cursor, keyword list and filter list live on the instance, so each
    query gets its own parser and nothing is shared between calls.

    Usage::

        parser = ExpressionParser(tokenize("from:john OR from:jane"))
        parsed = parser.parse()
    """

    def __init__(self, tokens: list[Token], max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        if max_depth > MAX_DEPTH_CEILING:
            logger.warning(
                "max_depth %d exceeds %d; capping", max_depth, MAX_DEPTH_CEILING
            )
            max_depth = MAX_DEPTH_CEILING
        self._tokens = tokens
        self._pos = 0
        self._depth = 0
        self._max_depth = max_depth
        self._depth_warned = False
        self._keywords: list[str] = []
        self._filters: list[Filter] = []

    def parse(self) -> ParsedQuery:
        """Consume every token and return keywords, filters and the combined tree.

        Keywords are not part of the grammar, so one or_expr pass can stop
        early at a keyword; the loop restarts until the input is exhausted and
        ANDs the resulting expressions together in order.
        """
        expressions: list[FilterExpression] = []
        while self._pos < len(self._tokens):
            expression = self._parse_or()
            if expression is not None:
                expressions.append(expression)

        combined = reduce(And, expressions) if expressions else None
        return ParsedQuery(
            keywords=" ".join(self._keywords),
            filters=tuple(self._filters),
            expression=combined,
        )

    # ── Cursor ──────────────────────────────────────────────────────────────────

    def _peek(self) -> Token | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _advance(self) -> Token | None:
        token = self._peek()
        if token is not None:
            self._pos += 1
        return token

    def _at_depth_limit(self) -> bool:
        if self._depth < self._max_depth:
            return False
        if not self._depth_warned:
            logger.warning(
                "Query nesting exceeds %d levels; deeper groups and NOTs are ignored",
                self._max_depth,
            )
            self._depth_warned = True
        return True

    # ── Grammar rules ───────────────────────────────────────────────────────────

    def _parse_or(self) -> FilterExpression | None:
        left = self._parse_and()
        while isinstance(self._peek(), OrToken):
            self._advance()
            left = _combine(left, self._parse_and(), Or)
        return left

    def _parse_and(self) -> FilterExpression | None:
        left = self._parse_not()
        while True:
            token = self._peek()
            if isinstance(token, AndToken):
                self._advance()
            elif not isinstance(token, (FieldToken, NotToken, LParenToken)):
                # Implicit AND only applies before a field, NOT or "(".
                break
            left = _combine(left, self._parse_not(), And)
        return left

    def _parse_not(self) -> FilterExpression | None:
        if not isinstance(self._peek(), NotToken):
            return self._parse_primary()

        if self._at_depth_limit():
            while isinstance(self._peek(), NotToken):
                self._advance()
            return self._parse_primary()

        self._advance()
        self._depth += 1
        operand = self._parse_not()
        self._depth -= 1
        return Not(operand) if operand is not None else None

    def _parse_primary(self) -> FilterExpression | None:
        token = self._advance()

        if isinstance(token, LParenToken):
            if self._at_depth_limit():
                return None
            self._depth += 1
            expression = self._parse_or()
            self._depth -= 1
            if isinstance(self._peek(), RParenToken):
                self._advance()
            return expression

        if isinstance(token, FieldToken):
            resolved = resolve_field(token.name, token.value)
            if resolved is None:
                self._keywords.append(token.raw)
                return None
            self._filters.append(resolved)
            return Leaf(resolved)

        if isinstance(token, KeywordToken):
            self._keywords.append(token.text)
        elif isinstance(token, QuotedToken):
            self._keywords.append(f'"{token.text}"')
        # Anything else is a stray ")" or an operator with no operand: dropped.
        return None


def parse_search_query(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> ParsedQuery:
    """Parse a raw search string into keywords, filters and a filter expression.

    Usage::

        parsed = parse_search_query("invoice from:john has:attachment")
        parsed.keywords      # "invoice"
        parsed.filters       # (Filter(FROM, EQ, "john"), Filter(HAS_ATTACHMENTS, EQ, True))
    """
    if not text or not text.strip():
        return ParsedQuery()
    return ExpressionParser(tokenize(text), max_depth=max_depth).parse()
