"""Renders leaf filters and expression trees as filter strings.

Target syntax::

    from = "john" AND (tags = "a" OR tags = "b") AND NOT (hasAttachments = true)

OR groups and NOT operands are always parenthesised so the result does not
depend on the search engine's own operator precedence.
"""

from collections.abc import Iterable
from typing import assert_never

from archive_query.query.types import (
    OPERATOR_SYMBOL,
    And,
    Filter,
    FilterExpression,
    Leaf,
    Not,
    Or,
)


def compile_filter(leaf: Filter) -> str:
    """Render one leaf as ``<field> <op> <value>``.

    String values are double-quoted with backslashes and quotes escaped.
    """
    op = OPERATOR_SYMBOL[leaf.operator]
    value = leaf.value
    if isinstance(value, bool):
        rendered = "true" if value else "false"
    elif isinstance(value, int):
        rendered = str(value)
    else:
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        rendered = f'"{escaped}"'
    return f"{leaf.field.value} {op} {rendered}"


def chain_operands(expression: And | Or) -> list[FilterExpression]:
    """Operands of a left-associative chain of one node type, in source order."""
    kind = type(expression)
    operands: list[FilterExpression] = []
    node: FilterExpression = expression
    while isinstance(node, kind):
        operands.append(node.right)  # type: ignore[union-attr]
        node = node.left  # type: ignore[union-attr]
    operands.append(node)
    operands.reverse()
    return operands


def compile_expression(expression: FilterExpression) -> str:
    """Render an expression tree.

    Long AND/OR chains are walked iteratively, so recursion only follows
    explicit grouping and NOT nesting.
    """
    if isinstance(expression, Leaf):
        return compile_filter(expression.filter)

    if isinstance(expression, Not):
        depth = 0
        node: FilterExpression = expression
        while isinstance(node, Not):
            depth += 1
            node = node.operand
        return "NOT (" * depth + compile_expression(node) + ")" * depth

    if isinstance(expression, And):
        return " AND ".join(compile_expression(o) for o in chain_operands(expression))

    if isinstance(expression, Or):
        first, *rest = chain_operands(expression)
        rendered = compile_expression(first)
        for operand in rest:
            rendered = f"({rendered} OR {compile_expression(operand)})"
        return rendered

    assert_never(expression)


def compile_filters(filters: Iterable[Filter]) -> str:
    """Render a flat sequence of leaves joined with AND; no leaves gives ``""``."""
    return " AND ".join(compile_filter(f) for f in filters)
