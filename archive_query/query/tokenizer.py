"""Tokenizer for the search query language.

Turns a raw query string into an ordered list of tokens. Never fails: any
run of non-whitespace, non-parenthesis characters that is not a field,
quoted phrase or operator becomes a keyword.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


# ── Token variants ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FieldToken:
    """A ``name:value`` fragment.

    ``value`` has quotes and escapes removed; ``raw`` is the exact source text.
    """

    name: str
    value: str
    raw: str


@dataclass(frozen=True)
class KeywordToken:
    text: str


@dataclass(frozen=True)
class QuotedToken:
    """A double-quoted phrase; ``text`` excludes the quotes."""

    text: str


@dataclass(frozen=True)
class AndToken:
    pass


@dataclass(frozen=True)
class OrToken:
    pass


@dataclass(frozen=True)
class NotToken:
    pass


@dataclass(frozen=True)
class LParenToken:
    pass


@dataclass(frozen=True)
class RParenToken:
    pass


Token = (
    FieldToken
    | KeywordToken
    | QuotedToken
    | AndToken
    | OrToken
    | NotToken
    | LParenToken
    | RParenToken
)


# ── Scanner ────────────────────────────────────────────────────────────────────

# Alternatives are tried in order; parentheses are excluded from field values
# and bare words so they always come out as separate tokens. Quoted field
# values may contain \" and \\ escapes; one that only closes when read
# without escapes (``path:"C:\dir\"``) is taken literally.
_TOKEN_RE = re.compile(
    r'(?P<qname>\w+):"(?P<qvalue>(?:[^"\\]|\\.)*)"'
    r'|(?P<pname>\w+):"(?P<pvalue>[^"]*)"'
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))"
    r'|"(?P<phrase>[^"]*)"'
    r"|(?P<name>\w+):(?P<value>[^\s()]+)"
    r"|(?P<word>[^\s()]+)",
    re.DOTALL,
)

_ESCAPE_RE = re.compile(r'\\(["\\])')

_OPERATORS: dict[str, Token] = {
    "and": AndToken(),
    "or": OrToken(),
    "not": NotToken(),
}


def tokenize(text: str) -> list[Token]:
    """Split a raw query into tokens, scanning left to right.

    Usage::

        tokenize('from:john OR "budget review"')
        # [FieldToken('from', 'john', 'from:john'), OrToken(), QuotedToken('budget review')]
    """
    tokens: list[Token] = []
    for match in _TOKEN_RE.finditer(text):
        group = match.lastgroup
        if group == "qvalue":
            value = _ESCAPE_RE.sub(r"\1", match["qvalue"])
            tokens.append(FieldToken(match["qname"], value, match.group(0)))
        elif group == "pvalue":
            tokens.append(FieldToken(match["pname"], match["pvalue"], match.group(0)))
        elif group == "lparen":
            tokens.append(LParenToken())
        elif group == "rparen":
            tokens.append(RParenToken())
        elif group == "phrase":
            tokens.append(QuotedToken(match["phrase"]))
        elif group == "value":
            tokens.append(FieldToken(match["name"], match["value"], match.group(0)))
        else:
            word = match["word"]
            tokens.append(_OPERATORS.get(word.lower(), KeywordToken(word)))
    return tokens
