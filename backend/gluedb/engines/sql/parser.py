"""
Named-parameter compiler and small SQL text helpers.

``:name`` placeholders become positional driver markers; ``::name`` is
never a placeholder (so casts like ``x::int`` survive) and stays as-is.
"""

import re
from typing import NamedTuple

# A colon not preceded by another colon, followed by one or more word characters
_PLACEHOLDER_RE = re.compile(r"(?<!:):(\w+)", re.ASCII)
_KEYWORD_RE = re.compile(r"^\W*(\w+)", re.ASCII)
_FROM_RE = re.compile(r"\bfrom\b", re.IGNORECASE)
_ALIAS_RE = re.compile(r"\s+as\s+", re.IGNORECASE)


class PreparedQuery(NamedTuple):
    template: str
    parameter_order: list[str]  # one name per marker, duplicates allowed


def compile_named(sql: str, marker: str = "?") -> PreparedQuery:
    """
    Replace every ``:name`` in *sql* with *marker*, left to right.

    For ``%s`` style drivers every literal ``%`` is doubled first, so the
    driver reads it back as a single percent sign.
    """
    if marker.startswith("%"):
        sql = sql.replace("%", "%%")
    names: list[str] = []

    def _replace(match: re.Match) -> str:
        names.append(match.group(1))
        return marker

    template = _PLACEHOLDER_RE.sub(_replace, sql)
    return PreparedQuery(template=template, parameter_order=names)


def statement_keyword(sql: str) -> str:
    """First word of the statement, lower-cased ("select", "insert", ...)."""
    m = _KEYWORD_RE.match(sql)
    if m is None:
        return sql.strip().lower()
    return m.group(1).lower()


def _split_top_level(text: str) -> list[str]:
    """Split on commas that are not inside parentheses or quotes."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    for ch in text:
        if quote:
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def select_fields(sql: str) -> list[str]:
    """
    Column labels of a ``select ... from`` statement, in select-list order.

    ``expr as alias`` yields ``alias``; other expressions are returned as
    written. Returns [] when the text is not a select with a from clause.
    """
    s = sql.strip()
    if statement_keyword(s) != "select":
        return []
    m = _FROM_RE.search(s)
    if m is None:
        return []
    select_list = s[s.lower().index("select") + len("select"):m.start()]
    fields: list[str] = []
    for field in _split_top_level(select_list):
        parts = _ALIAS_RE.split(field)
        fields.append(parts[-1].strip())
    return fields
