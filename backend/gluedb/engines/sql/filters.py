"""
Jinja2 filters for SQL text templating.

Templating runs before ``:name`` placeholders are compiled, so these filters
are for the parts of a statement that cannot be bound (identifiers, IN
lists, optional clauses). All filters return SqlSafe so the finalize
callback does not escape them twice.
"""

from datetime import date, datetime
from typing import Any

_SQL_QUOTE_ESCAPE = str.maketrans({"'": "''"})


class SqlSafe(str):
    """String subclass marking a value as already SQL-escaped."""


def sql_string(value: Any) -> SqlSafe:
    """Quoted SQL string literal. None -> NULL."""
    if value is None:
        return SqlSafe("NULL")
    return SqlSafe("'" + str(value).translate(_SQL_QUOTE_ESCAPE) + "'")


def sql_int(value: Any) -> SqlSafe:
    if value is None:
        return SqlSafe("NULL")
    try:
        return SqlSafe(str(int(value)))
    except (TypeError, ValueError):
        return SqlSafe("NULL")


def sql_float(value: Any) -> SqlSafe:
    if value is None:
        return SqlSafe("NULL")
    try:
        return SqlSafe(str(float(value)))
    except (TypeError, ValueError):
        return SqlSafe("NULL")


def sql_bool(value: Any) -> SqlSafe:
    if value is None:
        return SqlSafe("NULL")
    return SqlSafe("TRUE" if value else "FALSE")


def _literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return sql_string(value.isoformat())
    return sql_string(value)


def in_list(value: Any) -> SqlSafe:
    """(1, 2, 'x') for an IN clause. Empty or None -> (SELECT 1 WHERE 1=0)."""
    try:
        items = list(value) if value is not None else []
    except TypeError:
        items = []
    if not items:
        return SqlSafe("(SELECT 1 WHERE 1=0)")
    return SqlSafe("(" + ", ".join(_literal(v) for v in items) + ")")


def sql_raw(value: Any) -> SqlSafe:
    """Trusted SQL fragment (table or column name); never use on user input."""
    if value is None:
        return SqlSafe("NULL")
    return SqlSafe(str(value))


def sql_finalize(value: Any) -> str:
    """Jinja2 ``finalize``: escape ``{{ }}`` output that no SQL filter handled."""
    if isinstance(value, SqlSafe):
        return str(value)
    if isinstance(value, (list, tuple, set)):
        return in_list(value)
    return _literal(value)


SQL_FILTERS: dict[str, Any] = {
    "sql_string": sql_string,
    "sql_int": sql_int,
    "sql_float": sql_float,
    "sql_bool": sql_bool,
    "in_list": in_list,
    "sql_raw": sql_raw,
    "safe": sql_raw,
}
