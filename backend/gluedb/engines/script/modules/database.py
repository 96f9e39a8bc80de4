"""
Database module for scripts: execute, run_update, run_select,
register_datasource, expect_equals, expect_equals_fatal.

DATABASE_OPERATIONS is the registration table, built once at import; every
handle takes the calling ScriptRuntime first. make_database_module() binds
the handles to one runtime for the script's ``database`` global.
"""

from collections.abc import Callable
from functools import partial
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

from gluedb.engines.verify import ValidationResult, run_verification

if TYPE_CHECKING:
    from gluedb.engines.script.runtime import ScriptRuntime


def execute(runtime: "ScriptRuntime", sql: str, datasource: str | None = None) -> list[Any]:
    """Select -> rows; anything else -> [[count, *generated_keys]]."""
    return runtime.executor.execute(sql, datasource, runtime.scope)


def run_update(runtime: "ScriptRuntime", sql: str, datasource: str | None = None) -> list[Any]:
    return runtime.executor.run_update(sql, datasource, runtime.scope)


def run_select(runtime: "ScriptRuntime", sql: str, datasource: str | None = None) -> list[list[Any]]:
    return runtime.executor.run_select(sql, datasource, runtime.scope)


def register_datasource(
    runtime: "ScriptRuntime",
    name: str | None,
    driver: str,
    url: str,
    username: str | None = None,
    password: str | None = None,
) -> None:
    """Define a datasource at runtime; ignored when the name is already in use."""
    runtime.registry.register_source(runtime.environment, name, driver, url, username, password)


def _expected_rows(expected: tuple[Any, ...], null_result: bool) -> tuple[Any, ...] | None:
    # A lone None is a one-row, one-column null check; null_result asserts on the whole result
    if null_result:
        if expected:
            raise TypeError("null_result=True takes no expected rows")
        return None
    return expected


def expect_equals(
    runtime: "ScriptRuntime",
    description: str,
    sql: str,
    *expected: Any,
    datasource: str | None = None,
    null_result: bool = False,
) -> list[ValidationResult]:
    """
    Run *sql* and validate the rows against *expected*; mismatches are recorded, not raised.

    Each positional argument after *sql* is one expected row. No rows means
    the query must return nothing. null_result=True checks that the result
    itself is None instead of checking rows.
    """
    return run_verification(runtime, False, description, sql, _expected_rows(expected, null_result), datasource)


def expect_equals_fatal(
    runtime: "ScriptRuntime",
    description: str,
    sql: str,
    *expected: Any,
    datasource: str | None = None,
    null_result: bool = False,
) -> list[ValidationResult]:
    """Like expect_equals, but the first mismatch raises AssertionFailure."""
    return run_verification(runtime, True, description, sql, _expected_rows(expected, null_result), datasource)


DATABASE_OPERATIONS: dict[str, Callable[..., Any]] = {
    "execute": execute,
    "run_update": run_update,
    "run_select": run_select,
    "register_datasource": register_datasource,
    "expect_equals": expect_equals,
    "expect_equals_fatal": expect_equals_fatal,
}


def make_database_module(runtime: "ScriptRuntime") -> Any:
    """Build the ``database`` object of a script, bound to *runtime*."""
    return SimpleNamespace(**{name: partial(fn, runtime) for name, fn in DATABASE_OPERATIONS.items()})
