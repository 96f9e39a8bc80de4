"""
Assertion functions available to scripts: validate_* (soft) and confirm_* (fatal).

Every call records a ValidationResult in the runtime's sink. A failing
confirm_* raises AssertionFailure; a failing validate_* is logged and the
script keeps running.
"""

import logging
from collections.abc import Callable
from typing import Any, NamedTuple

from gluedb.core.errors import AssertionFailure

_log = logging.getLogger(__name__)

NOT_NULL = "<not null>"


class ValidationResult(NamedTuple):
    group: str
    message: str
    passed: bool
    expected: Any
    actual: Any
    fatal: bool


def cell(rows: Any, row: int, column: int) -> Any:
    """rows[row][column], or None when the result is shorter than that."""
    try:
        return rows[row][column]
    except (IndexError, KeyError, TypeError):
        return None


def row_size(rows: Any, row: int) -> int | None:
    """len(rows[row]), or None when the row does not exist."""
    try:
        return len(rows[row])
    except (IndexError, KeyError, TypeError):
        return None


class Validator:
    """Records checks into *sink*; builds the validate_*/confirm_* script functions."""

    def __init__(self, sink: list[ValidationResult] | None = None) -> None:
        self.sink: list[ValidationResult] = sink if sink is not None else []

    def check(
        self,
        passed: bool,
        message: str,
        expected: Any,
        actual: Any,
        *,
        group: str = "",
        fatal: bool = False,
    ) -> bool:
        self.sink.append(ValidationResult(group, message, passed, expected, actual, fatal))
        if passed:
            _log.debug("[%s] %s: ok", group, message)
            return True
        if fatal:
            _log.error("[%s] %s: expected %r, got %r", group, message, expected, actual)
            raise AssertionFailure(group, message, expected, actual)
        _log.warning("[%s] %s: expected %r, got %r", group, message, expected, actual)
        return False

    def functions(self) -> dict[str, Callable[..., bool]]:
        def make(fatal: bool) -> dict[str, Callable[..., bool]]:
            def equals(message: str, expected: Any, actual: Any, group: str = "") -> bool:
                return self.check(expected == actual, message, expected, actual, group=group, fatal=fatal)

            def null(message: str, actual: Any, group: str = "") -> bool:
                return self.check(actual is None, message, None, actual, group=group, fatal=fatal)

            def not_null(message: str, actual: Any, group: str = "") -> bool:
                return self.check(actual is not None, message, NOT_NULL, actual, group=group, fatal=fatal)

            return {"equals": equals, "null": null, "not_null": not_null}

        funcs: dict[str, Callable[..., bool]] = {}
        for prefix, fatal in (("validate", False), ("confirm", True)):
            for name, fn in make(fatal).items():
                funcs[f"{prefix}_{name}"] = fn
        return funcs
