"""
Generate a verification script from expected query results.

The script is built as a list of AssertionStatement objects and only
serialized to Python source in VerificationScript.render(). Strings coming
from the caller (description, column labels, SQL) are emitted with repr();
expected values are never inlined, the script reads them from the
``expected`` variable seeded into its scope.

Expected shapes, per row: list/tuple of cells, mapping (values in order),
or a single scalar (one-column row). Cells: None -> null check,
"*" -> not-null check, anything else -> equality with expected[row][col].
"""

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

from gluedb.engines.sql.parser import select_fields
from gluedb.engines.verify.validation import ValidationResult

if TYPE_CHECKING:
    from gluedb.engines.script.runtime import ScriptRuntime

_log = logging.getLogger(__name__)

WILDCARD = "*"


class AssertionKind(str, Enum):
    NULL = "null"
    NOT_NULL = "not_null"
    EQUALS = "equals"


class AssertionStatement(NamedTuple):
    kind: AssertionKind
    group: str
    label: str
    operands: tuple[str, ...]  # Python expressions over `actual` / `expected`


class GeneratedVerification(NamedTuple):
    script: str
    expected: list[list[Any]] | None


class VerificationScript:
    """Assertion statements for one query, rendered as a script."""

    def __init__(self, sql: str, *, fail_fast: bool, datasource: str | None = None) -> None:
        self.sql = sql
        self.fail_fast = fail_fast
        self.datasource = datasource
        self.statements: list[AssertionStatement] = []

    def add(self, kind: AssertionKind, group: str, label: str, *operands: str) -> None:
        self.statements.append(AssertionStatement(kind, group, label, operands))

    def render(self) -> str:
        prefix = "confirm" if self.fail_fast else "validate"
        args = repr(self.sql) if self.datasource is None else f"{self.sql!r}, {self.datasource!r}"
        lines = [f"actual = database.run_select({args})"]
        for st in self.statements:
            operands = ", ".join((repr(st.label), *st.operands))
            lines.append(f"{prefix}_{st.kind.value}({operands}, group={st.group!r})")
        return "\n".join(lines) + "\n"


def _row_cells(row: Any) -> list[Any]:
    if isinstance(row, Mapping):
        return list(row.values())
    if isinstance(row, Sequence) and not isinstance(row, (str, bytes, bytearray)):
        return list(row)
    return [row]


def _column_label(index: int, fields: list[str]) -> str:
    if index < len(fields) and fields[index]:
        return f"Column {index} {fields[index]}"
    return f"Column {index}"


def generate(
    fail_fast: bool,
    description: str,
    sql: str,
    expected: Sequence[Any] | None,
    datasource: str | None = None,
) -> GeneratedVerification:
    """Build the verification script for *sql* and the normalized expected rows."""
    script = VerificationScript(sql, fail_fast=fail_fast, datasource=datasource)
    if expected is None:
        script.add(AssertionKind.NULL, description, "Result must be null", "actual")
        return GeneratedVerification(script.render(), None)

    rows = [_row_cells(row) for row in expected]
    fields = select_fields(sql)
    script.add(AssertionKind.NOT_NULL, description, "Result must not be null", "actual")
    script.add(AssertionKind.EQUALS, description, "Result size check", str(len(rows)), "len(actual)")
    for r, cells in enumerate(rows):
        group = f"{description} row {r}"
        script.add(AssertionKind.EQUALS, group, "Size check", str(len(cells)), f"row_size(actual, {r})")
        for c, value in enumerate(cells):
            label = _column_label(c, fields)
            actual = f"cell(actual, {r}, {c})"
            if value is None:
                script.add(AssertionKind.NULL, group, label, actual)
            elif isinstance(value, str) and value == WILDCARD:
                script.add(AssertionKind.NOT_NULL, group, label, actual)
            else:
                script.add(AssertionKind.EQUALS, group, label, f"expected[{r}][{c}]", actual)
    return GeneratedVerification(script.render(), rows)


def run_verification(
    runtime: "ScriptRuntime",
    fail_fast: bool,
    description: str,
    sql: str,
    expected: Sequence[Any] | None,
    datasource: str | None = None,
) -> list[ValidationResult]:
    """
    Generate the script, run it as a fork of *runtime* and return its results.

    Blocks until the forked run completes. With fail_fast, the first
    mismatch raises AssertionFailure out of this call.
    """
    generated = generate(fail_fast, description, sql, expected, datasource)
    _log.debug("Generated verification script:\n%s", generated.script)
    forked = runtime.fork(generated.script, variables={"expected": generated.expected})
    start = len(forked.validations)
    forked.run()
    results = forked.validations[start:]
    failures = [r for r in results if not r.passed]
    if failures:
        _log.warning(
            "Verification '%s' recorded %d failure(s): %s",
            description,
            len(failures),
            "; ".join(f"[{f.group}] {f.message}" for f in failures),
        )
    return results
