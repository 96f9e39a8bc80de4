"""
Bind compiled parameter names to positional values from a variable scope.

- missing or None  -> None (SQL NULL)
- datetime / date  -> naive local datetime rebuilt from epoch milliseconds
- anything else    -> passed through, the driver does the type conversion

The temporal conversion is lossy on purpose: sub-millisecond precision and
any explicit UTC offset are dropped, only the instant in epoch millis is kept.
"""

from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any

from gluedb.core.errors import BindingError

_MISSING = object()


def to_timestamp(value: date) -> datetime:
    """Timestamp for *value* with millisecond precision (local time, no tzinfo)."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    value = value.replace(microsecond=value.microsecond // 1000 * 1000)
    return datetime.fromtimestamp(value.timestamp())


def bind_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return to_timestamp(value)
    return value


def bind_parameters(
    parameter_order: Sequence[str],
    scope: Mapping[str, Any],
    *,
    strict: bool = False,
) -> tuple[Any, ...]:
    """
    Values for each marker, in marker order.

    With strict=True a name absent from *scope* raises BindingError; an
    explicit None is always bound as NULL.
    """
    values: list[Any] = []
    for name in parameter_order:
        value = scope.get(name, _MISSING)
        if value is _MISSING:
            if strict:
                raise BindingError(
                    f"SQL parameter ':{name}' not found. Available variables: "
                    f"{sorted(k for k in scope if not k.startswith('_'))}."
                )
            value = None
        values.append(bind_value(value))
    return tuple(values)
