"""
RestrictedPython sandbox for scripts.

Allowed: safe builtins (dict, list, str, int, len, range, sorted, ...),
json, datetime/date/time/timedelta and the runtime's context objects
(database, log, env, validate_*/confirm_*, cell, row_size).

Blocked: open, exec, eval, __import__, compile, os, subprocess, etc.
"""

import builtins
import json
from datetime import date, datetime, time, timedelta
from typing import Any

from RestrictedPython import compile_restricted
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safe_builtins,
    safer_getattr,
)

_CONVENIENCE_BUILTINS = ("list", "dict", "set", "tuple", "len", "range", "min", "max", "sum", "abs", "sorted", "enumerate")


def _make_guard_globals() -> dict[str, Any]:
    """Guards required by RestrictedPython's rewritten bytecode."""
    return {
        "_getattr_": safer_getattr,
        "_getiter_": default_guarded_getiter,
        "_getitem_": default_guarded_getitem,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_write_": full_write_guard,
    }


def compile_script(script: str, filename: str = "<script>") -> Any:
    """Compile with RestrictedPython. Raises SyntaxError on failure."""
    code = compile_restricted(script, filename, "exec")
    if code is None:
        raise SyntaxError("RestrictedPython: compile failed")
    return code


def build_restricted_globals(context_dict: dict[str, Any]) -> dict[str, Any]:
    """Globals for exec(): safe builtins, guards, json/datetime, then *context_dict*."""
    safe = dict(safe_builtins)
    g: dict[str, Any] = {
        "__builtins__": safe,
        "__name__": "script",
        "json": json,
        "datetime": datetime,
        "date": date,
        "time": time,
        "timedelta": timedelta,
    }
    g.update(_make_guard_globals())
    for name in _CONVENIENCE_BUILTINS:
        obj = safe.get(name, getattr(builtins, name, None))
        if obj is not None:
            g[name] = obj
    g.update(context_dict)
    return g
