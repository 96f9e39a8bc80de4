"""
Script engine (RestrictedPython) hosting the database operations.

Exports: ScriptRuntime, compile_script, build_restricted_globals, DATABASE_OPERATIONS.
"""

from .modules.database import DATABASE_OPERATIONS
from .runtime import ScriptRuntime, ScriptTimeoutError
from .sandbox import build_restricted_globals, compile_script

__all__ = [
    "ScriptRuntime",
    "ScriptTimeoutError",
    "DATABASE_OPERATIONS",
    "compile_script",
    "build_restricted_globals",
]
