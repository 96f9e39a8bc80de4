"""
Engines: SQL (named parameters), Script (RestrictedPython host), Verify (generated checks).
"""

from gluedb.engines.script import ScriptRuntime
from gluedb.engines.sql import QueryExecutor, SQLTemplateEngine, compile_named

__all__ = [
    "QueryExecutor",
    "SQLTemplateEngine",
    "compile_named",
    "ScriptRuntime",
]
