"""
gluedb: named-parameter SQL execution and result verification for sandboxed scripts.
"""

from gluedb.core.pool import DatasourceRegistry, PooledSource, get_registry
from gluedb.engines.script import ScriptRuntime
from gluedb.engines.sql import QueryExecutor, compile_named

__all__ = [
    "DatasourceRegistry",
    "PooledSource",
    "get_registry",
    "QueryExecutor",
    "compile_named",
    "ScriptRuntime",
]
