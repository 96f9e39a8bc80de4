"""
Datasource registry, connection pool and DB-API helpers.

Drivers (sqlite3, psycopg, pymysql, trino) are picked from the datasource's
configured driver name.
"""

from .connect import connect, cursor_generated_keys, cursor_to_rows, execute, is_binding_error
from .registry import DatasourceRegistry, get_registry
from .source import PooledSource

__all__ = [
    "connect",
    "execute",
    "cursor_to_rows",
    "cursor_generated_keys",
    "is_binding_error",
    "PooledSource",
    "DatasourceRegistry",
    "get_registry",
]
