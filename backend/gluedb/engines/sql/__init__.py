"""
SQL engine: named-parameter compiler, value binder, Jinja2 templating, executor.
"""

from gluedb.engines.sql.binder import bind_parameters
from gluedb.engines.sql.executor import QueryExecutor
from gluedb.engines.sql.parser import PreparedQuery, compile_named, select_fields, statement_keyword
from gluedb.engines.sql.template_engine import SQLTemplateEngine

__all__ = [
    "PreparedQuery",
    "compile_named",
    "statement_keyword",
    "select_fields",
    "bind_parameters",
    "SQLTemplateEngine",
    "QueryExecutor",
]
