"""
Run named-parameter SQL against a registered datasource.

- select statements: list of rows, each a list of column values
- anything else:     one row [affected_count, generated_key, ...]
- execute():         dispatches on the first keyword and always returns rows

Each call acquires exactly one pooled connection and releases it on every
exit path. Connections are autocommit, so each statement commits on its own.
"""

import logging
from collections.abc import Mapping
from typing import Any

from gluedb.core.errors import BindingError, ExecutionError, GlueDatabaseError
from gluedb.core.pool import DatasourceRegistry, cursor_generated_keys, cursor_to_rows, execute, is_binding_error
from gluedb.engines.sql.binder import bind_parameters
from gluedb.engines.sql.parser import compile_named, statement_keyword
from gluedb.engines.sql.template_engine import SQLTemplateEngine

_log = logging.getLogger(__name__)

# Statements whose driver lastrowid is a generated key
_INSERT_KEYWORDS = frozenset({"insert", "replace", "upsert"})


class QueryExecutor:
    """
    execute(sql, datasource, scope) -> rows
    run_select(sql, datasource, scope) -> rows
    run_update(sql, datasource, scope) -> [count, *generated_keys]
    """

    def __init__(
        self,
        registry: DatasourceRegistry,
        environment: str,
        *,
        strict_binding: bool = False,
    ) -> None:
        self.registry = registry
        self.environment = environment
        self.strict_binding = strict_binding
        self._templates = SQLTemplateEngine()

    def execute(
        self,
        sql: str,
        datasource: str | None = None,
        scope: Mapping[str, Any] | None = None,
    ) -> list[Any]:
        """Route on the statement keyword; update results become a one-row matrix."""
        if statement_keyword(sql) == "select":
            return self.run_select(sql, datasource, scope)
        return [self.run_update(sql, datasource, scope)]

    def run_update(
        self,
        sql: str,
        datasource: str | None = None,
        scope: Mapping[str, Any] | None = None,
    ) -> list[Any]:
        inserts = statement_keyword(sql) in _INSERT_KEYWORDS

        def _update(cur: Any) -> list[Any]:
            # sqlite only counts RETURNING rows once they are fetched
            keys = cursor_generated_keys(cur, use_lastrowid=inserts)
            count = cur.rowcount if cur.rowcount is not None and cur.rowcount >= 0 else 0
            return [count, *keys] if count > 0 else [count]

        return self._run(sql, datasource, scope, _update)

    def run_select(
        self,
        sql: str,
        datasource: str | None = None,
        scope: Mapping[str, Any] | None = None,
    ) -> list[list[Any]]:
        return self._run(sql, datasource, scope, cursor_to_rows)

    def _run(self, sql: str, datasource: str | None, scope: Mapping[str, Any] | None, handle: Any) -> Any:
        _scope = scope or {}
        source = self.registry.get_source(self.environment, datasource)
        rendered = self._templates.render(sql, _scope)
        query = compile_named(rendered, source.marker)
        params = bind_parameters(query.parameter_order, _scope, strict=self.strict_binding)
        _log.debug("Prepared SQL on %s: %s params=%s", source.key, query.template, query.parameter_order)

        conn = source.get_connection()
        cur = None
        try:
            try:
                cur = execute(conn, query.template, params)
            except Exception as e:
                if is_binding_error(e):
                    _log.warning("Binding rejected on %s: %s. SQL: %s", source.key, e, query.template)
                    raise BindingError(f"Cannot bind parameters {query.parameter_order}: {e}") from e
                raise
            return handle(cur)
        except GlueDatabaseError:
            raise
        except Exception as e:
            _log.error("SQL execution failed on %s: %s. SQL: %s", source.key, e, query.template, exc_info=True)
            raise ExecutionError(f"SQL execution failed: {e}") from e
        finally:
            if cur is not None:
                try:
                    cur.close()
                except Exception:
                    pass
            source.release(conn)
