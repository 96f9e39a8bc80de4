"""
SQL text templating with Jinja2.

Runs on the original statement before ``:name`` placeholders are compiled;
Jinja2 syntax (``{{ }}``, ``{% %}``) and placeholder syntax do not overlap.
Statements without Jinja2 markers are returned untouched.
"""

import hashlib
import threading
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any

from jinja2 import Environment, Template, TemplateError, TemplateSyntaxError, UndefinedError

from gluedb.core.errors import TemplateRenderError
from gluedb.engines.sql.filters import SQL_FILTERS, sql_finalize

_SQL_ENV: Environment | None = None
_env_lock = threading.Lock()

_CACHE_MAX_SIZE = 256
_template_cache: OrderedDict[str, Template] = OrderedDict()
_cache_lock = threading.Lock()

_MARKERS = ("{{", "{%")


def _get_sql_env() -> Environment:
    global _SQL_ENV
    if _SQL_ENV is None:
        with _env_lock:
            if _SQL_ENV is None:
                env = Environment(autoescape=False, finalize=sql_finalize, keep_trailing_newline=True)
                env.filters.update(SQL_FILTERS)
                _SQL_ENV = env
    return _SQL_ENV


def _compile_cached(env: Environment, source: str) -> Template:
    key = hashlib.md5(source.encode(), usedforsecurity=False).hexdigest()
    with _cache_lock:
        tpl = _template_cache.get(key)
        if tpl is not None:
            _template_cache.move_to_end(key)
            return tpl
    tpl = env.from_string(source)
    with _cache_lock:
        _template_cache[key] = tpl
        if len(_template_cache) > _CACHE_MAX_SIZE:
            _template_cache.popitem(last=False)
    return tpl


def has_template_markers(sql: str) -> bool:
    return any(m in sql for m in _MARKERS)


class SQLTemplateEngine:
    """Renders Jinja2 SQL templates against a variable scope."""

    def render(self, template: str, scope: Mapping[str, Any]) -> str:
        if not has_template_markers(template):
            return template
        params = {k: v for k, v in scope.items() if not k.startswith("_")}
        try:
            return _compile_cached(_get_sql_env(), template).render(**params)
        except TemplateSyntaxError as e:
            raise TemplateRenderError(f"SQL template syntax error: {e}. Template: {template[:500]}") from e
        except UndefinedError as e:
            raise TemplateRenderError(f"SQL template variable not found: {e}.") from e
        except TemplateError as e:
            raise TemplateRenderError(f"SQL template render error: {e}. Template: {template[:500]}") from e
