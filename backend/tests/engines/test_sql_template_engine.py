"""Unit tests for engines.sql.template_engine and filters."""

from datetime import date

import pytest

from gluedb.core.errors import GlueDatabaseError, TemplateRenderError
from gluedb.engines.sql import SQLTemplateEngine
from gluedb.engines.sql.filters import SqlSafe, in_list, sql_finalize, sql_int, sql_raw, sql_string


class TestSQLTemplateEngineRender:
    def test_plain_sql_untouched(self) -> None:
        sql = "select * from t where a = :a\n"
        assert SQLTemplateEngine().render(sql, {"a": 1}) == sql

    def test_placeholders_survive_rendering(self) -> None:
        out = SQLTemplateEngine().render("select * from {{ t | sql_raw }} where id = :id", {"t": "users"})
        assert out == "select * from users where id = :id"

    def test_if_block(self) -> None:
        t = "select 1{% if name %} where name = :name{% endif %}"
        assert SQLTemplateEngine().render(t, {"name": "a"}) == "select 1 where name = :name"
        assert SQLTemplateEngine().render(t, {}) == "select 1"

    def test_auto_escape(self) -> None:
        out = SQLTemplateEngine().render("select {{ v }}", {"v": "it's"})
        assert out == "select 'it''s'"

    def test_in_list(self) -> None:
        out = SQLTemplateEngine().render("where id in {{ ids }}", {"ids": [1, 2, 3]})
        assert out == "where id in (1, 2, 3)"

    def test_private_names_not_exposed(self) -> None:
        out = SQLTemplateEngine().render("{{ _hidden is defined }}", {"_hidden": 1})
        assert out == "FALSE"

    def test_syntax_error(self) -> None:
        with pytest.raises(TemplateRenderError, match="syntax error") as exc_info:
            SQLTemplateEngine().render("select {% if %}", {})
        assert isinstance(exc_info.value, GlueDatabaseError)

    def test_undefined_attribute(self) -> None:
        with pytest.raises(TemplateRenderError, match="variable not found"):
            SQLTemplateEngine().render("select {{ missing.column }}", {})


class TestFilters:
    def test_filters_return_safe(self) -> None:
        assert isinstance(sql_string("x"), SqlSafe)
        assert isinstance(sql_int(1), SqlSafe)
        assert isinstance(sql_raw("t"), SqlSafe)

    def test_sql_string(self) -> None:
        assert sql_string(None) == "NULL"
        assert sql_string("a'b") == "'a''b'"

    def test_sql_int(self) -> None:
        assert sql_int("42") == "42"
        assert sql_int("x") == "NULL"

    def test_in_list_empty(self) -> None:
        assert in_list([]) == "(SELECT 1 WHERE 1=0)"
        assert in_list(None) == "(SELECT 1 WHERE 1=0)"

    def test_in_list_mixed(self) -> None:
        assert in_list([1, "a", None, True]) == "(1, 'a', NULL, TRUE)"

    def test_finalize(self) -> None:
        assert sql_finalize(None) == "NULL"
        assert sql_finalize(False) == "FALSE"
        assert sql_finalize(2.5) == "2.5"
        assert sql_finalize(date(2024, 1, 2)) == "'2024-01-02'"
        assert sql_finalize(SqlSafe("raw")) == "raw"
