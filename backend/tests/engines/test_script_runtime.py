"""Tests for engines.script.runtime: database operations and verification from scripts."""

import signal
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gluedb.core.config import Settings, make_config_lookup
from gluedb.core.errors import AssertionFailure, ExecutionError
from gluedb.core.pool import DatasourceRegistry
from gluedb.engines.script import DATABASE_OPERATIONS, ScriptRuntime, ScriptTimeoutError
from tests.utils.datasource import ENVIRONMENT


class TestDatabaseOperations:
    def test_operation_table(self) -> None:
        assert set(DATABASE_OPERATIONS) == {
            "execute",
            "run_update",
            "run_select",
            "register_datasource",
            "expect_equals",
            "expect_equals_fatal",
        }

    def test_select_binds_seeded_variable(self, make_runtime) -> None:
        rt = make_runtime(
            "result = database.run_select('select id, name from users where id = :user_id')",
            user_id=1,
        )
        assert rt.run() == [[1, "Alice"]]

    def test_select_binds_script_variable(self, make_runtime) -> None:
        rt = make_runtime(
            "user_id = 3\n"
            "rows = database.run_select('select name from users where id = :user_id')\n"
            "result = rows[0][0]\n"
        )
        assert rt.run() == "Carol"

    def test_insert_via_execute(self, make_runtime) -> None:
        rt = make_runtime("result = database.execute('insert into users(name) values(:name)')", name="Dan")
        assert rt.run() == [[1, 4]]

    def test_run_update_with_unbound_name_writes_null(self, make_runtime) -> None:
        rt = make_runtime(
            "database.run_update('update users set deleted_at = :missing where id = 2')\n"
            "result = database.run_select('select deleted_at from users where id = 2')\n"
        )
        assert rt.run() == [[None]]

    def test_register_datasource(self, make_runtime, tmp_path: Path) -> None:
        side = tmp_path / "side.db"
        rt = make_runtime(
            "database.register_datasource('side', 'sqlite', path)\n"
            "database.run_update('create table t (v text)', 'side')\n"
            "database.run_update('insert into t (v) values (:v)', 'side')\n"
            "result = database.run_select('select v from t', 'side')\n",
            path=str(side),
            v="hello",
        )
        assert rt.run() == [["hello"]]
        assert side.exists()

    def test_execution_error_propagates(self, make_runtime) -> None:
        rt = make_runtime("database.run_select('select * from nowhere')")
        with pytest.raises(ExecutionError):
            rt.run()


class TestExpectEquals:
    def test_count_passes(self, make_runtime) -> None:
        rt = make_runtime("result = database.expect_equals('basic check', 'select count(*) from users', 3)")
        results = rt.run()
        assert results
        assert all(r.passed for r in results)
        assert rt.validations == results

    def test_count_mismatch_is_soft(self, make_runtime) -> None:
        rt = make_runtime(
            "checks = database.expect_equals('basic check', 'select count(*) from users', 4)\n"
            "result = 'finished'\n"
        )
        assert rt.run() == "finished"
        failures = [r for r in rt.validations if not r.passed]
        assert len(failures) == 1
        assert failures[0].group == "basic check row 0"
        assert failures[0].message == "Column 0 count(*)"
        assert failures[0].expected == 4
        assert failures[0].actual == 3

    def test_null_expected_passes_for_null_value(self, make_runtime) -> None:
        rt = make_runtime(
            "result = database.expect_equals('nullable check', 'select deleted_at from users where id=:user_id', None)",
            user_id=1,
        )
        assert all(r.passed for r in rt.run())

    def test_null_expected_fails_for_value(self, make_runtime) -> None:
        rt = make_runtime(
            "result = database.expect_equals('nullable check', 'select deleted_at from users where id=:user_id', None)",
            user_id=2,
        )
        failed = [r for r in rt.run() if not r.passed]
        assert [(r.group, r.message) for r in failed] == [("nullable check row 0", "Column 0 deleted_at")]

    def test_rows_mapping_and_wildcard(self, make_runtime) -> None:
        rt = make_runtime(
            "result = database.expect_equals(\n"
            "    'users',\n"
            "    'select id, name, deleted_at from users order by id',\n"
            "    [1, 'Alice', None],\n"
            "    {'id': 2, 'name': 'Bob', 'deleted_at': '*'},\n"
            "    [3, '*', None],\n"
            ")\n"
        )
        results = rt.run()
        assert all(r.passed for r in results)
        # not-null, size, then per row: size + 3 columns
        assert len(results) == 2 + 3 * 4

    def test_soft_collects_every_failure(self, make_runtime) -> None:
        rt = make_runtime(
            "result = database.expect_equals('users', 'select name from users order by id', 'X', 'Y')"
        )
        failed = [r for r in rt.run() if not r.passed]
        assert [r.message for r in failed] == ["Result size check", "Column 0 name", "Column 0 name"]

    def test_fatal_mismatch_raises(self, make_runtime) -> None:
        rt = make_runtime(
            "database.expect_equals_fatal('basic check', 'select count(*) from users', 99)\n"
            "result = 'unreachable'\n"
        )
        with pytest.raises(AssertionFailure) as exc_info:
            rt.run()
        assert exc_info.value.group == "basic check row 0"
        assert exc_info.value.label == "Column 0 count(*)"
        assert rt.scope.get("result") is None

    def test_fatal_stops_at_first_failure(self, make_runtime) -> None:
        rt = make_runtime("database.expect_equals_fatal('users', 'select name from users', 'X')")
        with pytest.raises(AssertionFailure):
            rt.run()
        assert [r.passed for r in rt.validations] == [True, False]

    def test_fatal_pass(self, make_runtime) -> None:
        rt = make_runtime("result = database.expect_equals_fatal('one', 'select name from users where id = 1', 'Alice')")
        assert all(r.passed for r in rt.run())

    def test_no_expected_rows(self, make_runtime) -> None:
        rt = make_runtime("result = database.expect_equals('none', 'select id from users where id < 0')")
        assert all(r.passed for r in rt.run())

    def test_null_result_checks_whole_result(self, make_runtime) -> None:
        rt = make_runtime("result = database.expect_equals('absent', 'select id from users where id < 0', null_result=True)")
        results = rt.run()
        assert [(r.group, r.message, r.passed) for r in results] == [("absent", "Result must be null", False)]
        assert results[0].actual == []

    def test_null_result_fatal_raises(self, make_runtime) -> None:
        rt = make_runtime("database.expect_equals_fatal('absent', 'select id from users', null_result=True)")
        with pytest.raises(AssertionFailure, match="Result must be null"):
            rt.run()

    def test_null_result_rejects_rows(self, make_runtime) -> None:
        rt = make_runtime("database.expect_equals('absent', 'select id from users', 1, null_result=True)")
        with pytest.raises(TypeError, match="null_result"):
            rt.run()


class TestFork:
    def test_fork_copies_variables_without_leaking_back(self, make_runtime) -> None:
        rt = make_runtime("x = 1")
        rt.run()
        child = rt.fork("x = x + 1\ny = 3\nresult = x")
        assert child.run() == 2
        assert rt.scope["x"] == 1
        assert "y" not in rt.scope

    def test_fork_shares_identity_and_validations(self, make_runtime) -> None:
        rt = make_runtime("")
        child = rt.fork("validate_equals('m', 1, 2, group='g')", variables={"expected": [[1]]})
        child.run()
        assert child.name == rt.name
        assert child.environment == rt.environment
        assert child.parent is rt
        assert rt.validations[0].group == "g"

    def test_variables_exclude_context(self, make_runtime) -> None:
        rt = make_runtime("a = 1", b=2)
        rt.run()
        assert rt.variables() == {"a": 1, "b": 2}


class TestScriptContext:
    def test_env_reads_whitelisted_config(self) -> None:
        lookup = make_config_lookup(
            {
                "feature.audit": "yes",
                "test.report.title": "Nightly",
                "report.title": "Default",
                "secret.token": "t0k",
                "database.password": "pw",
            }
        )
        settings = Settings(
            ENVIRONMENT=ENVIRONMENT,
            ENV_WHITELIST={"feature.audit", "report.title", "database.password"},
        )
        rt = ScriptRuntime(
            "result = [env.name, env.get('report.title'), env.get_bool('feature.audit'),"
            " env.get('secret.token', 'hidden'), env.get('database.password')]",
            registry=DatasourceRegistry(lookup),
            settings=settings,
        )
        assert rt.run() == [ENVIRONMENT, "Nightly", True, "hidden", None]

    def test_log_module(self, users_registry: DatasourceRegistry, test_settings: Settings) -> None:
        logger = MagicMock()
        rt = ScriptRuntime("log.info('hello %s', 1)", registry=users_registry, settings=test_settings, logger=logger)
        rt.run()
        logger.log.assert_called_once()

    def test_open_blocked(self, make_runtime) -> None:
        with pytest.raises(NameError, match="open"):
            make_runtime("result = open('/etc/passwd')").run()


@pytest.mark.skipif(not hasattr(signal, "SIGALRM"), reason="SIGALRM not available (e.g. Windows)")
def test_script_timeout(users_registry: DatasourceRegistry) -> None:
    settings = Settings(ENVIRONMENT=ENVIRONMENT, SCRIPT_EXEC_TIMEOUT=1)
    rt = ScriptRuntime("while True: pass", registry=users_registry, settings=settings)
    with pytest.raises(ScriptTimeoutError, match="timed out"):
        rt.run()
