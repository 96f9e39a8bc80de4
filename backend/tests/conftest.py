from collections.abc import Iterator
from pathlib import Path

import pytest

from gluedb.core.config import Settings
from gluedb.core.pool import DatasourceRegistry
from gluedb.engines.script import ScriptRuntime
from tests.utils.datasource import ENVIRONMENT, seed_users, sqlite_registry


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "gluedb.db"


@pytest.fixture()
def registry(db_path: Path) -> Iterator[DatasourceRegistry]:
    reg = sqlite_registry(db_path)
    yield reg
    reg.dispose()


@pytest.fixture()
def users_registry(registry: DatasourceRegistry) -> DatasourceRegistry:
    """Default datasource with users Alice (1), Bob (2), Carol (3); Bob is deleted."""
    seed_users(registry, ["Alice", "Bob", "Carol"], deleted={2: "2024-01-01"})
    return registry


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(ENVIRONMENT=ENVIRONMENT, SCRIPT_EXEC_TIMEOUT=None, STRICT_BINDING=False)


@pytest.fixture()
def make_runtime(users_registry: DatasourceRegistry, test_settings: Settings):
    def _make(script: str, **variables) -> ScriptRuntime:
        return ScriptRuntime(
            script,
            name="test-script",
            registry=users_registry,
            settings=test_settings,
            variables=variables,
        )

    return _make
