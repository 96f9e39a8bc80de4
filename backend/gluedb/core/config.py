"""
Settings and datasource configuration lookup.

Settings come from GLUEDB_* environment variables (or a .env file).
Datasource keys such as ``database.main.url`` are resolved per execution
environment by the callable returned from make_config_lookup().
"""

import os
from collections.abc import Callable, Mapping
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict

ConfigLookup = Callable[[str, str], Any]

_ENV_PREFIX = "GLUEDB_"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=_ENV_PREFIX,
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Name of the active execution environment (datasources are keyed by it)
    ENVIRONMENT: str = "local"

    POOL_SIZE: int = 10
    POOL_MAX_AGE_SEC: float = 600.0
    CONNECT_TIMEOUT: int = 10

    # Raise BindingError when a placeholder has no variable in scope
    STRICT_BINDING: bool = False

    # Seconds; None or 0 disables the top-level script alarm
    SCRIPT_EXEC_TIMEOUT: int | None = None

    # Configuration keys scripts may read through env.get(); database.* is never readable
    ENV_WHITELIST: set[str] = set()


settings = Settings()  # type: ignore


def _env_var_name(key: str) -> str:
    return _ENV_PREFIX + key.upper().replace(".", "_")


def make_config_lookup(source: Mapping[str, Any] | None = None) -> ConfigLookup:
    """
    Build lookup(environment, key) -> value | None.

    - source given: ``"<environment>.<key>"`` wins over ``"<key>"``.
    - no source: GLUEDB_<ENVIRONMENT>_<KEY> wins over GLUEDB_<KEY>, with
      dots in the key turned into underscores.
    """

    def lookup(environment: str, key: str) -> Any:
        if source is not None:
            scoped = f"{environment}.{key}"
            if scoped in source:
                return source[scoped]
            return source.get(key)
        value = os.environ.get(_env_var_name(f"{environment}.{key}"))
        if value is None:
            value = os.environ.get(_env_var_name(key))
        return value

    return lookup
