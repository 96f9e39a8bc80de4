"""
Env module for scripts: name, get, get_bool.

Reads go through the datasource configuration lookup for the script's
environment. Only whitelisted keys are visible and ``database.*`` keys
(driver, url, credentials) never are.
"""

from types import SimpleNamespace
from typing import Any

from gluedb.core.config import ConfigLookup

_HIDDEN_PREFIX = "database."


def make_env_module(environment: str, lookup: ConfigLookup, whitelist: set[str] | frozenset[str]) -> Any:
    readable = frozenset(k for k in whitelist if not k.startswith(_HIDDEN_PREFIX))

    def get(key: str, default: Any = None) -> Any:
        if key not in readable:
            return default
        value = lookup(environment, key)
        return default if value is None else value

    def get_bool(key: str, default: bool = False) -> bool:
        value = get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("true", "1", "yes", "on")

    return SimpleNamespace(name=environment, get=get, get_bool=get_bool)
