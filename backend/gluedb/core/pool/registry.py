"""
Datasource registry: (environment, name) -> PooledSource, created lazily.

A source is built from configuration the first time its key is requested
and then shared for the lifetime of the process.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any

from gluedb.core.config import ConfigLookup, make_config_lookup, settings
from gluedb.core.errors import ConfigurationError
from gluedb.models import DatasourceConfig, DatasourceKey

from .source import PooledSource

_log = logging.getLogger(__name__)

SourceFactory = Callable[[DatasourceKey, DatasourceConfig], PooledSource]


def _config_key(name: str | None, field: str) -> str:
    return f"database.{field}" if name is None else f"database.{name}.{field}"


class DatasourceRegistry:
    """Owns every PooledSource; safe for concurrent first use of a key."""

    def __init__(
        self,
        config_lookup: ConfigLookup | None = None,
        *,
        source_factory: SourceFactory | None = None,
    ) -> None:
        self._lookup = config_lookup or make_config_lookup()
        self._factory = source_factory or _default_factory
        self._sources: dict[DatasourceKey, PooledSource] = {}
        self._lock = threading.Lock()

    @property
    def config_lookup(self) -> ConfigLookup:
        return self._lookup

    def get_source(self, environment: str, name: str | None = None) -> PooledSource:
        """Return the source for (environment, name), building it on first use."""
        key = DatasourceKey(environment, name)
        source = self._sources.get(key)
        if source is not None:
            return source
        with self._lock:
            source = self._sources.get(key)
            if source is None:
                source = self._factory(key, self.resolve_config(environment, name))
                self._sources[key] = source
                _log.info("Created datasource %s (%s)", key, source.config.driver)
            return source

    def register_source(
        self,
        environment: str,
        name: str | None,
        driver: str,
        url: str,
        username: str | None = None,
        password: str | None = None,
    ) -> PooledSource:
        """Publish an explicitly configured source; no-op when the key is already populated."""
        key = DatasourceKey(environment, name)
        source = self._sources.get(key)
        if source is not None:
            return source
        with self._lock:
            source = self._sources.get(key)
            if source is None:
                config = DatasourceConfig(
                    driver=driver, url=url, username=username, password=password
                )
                source = self._factory(key, config)
                self._sources[key] = source
                _log.info("Registered datasource %s (%s)", key, driver)
            return source

    def resolve_config(self, environment: str, name: str | None) -> DatasourceConfig:
        """Read the datasource settings for *name* from the configuration lookup."""

        def get(field: str) -> Any:
            return self._lookup(environment, _config_key(name, field))

        try:
            driver = get("driver")
            url = get("url") or get("jdbcUrl")
            username = get("username")
            password = get("password")
        except Exception as e:
            raise ConfigurationError(
                f"Datasource {DatasourceKey(environment, name)}: configuration lookup failed: {e}"
            ) from e
        if not driver:
            raise ConfigurationError(f"Missing configuration: {_config_key(name, 'driver')}")
        if not url:
            raise ConfigurationError(f"Missing configuration: {_config_key(name, 'url')}")
        return DatasourceConfig(
            driver=str(driver),
            url=str(url),
            username=None if username is None else str(username),
            password=None if password is None else str(password),
        )

    def dispose(self) -> None:
        """Close the idle connections of every published source."""
        with self._lock:
            sources = list(self._sources.values())
        for source in sources:
            source.dispose()

    def __contains__(self, key: object) -> bool:
        return key in self._sources

    def __len__(self) -> int:
        return len(self._sources)


def _default_factory(key: DatasourceKey, config: DatasourceConfig) -> PooledSource:
    return PooledSource(
        key,
        config,
        pool_size=settings.POOL_SIZE,
        max_age=settings.POOL_MAX_AGE_SEC,
        connect_timeout=settings.CONNECT_TIMEOUT,
    )


_registry: DatasourceRegistry | None = None
_registry_lock = threading.Lock()


def get_registry() -> DatasourceRegistry:
    """Return the singleton DatasourceRegistry (thread-safe double-checked locking)."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = DatasourceRegistry()
    return _registry
