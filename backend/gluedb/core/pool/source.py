"""
Connection pool for one datasource key.

Reuses connections to avoid open/close on every statement. Includes a
liveness ping on checkout for long-idle connections and max-age eviction.
Connections are autocommit, so nothing is rolled back on release.
"""

import logging
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

from gluedb.core.errors import ConfigurationError
from gluedb.models import DatasourceConfig, DatasourceKey, DriverEnum

from .connect import connect

_log = logging.getLogger(__name__)

_DEFAULT_POOL_SIZE = 10
_DEFAULT_MAX_AGE_SEC = 600.0  # 10 minutes

_PING_IDLE_THRESHOLD = 30.0  # only ping connections idle longer than this (seconds)


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float   # time.monotonic() when last returned to pool


class PooledSource:
    """Thread-safe pool of connections for one DatasourceKey."""

    def __init__(
        self,
        key: DatasourceKey,
        config: DatasourceConfig,
        *,
        pool_size: int = _DEFAULT_POOL_SIZE,
        max_age: float = _DEFAULT_MAX_AGE_SEC,
        connect_timeout: int = 10,
    ) -> None:
        try:
            self.driver = DriverEnum.resolve(config.driver)
        except ValueError as e:
            raise ConfigurationError(
                f"Datasource {key}: unsupported driver {config.driver!r}"
            ) from e
        if not config.url:
            raise ConfigurationError(f"Datasource {key}: url is required")
        self.key = key
        self.config = config
        self._idle: list[_PoolEntry] = []
        self._opened_at: dict[int, float] = {}
        self._lock = threading.Lock()
        self._pool_size = pool_size
        self._max_age = max_age
        self._connect_timeout = connect_timeout

    @property
    def marker(self) -> str:
        return self.driver.marker

    def get_connection(self) -> Any:
        """Get a healthy connection (from pool or freshly opened)."""
        now = time.monotonic()
        while True:
            entry = self._pop()
            if entry is None:
                break
            if self._is_expired(entry):
                self._discard(entry.conn)
                continue
            idle_sec = now - entry.last_used
            if idle_sec > _PING_IDLE_THRESHOLD and not self._is_alive(entry.conn):
                self._discard(entry.conn)
                continue
            return entry.conn

        conn = connect(self.config, timeout=self._connect_timeout)
        with self._lock:
            self._opened_at[id(conn)] = time.monotonic()
        _log.debug("Opened connection for datasource %s", self.key)
        return conn

    def release(self, conn: Any) -> None:
        """Return a connection to the pool (or close it if the pool is full)."""
        with self._lock:
            created_at = self._opened_at.get(id(conn), time.monotonic())
            if len(self._idle) < self._pool_size:
                self._idle.append(
                    _PoolEntry(conn=conn, created_at=created_at, last_used=time.monotonic())
                )
                return
        self._discard(conn)

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Acquire one connection for the block; released on every exit path."""
        conn = self.get_connection()
        try:
            yield conn
        finally:
            self.release(conn)

    def dispose(self) -> None:
        """Close every idle connection."""
        with self._lock:
            entries = self._idle
            self._idle = []
        for e in entries:
            self._discard(e.conn)

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {"idle_connections": len(self._idle), "open_connections": len(self._opened_at)}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _pop(self) -> _PoolEntry | None:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return None

    def _is_expired(self, entry: _PoolEntry) -> bool:
        return (time.monotonic() - entry.created_at) > self._max_age

    @staticmethod
    def _is_alive(conn: Any) -> bool:
        """Lightweight ping: attempt a no-op query to detect broken connections."""
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            cur.fetchall()
            cur.close()
            return True
        except Exception:
            return False

    def _discard(self, conn: Any) -> None:
        with self._lock:
            self._opened_at.pop(id(conn), None)
        try:
            conn.close()
        except Exception as e:
            _log.warning("Closing connection for datasource %s failed: %s", self.key, e)
