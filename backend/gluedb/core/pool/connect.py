"""
DB connection helpers for configured datasources.

Uses sqlite3, psycopg (PostgreSQL), pymysql (MySQL) or trino (Trino) based on
the configured driver. Every connection is opened in autocommit mode.
"""

import sqlite3
from datetime import date, datetime
from typing import Any
from urllib.parse import unquote, urlparse

import psycopg
import pymysql
from trino.auth import BasicAuthentication
from trino.dbapi import connect as trino_connect

from gluedb.core.errors import ConfigurationError, DatasourceConnectionError
from gluedb.models import DatasourceConfig, DriverEnum

_SQLITE_URL_PREFIX = "sqlite:///"

# Declared column types read back as datetime on sqlite connections
_SQLITE_TIMESTAMP_TYPES = ("TIMESTAMP", "DATETIME")


def _convert_sqlite_timestamp(raw: bytes) -> datetime | str:
    text = raw.decode()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return text


sqlite3.register_adapter(datetime, lambda v: v.isoformat(" "))
sqlite3.register_adapter(date, lambda v: v.isoformat())
for _decltype in _SQLITE_TIMESTAMP_TYPES:
    sqlite3.register_converter(_decltype, _convert_sqlite_timestamp)


def _sqlite_path(url: str) -> str:
    # sqlite:///relative.db, sqlite:////abs/path.db, or a bare path
    path = url[len(_SQLITE_URL_PREFIX):] if url.startswith(_SQLITE_URL_PREFIX) else url
    return path or ":memory:"


def _parse_network_url(url: str, default_port: int) -> dict[str, Any]:
    parsed = urlparse(url)
    if not parsed.hostname:
        raise ConfigurationError(f"datasource url must provide a host: {url!r}")
    return {
        "host": parsed.hostname,
        "port": parsed.port or default_port,
        "path": [unquote(p) for p in parsed.path.split("/") if p],
        "username": unquote(parsed.username) if parsed.username else None,
        "password": unquote(parsed.password) if parsed.password else None,
    }


def connect(config: DatasourceConfig, *, timeout: int = 10) -> Any:
    """
    Open an autocommit connection for *config*.

    Credentials given explicitly in the config win over credentials embedded
    in the url. Driver connect failures raise DatasourceConnectionError.
    """
    try:
        driver = DriverEnum.resolve(config.driver)
    except ValueError as e:
        raise ConfigurationError(f"Unsupported driver: {config.driver!r}") from e

    try:
        if driver == DriverEnum.SQLITE:
            return sqlite3.connect(
                _sqlite_path(config.url),
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
                detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
            )

        if driver == DriverEnum.POSTGRES:
            kwargs: dict[str, Any] = {"autocommit": True, "connect_timeout": timeout}
            if config.username is not None:
                kwargs["user"] = config.username
            if config.password is not None:
                kwargs["password"] = config.password
            return psycopg.connect(config.url, **kwargs)

        if driver == DriverEnum.MYSQL:
            p = _parse_network_url(config.url, 3306)
            return pymysql.connect(
                host=p["host"],
                port=int(p["port"]),
                database=p["path"][0] if p["path"] else None,
                user=config.username or p["username"],
                password=config.password or p["password"] or "",
                autocommit=True,
                connect_timeout=timeout,
            )

        # trino://host:port/catalog/schema
        p = _parse_network_url(config.url, 8080)
        username = config.username or p["username"] or "gluedb"
        password = config.password or p["password"]
        use_ssl = urlparse(config.url).scheme in ("https", "trinos")
        return trino_connect(
            host=p["host"],
            port=int(p["port"]),
            user=username,
            auth=BasicAuthentication(username, password) if password else None,
            catalog=p["path"][0] if p["path"] else None,
            schema=p["path"][1] if len(p["path"]) > 1 else "default",
            source="gluedb",
            http_scheme="https" if use_ssl else "http",
            request_timeout=timeout,
        )
    except ConfigurationError:
        raise
    except Exception as e:
        raise DatasourceConnectionError(f"Database connection failed ({driver.value}): {e}") from e


def execute(conn: Any, sql: str, params: list | tuple = ()) -> Any:
    """
    Execute SQL with positional params and return the cursor.

    Params are always passed (possibly empty) so drivers with ``%s`` markers
    read ``%%`` back as a literal percent sign.
    """
    cur = conn.cursor()
    try:
        cur.execute(sql, tuple(params))
    except Exception:
        _close_quiet(cur)
        raise
    return cur


def cursor_to_rows(cursor: Any) -> list[list[Any]]:
    """Materialize every remaining cursor row as a list of column values (positional)."""
    desc = cursor.description
    if not desc:
        return []
    width = len(desc)
    return [[row[i] for i in range(width)] for row in cursor.fetchall()]


def cursor_generated_keys(cursor: Any, *, use_lastrowid: bool = True) -> list[int]:
    """
    Keys generated by the last DML statement on *cursor*.

    Rows returned by the statement (INSERT ... RETURNING id) win; otherwise
    the driver's lastrowid is used when it reports one. Some drivers keep
    lastrowid from an earlier insert on the connection, so callers pass
    use_lastrowid=False for statements that cannot insert.
    """
    if cursor.description:
        return [int(row[0]) for row in cursor.fetchall() if row and row[0] is not None]
    if not use_lastrowid:
        return []
    last = getattr(cursor, "lastrowid", None)
    if last:
        return [int(last)]
    return []


def _close_quiet(obj: Any) -> None:
    try:
        obj.close()
    except Exception:
        pass


def is_binding_error(exc: BaseException) -> bool:
    """True when the driver rejected a bound parameter value rather than the statement."""
    if isinstance(exc, TypeError):
        # pymysql escaping and psycopg adaptation of unsupported Python types
        return True
    if isinstance(exc, (sqlite3.InterfaceError, sqlite3.ProgrammingError)):
        msg = str(exc).lower()
        return "binding parameter" in msg or "bindings supplied" in msg
    if isinstance(exc, psycopg.ProgrammingError):
        return "cannot adapt" in str(exc).lower()
    if isinstance(exc, pymysql.err.ProgrammingError):
        return "can not be used as parameter" in str(exc).lower()
    return False
