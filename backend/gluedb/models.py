"""
Datasource models: DriverEnum, DatasourceKey, DatasourceConfig.
"""

from enum import Enum
from typing import Literal, NamedTuple

from pydantic import BaseModel, ConfigDict


class DriverEnum(str, Enum):
    """Supported database drivers (sqlite, postgres, mysql, trino)."""

    SQLITE = "sqlite"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    TRINO = "trino"

    @classmethod
    def resolve(cls, value: "str | DriverEnum") -> "DriverEnum":
        """Accept the enum value or a common alias (sqlite3, postgresql, psycopg, pymysql)."""
        if isinstance(value, DriverEnum):
            return value
        key = value.strip().lower()
        return cls(_DRIVER_ALIASES.get(key, key))

    @property
    def marker(self) -> str:
        """Positional parameter marker of the DB-API driver."""
        if self in (DriverEnum.POSTGRES, DriverEnum.MYSQL):
            return "%s"
        return "?"


_DRIVER_ALIASES = {
    "sqlite3": "sqlite",
    "postgresql": "postgres",
    "psycopg": "postgres",
    "pymysql": "mysql",
}


class DatasourceKey(NamedTuple):
    environment: str
    name: str | None  # None = default datasource

    def __str__(self) -> str:
        return f"{self.environment}.{self.name or '<default>'}"


class DatasourceConfig(BaseModel):
    """Connection settings of one datasource; never mutated after pool creation."""

    model_config = ConfigDict(frozen=True)

    driver: str
    url: str
    username: str | None = None
    password: str | None = None
    auto_commit: Literal[True] = True

    def __repr__(self) -> str:
        return f"DatasourceConfig(driver={self.driver!r}, url={self.url!r}, username={self.username!r})"
