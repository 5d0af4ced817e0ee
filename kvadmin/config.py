"""Environment-driven settings for kvadmin."""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    database_url: str
    replica_url: Optional[str] = None
    driver_name: str = "postgres"
    max_connections: int = 5
    connect_timeout: int = 10
    log_dir: str = "logs"


def driver_name_from_url(url: str) -> str:
    """Guess the host's driver name from a connection URL scheme."""
    scheme = url.split(":", 1)[0].lower()
    if scheme.startswith("postgres"):
        return "postgres"
    if scheme.startswith("sqlite"):
        return "sqlite3"
    if scheme.startswith("mysql"):
        return "mysql"
    return scheme


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_settings() -> Settings:
    """Read settings from the environment.

    KVADMIN_DATABASE_URL holds the admin credentials for the shared table;
    DATABASE_URL is accepted as a fallback.
    """
    database_url = os.environ.get("KVADMIN_DATABASE_URL") or os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("KVADMIN_DATABASE_URL or DATABASE_URL must be set")

    return Settings(
        database_url=database_url,
        replica_url=os.environ.get("KVADMIN_REPLICA_URL") or None,
        driver_name=os.environ.get("KVADMIN_DRIVER_NAME") or driver_name_from_url(database_url),
        max_connections=_int_env("KVADMIN_MAX_CONNECTIONS", 5),
        connect_timeout=_int_env("KVADMIN_CONNECT_TIMEOUT", 10),
        log_dir=os.environ.get("KVADMIN_LOG_DIR", "logs"),
    )
