from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional
from urllib.parse import quote_plus

from dotenv import load_dotenv


class ConfigError(Exception):
    pass


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    db_host: str = "localhost"
    db_port: int = 3306
    db_user: str = "root"
    db_password: str = ""
    db_name: str = "venue_hall"
    database_url_override: Optional[str] = None

    port: int = 5001
    layout_history_max: int = 200
    layout_history_retention_days: int = 90

    demo_admin_user: str = "admin"
    demo_admin_password: str = "admin123"

    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("*",))
    log_level: str = "INFO"
    log_format: str = "json"
    sql_echo: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        if environ is None:
            # A local .env never overrides what the process already has.
            load_dotenv(override=False)
            environ = os.environ
        env = environ
        origins = tuple(o.strip() for o in env.get("CORS_ORIGINS", "*").split(",") if o.strip()) or ("*",)
        return cls(
            db_host=env.get("DB_HOST", "localhost"),
            db_port=_int(env, "DB_PORT", 3306),
            db_user=env.get("DB_USER", "root"),
            db_password=env.get("DB_PASSWORD", ""),
            db_name=env.get("DB_NAME", "venue_hall"),
            database_url_override=env.get("DATABASE_URL") or None,
            port=_int(env, "PORT", 5001),
            layout_history_max=_int(env, "LAYOUT_HISTORY_MAX", 200),
            layout_history_retention_days=_int(env, "LAYOUT_HISTORY_RETENTION_DAYS", 90),
            demo_admin_user=env.get("DEMO_ADMIN_USER", "admin"),
            demo_admin_password=env.get("DEMO_ADMIN_PASSWORD", "admin123"),
            cors_origins=origins,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            log_format=env.get("LOG_FORMAT", "json").lower(),
            sql_echo=_flag(env, "SQL_ECHO"),
        )

    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)
        auth = f"{user}:{password}" if self.db_password else user
        return f"mysql+mysqlconnector://{auth}@{self.db_host}:{self.db_port}/{self.db_name}"
