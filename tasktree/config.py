"""Settings loaded from environment variables (+ optional .env).

One frozen ``Settings`` object is built at startup and handed to
``create_app``. Nothing here needs secrets at import time.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_OPERATIONAL_PREFIX = "ОПЕРАТИВНЫЕ"


class ConfigError(RuntimeError):
    """Raised when the application cannot start with the given settings."""


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str) -> str:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path | None) -> Path | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_log_level(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else default


@dataclass(frozen=True)
class Settings:
    db_path: Path
    password_hash: str
    secret_key: str = "change_me"
    host: str = "0.0.0.0"
    port: int = 3050
    token_max_age_days: int = 30
    cookie_secure: bool = False
    log_dir: Path | None = None
    log_level: int = logging.INFO
    operational_prefix: str = DEFAULT_OPERATIONAL_PREFIX
    testing: bool = False

    @property
    def token_max_age(self) -> int:
        """Token lifetime in seconds."""
        return self.token_max_age_days * 24 * 60 * 60

    @property
    def database_uri(self) -> str:
        return "sqlite:///" + str(self.db_path)

    def validate(self) -> None:
        if not self.password_hash.strip():
            raise ConfigError("PASSWORD_HASH is empty. Set it in .env")
        if self.token_max_age_days <= 0:
            raise ConfigError("TOKEN_MAX_AGE_DAYS must be positive")

    def flask_config(self) -> dict[str, object]:
        return {
            "SQLALCHEMY_DATABASE_URI": self.database_uri,
            "SQLALCHEMY_TRACK_MODIFICATIONS": False,
            "SECRET_KEY": self.secret_key,
            "SESSION_COOKIE_HTTPONLY": True,
            "SESSION_COOKIE_SAMESITE": "Lax",
            "SESSION_COOKIE_SECURE": self.cookie_secure,
            "TESTING": self.testing,
        }


def load_settings(*, dotenv: bool = True) -> Settings:
    """Build settings from the process environment."""
    if dotenv:
        load_dotenv(override=False)

    return Settings(
        db_path=_env_path("DB_PATH", Path("./data/tasks.db")) or Path("./data/tasks.db"),
        password_hash=_env("PASSWORD_HASH", ""),
        secret_key=_first_env("SECRET_KEY", "JWT_SECRET", default="change_me"),
        host=_env("HOST", "0.0.0.0"),
        port=_env_int("PORT", 3050),
        token_max_age_days=_env_int("TOKEN_MAX_AGE_DAYS", 30),
        cookie_secure=_env_bool("COOKIE_SECURE", False),
        log_dir=_env_path("LOG_DIR", None),
        log_level=_env_log_level("LOG_LEVEL", logging.INFO),
        operational_prefix=_env("OPERATIONAL_PREFIX", DEFAULT_OPERATIONAL_PREFIX).strip()
        or DEFAULT_OPERATIONAL_PREFIX,
    )
