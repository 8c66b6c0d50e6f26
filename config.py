import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(env_var: str, default: str) -> bool:
    raw = os.environ.get(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


def _parse_int(env_var: str, default: str) -> int:
    raw = os.environ.get(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(f"Invalid integer for {env_var}: {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Runtime settings, read from the environment (and .env) at startup."""

    database_url: str
    log_level: str = "INFO"
    sql_echo: bool = False
    cors_origins: tuple[str, ...] = ("*",)
    host: str = "0.0.0.0"
    port: int = 3000


def load_settings() -> Settings:
    # 1. Load environment variables from .env file
    load_dotenv()

    # 2. Fail fast when the database is not configured
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL is not set. Please check your .env file.")

    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Invalid log level for LOG_LEVEL: {log_level!r}")

    origins = tuple(
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )

    return Settings(
        database_url=database_url,
        log_level=log_level,
        sql_echo=_parse_bool("SQL_ECHO", "false"),
        cors_origins=origins or ("*",),
        host=os.environ.get("HOST", "0.0.0.0"),
        port=_parse_int("PORT", "3000"),
    )


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
