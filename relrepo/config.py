"""Runtime settings sourced from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///:memory:"
DEFAULT_IN_CHUNK_SIZE = 500


@dataclass(frozen=True)
class Settings:
    database_url: str
    echo_sql: bool
    log_level: str
    in_chunk_size: int


_BOOL_WORDS = {
    "1": True, "true": True, "yes": True, "on": True,
    "": False, "0": False, "false": False, "no": False, "off": False,
}


def _normalize_bool(value: str | None, default: bool = False) -> bool:
    """Map an environment switch such as ``on`` or ``0``; unrecognised words give ``default``."""
    if value is None:
        return default
    return _BOOL_WORDS.get(value.strip().lower(), default)


def _positive_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise ValueError(f"Expected an integer, got {value!r}") from None
    if parsed <= 0:
        raise ValueError(f"Expected a positive integer, got {parsed}")
    return parsed


def _get_database_url() -> str:
    return os.getenv("RELREPO_DATABASE_URL") or os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return the cached settings read from the environment."""
    return Settings(
        database_url=_get_database_url(),
        echo_sql=_normalize_bool(os.getenv("RELREPO_ECHO_SQL")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        in_chunk_size=_positive_int(os.getenv("RELREPO_IN_CHUNK_SIZE"), DEFAULT_IN_CHUNK_SIZE),
    )


def refresh_settings_cache() -> None:
    """Invalidate cached settings (useful for tests)."""
    get_settings.cache_clear()
