"""Environment configuration for the BI assistant."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from project root
ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env")

DEFAULT_MODEL = "gpt-4"
QUERY_MIN_LENGTH = 3
QUERY_MAX_LENGTH = 500

_TRUTHY = {"1", "true", "yes", "on"}


def _default_database_url() -> str:
    # project_root/data/bi_sales.sqlite
    return f"sqlite:///{ROOT / 'data' / 'bi_sales.sqlite'}"


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    model: str
    database_url: str
    cache_size: int
    reject_sql_comments: bool
    log_level: str

    @classmethod
    def from_env(cls) -> "Settings":
        cache_size = _env_int("BI_ASSISTANT_CACHE_SIZE", 0)
        if cache_size < 0:
            raise ValueError("BI_ASSISTANT_CACHE_SIZE must be >= 0 (0 = unbounded).")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("BI_ASSISTANT_MODEL") or DEFAULT_MODEL,
            database_url=os.getenv("BI_ASSISTANT_DATABASE_URL") or _default_database_url(),
            cache_size=cache_size,
            reject_sql_comments=_env_flag("BI_ASSISTANT_REJECT_SQL_COMMENTS"),
            log_level=(os.getenv("BI_ASSISTANT_LOG_LEVEL") or "INFO").upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def configure_logging(level: Optional[str] = None) -> None:
    """Root logging setup for scripts. The library never adds handlers itself."""
    logging.basicConfig(
        level=(level or get_settings().log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_query_text(text: Optional[str]) -> str:
    """Boundary check for a natural-language question (3-500 characters)."""
    q = (text or "").strip()
    if not q:
        raise ValueError("Query cannot be empty")
    if not (QUERY_MIN_LENGTH <= len(q) <= QUERY_MAX_LENGTH):
        raise ValueError(
            f"Query must be between {QUERY_MIN_LENGTH} and {QUERY_MAX_LENGTH} characters"
        )
    return q
