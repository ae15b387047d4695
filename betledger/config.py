"""
config.py — Runtime settings for the bet ledger.

Values come from the process environment; a ``.env`` file in the working
directory is loaded first (python-dotenv, same as the rest of the stack).

Only ``DATABASE_URL`` is required. Everything else has a default that matches
the production dice deployment.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

LOCAL_HOSTS = ("localhost", "127.0.0.1")


class LedgerSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    database_url: str = Field(..., min_length=1)
    default_game: str = Field(default="dice", min_length=1, max_length=64)
    pool_size: int = Field(default=10, ge=1)
    max_overflow: int = Field(default=5, ge=0)
    echo: bool = False

    # 1 SOL == 10**9 lamports
    display_scale: int = Field(default=10**9, ge=1)
    display_decimals: int = Field(default=4, ge=0, le=18)
    dashboard_window_hours: int = Field(default=24, ge=1)


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> LedgerSettings:
    """Build settings from ``.env`` + environment. Raises ValueError without DATABASE_URL."""
    load_dotenv()

    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        raise ValueError("A DATABASE_URL environment variable is required.")

    return LedgerSettings(
        database_url=database_url,
        default_game=os.environ.get("DEFAULT_GAME", "dice"),
        pool_size=int(os.environ.get("DB_POOL_SIZE", "10")),
        max_overflow=int(os.environ.get("DB_MAX_OVERFLOW", "5")),
        echo=_env_bool("DB_ECHO"),
        display_scale=int(os.environ.get("DISPLAY_SCALE", str(10**9))),
        display_decimals=int(os.environ.get("DISPLAY_DECIMALS", "4")),
        dashboard_window_hours=int(os.environ.get("DASHBOARD_WINDOW_HOURS", "24")),
    )


def normalize_database_url(url: str) -> str:
    """Point bare postgres URLs (Render/Heroku style) at the asyncpg driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


def is_local_url(url: str) -> bool:
    """True when the URL's host is a loopback name. Unparseable URLs are remote."""
    try:
        host = make_url(url).host
    except ArgumentError:
        return False
    return host in LOCAL_HOSTS
