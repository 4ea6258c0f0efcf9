"""Runtime configuration and default paths."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

APP_NAME = "toneshare"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_MODEL = "claude-sonnet-4-5"


def default_db_path() -> Path:
    """Return a writable default database path for this user."""
    xdg_data_home = os.environ.get("XDG_DATA_HOME")
    if xdg_data_home:
        return Path(xdg_data_home) / APP_NAME / f"{APP_NAME}.db"
    return Path.home() / ".local" / "share" / APP_NAME / f"{APP_NAME}.db"


@dataclass
class Settings:
    db_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    server_url: str = f"http://{DEFAULT_HOST}:{DEFAULT_PORT}"
    model: str = DEFAULT_MODEL


def load_settings(env=None) -> Settings:
    """Build settings from the environment (``os.environ`` by default)."""
    env = os.environ if env is None else env
    db = env.get("TONESHARE_DB")
    host = env.get("TONESHARE_HOST", DEFAULT_HOST)
    try:
        port = int(env.get("PORT", DEFAULT_PORT))
    except ValueError:
        raise ValueError(f"PORT must be an integer, got {env.get('PORT')!r}") from None
    return Settings(
        db_path=Path(db).expanduser() if db else default_db_path(),
        host=host,
        port=port,
        server_url=env.get("TONESHARE_URL", f"http://{host}:{port}").rstrip("/"),
        model=env.get("TONESHARE_MODEL", DEFAULT_MODEL),
    )
