"""
Configuration helpers for the GPTMart backend.

Routers and services read a ``Settings`` object instead of fetching
``os.environ`` directly. Tests change the environment and call
``get_settings.cache_clear()``.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    host: str
    port: int
    admin_pin: str
    admin_pin_hash: str
    data_dir: Path
    static_dir: Path
    site_title: str
    session_ttl_seconds: int
    login_rate_limit: int
    login_rate_window_seconds: int
    submit_rate_limit: int
    submit_rate_window_seconds: int
    max_body_bytes: int
    cors_origins: tuple[str, ...]
    log_level: str

    @property
    def db_path(self) -> Path:
        return self.data_dir / "db.json"

    @property
    def leads_path(self) -> Path:
        return self.data_dir / "leads.json"


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _list(value: str | None) -> tuple[str, ...]:
        return tuple(x.strip().rstrip("/") for x in (value or "").split(",") if x.strip())

    data_dir = Path(os.getenv("DATA_DIR") or Path.cwd())
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int(os.getenv("PORT", "3000"), 3000),
        admin_pin=(os.getenv("ADMIN_PIN") or "4545").strip(),
        admin_pin_hash=(os.getenv("ADMIN_PIN_HASH") or "").strip(),
        data_dir=data_dir,
        static_dir=Path(os.getenv("STATIC_DIR") or data_dir),
        site_title=os.getenv("SITE_TITLE", "GPTMart"),
        session_ttl_seconds=_int(os.getenv("SESSION_TTL_SECONDS", "3600"), 3600),
        login_rate_limit=_int(os.getenv("LOGIN_RATE_LIMIT", "5"), 5),
        login_rate_window_seconds=_int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", "60"), 60),
        submit_rate_limit=_int(os.getenv("SUBMIT_RATE_LIMIT", "5"), 5),
        submit_rate_window_seconds=_int(os.getenv("SUBMIT_RATE_WINDOW_SECONDS", "300"), 300),
        max_body_bytes=_int(os.getenv("MAX_BODY_BYTES", "2500000"), 2_500_000),
        cors_origins=_list(os.getenv("CORS_ORIGINS")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
