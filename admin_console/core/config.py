"""Configuration statique de la console, lue depuis l'environnement."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from admin_console.core.env_loader import load_env

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

_TRUE_VALUES = {"1", "true", "yes", "on", "y", "t"}
_FALSE_VALUES = {"0", "false", "no", "off", "n", "f"}

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)


def _get_env_flag(name: str, default: bool = False) -> bool:
    """Retourne une valeur booléenne à partir d'une variable d'environnement."""

    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return default


def _get_env_float(name: str, default: float | None, *, minimum: float = 0.0) -> float | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        parsed = float(value.strip())
    except ValueError:
        return default
    if parsed < minimum:
        return default
    return parsed


def _get_env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip()
    return normalized or default


def _get_env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    if not raw:
        return default
    values = tuple(part.strip() for part in raw.split(",") if part.strip())
    return values or default


@dataclass(frozen=True)
class Settings:
    """Paramètres globaux lus depuis l'environnement."""

    DEBUG: bool = False
    API_URL: str = "http://localhost:8000"
    DEBOUNCE_SECONDS: float = 1.0
    REMOTE_TIMEOUT: float | None = None
    CACHE_PATH: Path = DATA_DIR / "local_cache.db"
    CACHE_KEY: str = "userMenu"
    SECRET_KEY: str = "change-me-please"
    CORS_ORIGINS: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)


def load_settings() -> Settings:
    """Construit les paramètres à partir de l'environnement courant."""

    load_env()
    return Settings(
        DEBUG=_get_env_flag("ADMIN_CONSOLE_DEBUG", default=False),
        API_URL=_get_env_str("ADMIN_CONSOLE_API_URL", "http://localhost:8000").rstrip("/"),
        DEBOUNCE_SECONDS=_get_env_float("ADMIN_CONSOLE_DEBOUNCE_SECONDS", 1.0) or 0.0,
        REMOTE_TIMEOUT=_get_env_float("ADMIN_CONSOLE_REMOTE_TIMEOUT", None, minimum=0.001),
        CACHE_PATH=Path(_get_env_str("ADMIN_CONSOLE_CACHE_PATH", str(DATA_DIR / "local_cache.db"))),
        CACHE_KEY=_get_env_str("ADMIN_CONSOLE_CACHE_KEY", "userMenu"),
        SECRET_KEY=_get_env_str("ADMIN_CONSOLE_SECRET_KEY", "change-me-please"),
        CORS_ORIGINS=_get_env_list("ADMIN_CONSOLE_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
    )


settings = load_settings()
