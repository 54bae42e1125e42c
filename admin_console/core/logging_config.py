"""Configuration des journaux : console, backend.log et navigation.log."""
from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any

from admin_console.core.config import settings

PROJECT_ROOT = Path(__file__).resolve().parents[2]
LOG_DIR = PROJECT_ROOT / "logs"

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _rotating_file(path: Path) -> dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": "DEBUG",
        "formatter": "verbose",
        "filename": str(path),
        "maxBytes": LOG_MAX_BYTES,
        "backupCount": LOG_BACKUP_COUNT,
        "encoding": "utf-8",
    }


def build_logging_config(log_dir: Path = LOG_DIR, *, debug: bool = settings.DEBUG) -> dict[str, Any]:
    """Retourne la configuration ``dictConfig`` de l'application.

    Le moteur de navigation écrit dans son propre fichier tout en propageant
    vers la racine (console et backend.log).
    """

    app_handlers = ["console", "backend_file"]
    server_logger = {"handlers": app_handlers, "level": "INFO", "propagate": False}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "verbose": {"format": LOG_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": "DEBUG" if debug else "INFO",
                "formatter": "verbose",
            },
            "backend_file": _rotating_file(log_dir / "backend.log"),
            "navigation_file": _rotating_file(log_dir / "navigation.log"),
        },
        "loggers": {
            "": {"handlers": app_handlers, "level": "DEBUG"},
            "uvicorn": dict(server_logger),
            "uvicorn.error": dict(server_logger),
            "uvicorn.access": dict(server_logger),
            "admin_console.navigation": {"handlers": ["navigation_file"], "level": "DEBUG"},
        },
    }


def configure_logging(log_dir: Path = LOG_DIR) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.captureWarnings(True)
    logging.config.dictConfig(build_logging_config(log_dir))


__all__ = ["build_logging_config", "configure_logging", "LOG_DIR"]
