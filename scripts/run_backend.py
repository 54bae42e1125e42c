#!/usr/bin/env python3
"""Lance l'API de la console d'administration en mode développement."""
from __future__ import annotations

import argparse
import logging
import os
import subprocess
import sys
from pathlib import Path
from subprocess import TimeoutExpired

ROOT_DIR = Path(__file__).resolve().parents[1]
LOGGER = logging.getLogger(__name__)

logging.basicConfig(level=logging.INFO, format="%(message)s")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Lance l'API FastAPI de la console en mode développement",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port sur lequel exposer l'API (défaut: 8000)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Adresse d'écoute d'uvicorn (défaut: 127.0.0.1)",
    )
    parser.add_argument(
        "--skip-tests",
        action="store_true",
        help="Ne pas exécuter pytest avant le lancement",
    )
    return parser.parse_args()


def run_step(description: str, command: list[str], cwd: Path) -> None:
    LOGGER.info("➡️  %s : %s", description, " ".join(command))
    subprocess.run(command, cwd=str(cwd), check=True)


def main() -> int:
    args = parse_args()
    python_bin = sys.executable

    if not args.skip_tests:
        run_step("Exécution des tests", [python_bin, "-m", "pytest", "admin_console/tests"], ROOT_DIR)

    command = [
        python_bin,
        "-m",
        "uvicorn",
        "admin_console.app:app",
        "--reload",
        "--host",
        args.host,
        "--port",
        str(args.port),
    ]

    LOGGER.info("➡️  Lancement de l'API : %s", " ".join(command))
    process = subprocess.Popen(command, cwd=str(ROOT_DIR), env=os.environ.copy())
    try:
        return process.wait()
    except KeyboardInterrupt:
        LOGGER.info("⏹️  Arrêt de l'API...")
        process.terminate()
        try:
            return process.wait(timeout=10)
        except TimeoutExpired:
            process.kill()
            return process.wait()


if __name__ == "__main__":
    raise SystemExit(main())
