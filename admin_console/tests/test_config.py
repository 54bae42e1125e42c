import os
from pathlib import Path

import pytest

from admin_console.core import config, env_loader


@pytest.fixture(autouse=True)
def _no_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "load_env", lambda: None)
    for name in (
        "ADMIN_CONSOLE_DEBUG",
        "ADMIN_CONSOLE_API_URL",
        "ADMIN_CONSOLE_DEBOUNCE_SECONDS",
        "ADMIN_CONSOLE_REMOTE_TIMEOUT",
        "ADMIN_CONSOLE_CACHE_PATH",
        "ADMIN_CONSOLE_CACHE_KEY",
        "ADMIN_CONSOLE_CORS_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    loaded = config.load_settings()

    assert loaded.DEBOUNCE_SECONDS == 1.0
    assert loaded.REMOTE_TIMEOUT is None
    assert loaded.CACHE_KEY == "userMenu"
    assert loaded.DEBUG is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ADMIN_CONSOLE_DEBUG", "yes")
    monkeypatch.setenv("ADMIN_CONSOLE_API_URL", "https://console.example/")
    monkeypatch.setenv("ADMIN_CONSOLE_DEBOUNCE_SECONDS", "0.25")
    monkeypatch.setenv("ADMIN_CONSOLE_REMOTE_TIMEOUT", "5")
    monkeypatch.setenv("ADMIN_CONSOLE_CACHE_PATH", str(tmp_path / "nav.db"))
    monkeypatch.setenv("ADMIN_CONSOLE_CORS_ORIGINS", "https://a.example, https://b.example")

    loaded = config.load_settings()

    assert loaded.DEBUG is True
    assert loaded.API_URL == "https://console.example"
    assert loaded.DEBOUNCE_SECONDS == 0.25
    assert loaded.REMOTE_TIMEOUT == 5.0
    assert loaded.CACHE_PATH == tmp_path / "nav.db"
    assert loaded.CORS_ORIGINS == ("https://a.example", "https://b.example")


def test_invalid_numbers_fall_back_to_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ADMIN_CONSOLE_DEBOUNCE_SECONDS", "soon")
    monkeypatch.setenv("ADMIN_CONSOLE_REMOTE_TIMEOUT", "-3")

    loaded = config.load_settings()

    assert loaded.DEBOUNCE_SECONDS == 1.0
    assert loaded.REMOTE_TIMEOUT is None


def test_env_file_does_not_override_existing_variables(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# commentaire\nADMIN_CONSOLE_ENV_PROBE='navMenu'\nADMIN_CONSOLE_DEBUG=1\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("ADMIN_CONSOLE_DEBUG", "0")

    env_loader.load_env(env_file)

    assert os.environ.pop("ADMIN_CONSOLE_ENV_PROBE") == "navMenu"
    assert os.environ["ADMIN_CONSOLE_DEBUG"] == "0"
