from __future__ import annotations

import pytest

from expensehub.config import Settings
from expensehub.db import engine_options


def test_settings_defaults() -> None:
    settings = Settings()
    assert settings.app_name == "ExpenseHub"
    assert settings.database_url.startswith("postgresql+asyncpg://")
    assert settings.default_page_size <= settings.max_page_size


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("MAX_PAGE_SIZE", "25")
    settings = Settings()
    assert settings.log_level == "DEBUG"
    assert settings.max_page_size == 25


def test_engine_options_for_postgres() -> None:
    options = engine_options(Settings(database_url="postgresql+asyncpg://u:p@db/x", db_pool_size=3))
    assert options["pool_size"] == 3
    assert options["pool_pre_ping"] is True
    assert "connect_args" not in options


def test_engine_options_for_sqlite() -> None:
    options = engine_options(Settings(database_url="sqlite+aiosqlite:///./local.db"))
    assert options["connect_args"] == {"check_same_thread": False}
    assert "pool_size" not in options
