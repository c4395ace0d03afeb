from __future__ import annotations

import logging

import pytest

from study_pacer.config import Settings, get_settings
from study_pacer.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_settings_read_prefixed_environment(monkeypatch) -> None:
    monkeypatch.setenv("STUDY_PACER_CHUNK_SIZE", "5")
    monkeypatch.setenv("STUDY_PACER_TIMEZONE", "Asia/Tokyo")
    monkeypatch.setenv("STUDY_PACER_PERSISTENCE_MODE", "database")

    settings = get_settings()
    assert settings.chunk_size == 5
    assert settings.timezone == "Asia/Tokyo"
    assert settings.persistence_mode == "database"
    assert get_settings() is settings


def test_invalid_settings_raise_runtime_error(monkeypatch) -> None:
    monkeypatch.setenv("STUDY_PACER_COMPLETION_ATTRIBUTION", "per_unit")
    with pytest.raises(RuntimeError, match="Invalid study pacer configuration"):
        get_settings()


def test_configure_logging_follows_settings() -> None:
    root = logging.getLogger()
    telemetry = logging.getLogger("study_pacer.telemetry")
    previous = root.level, telemetry.level
    try:
        configure_logging(
            Settings(STUDY_PACER_LOG_LEVEL="debug", STUDY_PACER_TELEMETRY_LOGGING=False)
        )
        assert root.level == logging.DEBUG
        assert telemetry.level == logging.WARNING
    finally:
        root.setLevel(previous[0])
        telemetry.setLevel(previous[1])


def test_configure_logging_reads_level_from_env_file(tmp_path, monkeypatch) -> None:
    env_file = tmp_path / "pacer.env"
    env_file.write_text("STUDY_PACER_LOG_LEVEL=WARNING\n", encoding="utf-8")
    monkeypatch.delenv("STUDY_PACER_LOG_LEVEL", raising=False)
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging(Settings(_env_file=env_file))
        assert root.level == logging.WARNING
    finally:
        root.setLevel(previous)
