import logging

import pytest

from relrepo import config
from relrepo.log import configure_logging


def test_defaults(monkeypatch):
    for var in ("RELREPO_DATABASE_URL", "DATABASE_URL", "RELREPO_ECHO_SQL", "LOG_LEVEL", "RELREPO_IN_CHUNK_SIZE"):
        monkeypatch.delenv(var, raising=False)
    config.refresh_settings_cache()
    settings = config.get_settings()
    assert settings.database_url == config.DEFAULT_DATABASE_URL
    assert settings.echo_sql is False
    assert settings.log_level == "INFO"
    assert settings.in_chunk_size == config.DEFAULT_IN_CHUNK_SIZE


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RELREPO_DATABASE_URL", "sqlite:///tmp.db")
    monkeypatch.setenv("DATABASE_URL", "postgresql://ignored")
    monkeypatch.setenv("RELREPO_ECHO_SQL", "yes")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("RELREPO_IN_CHUNK_SIZE", "25")
    config.refresh_settings_cache()
    settings = config.get_settings()
    assert settings.database_url == "sqlite:///tmp.db"
    assert settings.echo_sql is True
    assert settings.log_level == "DEBUG"
    assert settings.in_chunk_size == 25


def test_database_url_falls_back_to_generic_variable(monkeypatch):
    monkeypatch.delenv("RELREPO_DATABASE_URL", raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite:///other.db")
    config.refresh_settings_cache()
    assert config.get_settings().database_url == "sqlite:///other.db"


def test_settings_are_cached(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    config.refresh_settings_cache()
    first = config.get_settings()
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    assert config.get_settings() is first
    config.refresh_settings_cache()
    assert config.get_settings().log_level == "ERROR"


@pytest.mark.parametrize("raw", ["0", "-3", "many"])
def test_invalid_chunk_size(monkeypatch, raw):
    monkeypatch.setenv("RELREPO_IN_CHUNK_SIZE", raw)
    config.refresh_settings_cache()
    with pytest.raises(ValueError):
        config.get_settings()


@pytest.mark.parametrize(
    "raw, expected",
    [(None, False), ("", False), ("off", False), ("1", True), ("TRUE", True), ("maybe", False)],
)
def test_normalize_bool(raw, expected):
    assert config._normalize_bool(raw) is expected


def test_configure_logging_enables_sql_logger(monkeypatch):
    settings = config.Settings(
        database_url=config.DEFAULT_DATABASE_URL, echo_sql=True, log_level="DEBUG", in_chunk_size=10
    )
    sql_logger = logging.getLogger("sqlalchemy.engine")
    monkeypatch.setattr(sql_logger, "level", sql_logger.level)
    relrepo_logger = logging.getLogger("relrepo")
    monkeypatch.setattr(relrepo_logger, "level", relrepo_logger.level)
    configure_logging(settings)
    assert sql_logger.level == logging.INFO
    assert relrepo_logger.level == logging.DEBUG


def test_normalize_bool_keeps_default_for_unrecognised_words():
    assert config._normalize_bool("maybe", default=True) is True
    assert config._normalize_bool(None, default=True) is True
    assert config._normalize_bool(" Off ", default=True) is False
