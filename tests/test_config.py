"""Tests for environment-driven configuration."""

import json
from pathlib import Path

import pytest

from config import DEFAULT_SOURCES, Config, load_sources

ENV_KEYS = (
    "DATA_PATH", "MAX_ARTICLES", "SEED_ON_EMPTY", "SOURCES_FILE", "STALE_TTL_SECONDS",
    "POLL_INTERVAL_SECONDS", "FETCH_TIMEOUT", "MAX_WORKERS", "DEFAULT_PAGE_LIMIT",
    "LOG_DIR", "LOG_LEVEL", "LOG_BACKUP_COUNT", "LOG_MAX_BYTES", "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = Config.load()

    assert config.data_path == Path("data/articles.json")
    assert config.stale_ttl_seconds == 900
    assert config.poll_interval_seconds == 10800
    assert config.seed_on_empty is True
    assert len(config.sources) == len(DEFAULT_SOURCES)
    assert config.validate() is None


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATA_PATH", ":memory:")
    monkeypatch.setenv("MAX_ARTICLES", "500")
    monkeypatch.setenv("SEED_ON_EMPTY", "no")
    monkeypatch.setenv("STALE_TTL_SECONDS", "60")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FORMAT", "JSON")

    config = Config.load()

    assert config.data_path is None
    assert config.max_articles == 500
    assert config.seed_on_empty is False
    assert config.stale_ttl_seconds == 60
    assert config.log_level == "DEBUG"
    assert config.log_format == "json"


def test_invalid_integer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FETCH_TIMEOUT", "soon")

    with pytest.raises(ValueError, match="FETCH_TIMEOUT"):
        Config.load()


def test_sources_file(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "sources.json"
    path.write_text(json.dumps([
        {"name": "Local Daily", "feedUrl": "https://local.example.com/rss", "topicHint": "sport"},
        {"name": "Wire", "feedUrl": "https://wire.example.com/atom"},
    ]), encoding="utf-8")
    monkeypatch.setenv("SOURCES_FILE", str(path))

    config = Config.load()

    assert [s.name for s in config.sources] == ["Local Daily", "Wire"]
    assert config.sources[0].topic_hint == "sport"
    assert config.sources[1].topic_hint is None


def test_bad_sources_file(tmp_path) -> None:
    path = tmp_path / "sources.json"
    path.write_text(json.dumps([{"name": "Missing url"}]), encoding="utf-8")

    with pytest.raises(ValueError):
        load_sources(path)

    with pytest.raises(ValueError):
        load_sources(tmp_path / "absent.json")


@pytest.mark.parametrize("overrides, message", [
    ({"sources": []}, "No feed sources"),
    ({"stale_ttl_seconds": 0}, "STALE_TTL_SECONDS"),
    ({"fetch_timeout": -1}, "FETCH_TIMEOUT"),
    ({"max_articles": -5}, "MAX_ARTICLES"),
    ({"default_page_limit": 51}, "DEFAULT_PAGE_LIMIT"),
    ({"log_level": "LOUD"}, "LOG_LEVEL"),
    ({"log_format": "xml"}, "LOG_FORMAT"),
])
def test_validate(overrides: dict, message: str) -> None:
    assert message in Config(**overrides).validate()
