"""Configuration management for the news aggregation pipeline.

This module provides centralized configuration for all pipeline components.
All settings are loaded from environment variables with sensible defaults.

Environment Variables:
    Storage:
        DATA_PATH: JSON file holding the article collection
                   ('' or ':memory:' keeps articles in memory only)
        MAX_ARTICLES: Store capacity, oldest articles evicted (0 = unlimited)
        SEED_ON_EMPTY: Load sample articles when ingestion leaves the store empty

    Sources:
        SOURCES_FILE: JSON list of {name, feedUrl, topicHint} replacing the
                      built-in source list

    Pipeline Behavior:
        STALE_TTL_SECONDS: Max age of the last ingestion before a read refreshes
        POLL_INTERVAL_SECONDS: Delay between scheduled ingestion cycles
        FETCH_TIMEOUT: Per-feed request timeout in seconds
        MAX_WORKERS: Maximum concurrent feed fetches

    Queries:
        DEFAULT_PAGE_LIMIT: Page size when a caller gives none

    Logging:
        LOG_DIR: Directory for log files
        LOG_LEVEL: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_BACKUP_COUNT: Number of rotated log files to keep
        LOG_MAX_BYTES: Max log file size in bytes (0 = time-based rotation)
        LOG_FORMAT: Log format ('text' or 'json' for structured logging)
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from models.source import SourceDescriptor


def _env(key: str, default: str = "") -> str:
    """Get string environment variable with optional default.

    Args:
        key: Environment variable name
        default: Value to return if not set

    Returns:
        Environment variable value or default
    """
    return os.environ.get(key, default)


def _env_int(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name
        default: Value to return if not set

    Returns:
        Parsed integer or default value

    Raises:
        ValueError: If value is set but cannot be parsed as integer
    """
    val = os.environ.get(key)
    if not val:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"Invalid integer value for {key}: '{val}'")


def _env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable with default.

    Recognizes truthy values: '1', 'true', 'yes', 'on'
    Recognizes falsy values: '0', 'false', 'no', 'off'

    Args:
        key: Environment variable name
        default: Value to return if not set or unrecognized

    Returns:
        Parsed boolean or default value
    """
    val = os.environ.get(key, "").lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    return default


def _data_path(value: str) -> Path | None:
    if not value or value == ":memory:":
        return None
    return Path(value)


_SOURCES_ADAPTER = TypeAdapter(list[SourceDescriptor])


def load_sources(path: Path) -> list[SourceDescriptor]:
    """Load source descriptors from a JSON file.

    Args:
        path: File containing a JSON array of {name, feedUrl, topicHint}

    Returns:
        Parsed source list

    Raises:
        ValueError: If the file cannot be read or does not match the schema
    """
    try:
        return _SOURCES_ADAPTER.validate_python(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ValueError(f"Invalid sources file '{path}': {e}")


# Indian national dailies, one entry per section feed.
# topic_hint fixes the article topic only when it names a known topic.
DEFAULT_SOURCES = [
    # === Times of India ===
    SourceDescriptor(name="Times of India", feed_url="https://timesofindia.indiatimes.com/rssfeedstopstories.cms", topic_hint="top"),
    SourceDescriptor(name="Times of India", feed_url="https://timesofindia.indiatimes.com/rssfeeds/4719161.cms", topic_hint="india"),
    SourceDescriptor(name="Times of India", feed_url="https://timesofindia.indiatimes.com/rssfeeds/4719148.cms", topic_hint="business"),
    SourceDescriptor(name="Times of India", feed_url="https://timesofindia.indiatimes.com/rssfeeds/4719162.cms", topic_hint="sports"),

    # === The Hindu ===
    SourceDescriptor(name="The Hindu", feed_url="https://www.thehindu.com/news/feeder/default.rss", topic_hint="news"),
    SourceDescriptor(name="The Hindu", feed_url="https://www.thehindu.com/business/feeder/default.rss", topic_hint="business"),
    SourceDescriptor(name="The Hindu", feed_url="https://www.thehindu.com/sport/feeder/default.rss", topic_hint="sport"),

    # === Hindustan Times ===
    SourceDescriptor(name="Hindustan Times", feed_url="https://www.hindustantimes.com/feeds/rss/india-news/rssfeed.xml", topic_hint="india"),
    SourceDescriptor(name="Hindustan Times", feed_url="https://www.hindustantimes.com/feeds/rss/business/rssfeed.xml", topic_hint="business"),
    SourceDescriptor(name="Hindustan Times", feed_url="https://www.hindustantimes.com/feeds/rss/sports/rssfeed.xml", topic_hint="sports"),
]


@dataclass
class Config:
    """Application configuration loaded from environment variables.

    All settings can be overridden via environment variables. Use Config.load()
    to create an instance with values from the environment.

    Example:
        >>> config = Config.load()
        >>> if error := config.validate():
        ...     print(f"Config error: {error}")
    """

    # === Sources ===
    sources: list[SourceDescriptor] = field(default_factory=lambda: DEFAULT_SOURCES.copy())

    # === Storage ===
    data_path: Path | None = field(default_factory=lambda: Path("data/articles.json"))  # DATA_PATH
    max_articles: int = 0  # MAX_ARTICLES - Capacity (0 = unlimited)
    seed_on_empty: bool = True  # SEED_ON_EMPTY - Placeholder articles for an empty store

    # === Pipeline Behavior ===
    stale_ttl_seconds: int = 900  # STALE_TTL_SECONDS - Refresh on read after 15 minutes
    poll_interval_seconds: int = 10800  # POLL_INTERVAL_SECONDS - Scheduled run every 3 hours
    fetch_timeout: int = 30  # FETCH_TIMEOUT - Per-feed timeout (seconds)
    max_workers: int = 8  # MAX_WORKERS - Concurrent feed fetches

    # === Queries ===
    default_page_limit: int = 20  # DEFAULT_PAGE_LIMIT

    # === Output Directories ===
    log_dir: Path = field(default_factory=lambda: Path("log"))  # LOG_DIR

    # === Logging Configuration ===
    log_level: str = "INFO"  # LOG_LEVEL - DEBUG, INFO, WARNING, ERROR
    log_backup_count: int = 30  # LOG_BACKUP_COUNT - Number of rotated logs to keep
    log_max_bytes: int = 0  # LOG_MAX_BYTES - Max file size (0 = time-based rotation)
    log_format: str = "text"  # LOG_FORMAT - 'text' or 'json' for structured logging

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment variables."""
        sources_file = _env("SOURCES_FILE")
        sources = load_sources(Path(sources_file)) if sources_file else DEFAULT_SOURCES.copy()
        return cls(
            sources=sources,
            data_path=_data_path(_env("DATA_PATH", "data/articles.json")),
            max_articles=_env_int("MAX_ARTICLES", 0),
            seed_on_empty=_env_bool("SEED_ON_EMPTY", True),
            stale_ttl_seconds=_env_int("STALE_TTL_SECONDS", 900),
            poll_interval_seconds=_env_int("POLL_INTERVAL_SECONDS", 10800),
            fetch_timeout=_env_int("FETCH_TIMEOUT", 30),
            max_workers=_env_int("MAX_WORKERS", 8),
            default_page_limit=_env_int("DEFAULT_PAGE_LIMIT", 20),
            log_dir=Path(_env("LOG_DIR", "log")),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_backup_count=_env_int("LOG_BACKUP_COUNT", 30),
            log_max_bytes=_env_int("LOG_MAX_BYTES", 0),
            log_format=_env("LOG_FORMAT", "text").lower(),
        )

    def validate(self) -> str | None:
        """Validate configuration values.

        Checks:
            - At least one source is configured
            - Timing and worker values are positive
            - Page limit lies within the query bounds
            - Logging settings are recognized

        Returns:
            Error message string if invalid, None if valid.
        """
        if not self.sources:
            return "No feed sources configured"
        if self.stale_ttl_seconds <= 0:
            return "STALE_TTL_SECONDS must be positive"
        if self.poll_interval_seconds <= 0:
            return "POLL_INTERVAL_SECONDS must be positive"
        if self.fetch_timeout <= 0:
            return "FETCH_TIMEOUT must be positive"
        if self.max_workers <= 0:
            return "MAX_WORKERS must be positive"
        if self.max_articles < 0:
            return "MAX_ARTICLES must be non-negative"
        if not 1 <= self.default_page_limit <= 50:
            return "DEFAULT_PAGE_LIMIT must be between 1 and 50"
        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return f"Invalid LOG_LEVEL '{self.log_level}' - must be DEBUG, INFO, WARNING, ERROR, or CRITICAL"
        if self.log_format not in ("text", "json"):
            return f"Invalid LOG_FORMAT '{self.log_format}' - must be 'text' or 'json'"
        if self.log_backup_count < 0:
            return "LOG_BACKUP_COUNT must be non-negative"
        if self.log_max_bytes < 0:
            return "LOG_MAX_BYTES must be non-negative"
        return None
