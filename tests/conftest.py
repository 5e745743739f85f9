"""Shared fixtures for store, pipeline and service tests."""

from datetime import datetime, timedelta, timezone

import pytest

from models.article import Article

BASE_TIME = datetime(2025, 1, 6, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_article(url: str, minutes: int = 0, **fields) -> Article:
    """Article published `minutes` after BASE_TIME."""
    fields.setdefault("title", f"Article {url}")
    fields.setdefault("source", "Test Source")
    fields.setdefault("topic", "general")
    return Article(url=url, published_at=BASE_TIME + timedelta(minutes=minutes), **fields)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
