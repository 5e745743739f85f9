"""Pydantic models for the news aggregation pipeline.

Article:
    Canonical classified news record, deduplicated by url.

ArticlePage / StoreStats:
    Query results returned by the article store.

SourceDescriptor:
    Configured RSS/Atom feed endpoint with publisher name and topic hint.

RawItem:
    Parsed feed entry before normalization and classification.

Example:
    >>> from models import Article, SourceDescriptor
    >>> source = SourceDescriptor(name="The Hindu", feed_url="https://...", topic_hint="news")
"""

from models.article import (
    Article,
    ArticlePage,
    StoreStats,
    DEFAULT_IMAGE_URL,
    GENERAL_TOPIC,
)
from models.source import SourceDescriptor, RawItem

__all__ = [
    "Article",
    "ArticlePage",
    "StoreStats",
    "DEFAULT_IMAGE_URL",
    "GENERAL_TOPIC",
    "SourceDescriptor",
    "RawItem",
]
