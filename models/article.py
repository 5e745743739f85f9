"""Article data model for classified news items.

This module defines the canonical Article record held by the store and
returned by every query. Articles are built by the ingestion pipeline
from RSS items and persisted as a JSON array.

Serialization:
    Attributes are snake_case in Python and camelCase on the wire
    (sentimentScore, keyEntities, affectedStates, ...), so the persisted
    file and the query responses share one shape.

Invariants enforced here:
    - sentiment_score is clamped to [-1.0, 1.0]
    - key_entities / affected_states hold no duplicates or empty strings
    - timestamps are timezone-aware (naive values are taken as UTC)
    - instances are frozen; changes go through model_copy(update=...)

Identity (url uniqueness, id and created_at assignment) is the store's job.
"""

from datetime import datetime, timezone
from math import ceil

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Used whenever a feed entry carries no usable image
DEFAULT_IMAGE_URL = "https://via.placeholder.com/400x300?text=No+Image+Available"

# Catch-all topic for text that matches no keyword table entry
GENERAL_TOPIC = "general"


class Article(BaseModel):
    """A classified news article.

    Attributes:
        id: Opaque identifier, assigned by the store on first save
        title: Headline (normalized text)
        url: Article link, the deduplication key
        source: Publisher name
        topic: Topic name from the keyword table, or "general"
        summary: First sentences of the body, bounded length
        sentiment_score: Lexicon score in [-1.0, 1.0]
        key_entities: Title-cased distinct tokens, sorted
        affected_states: Gazetteer regions mentioned in the text
        image_url: Image link, placeholder when the feed has none
        published_at: Publication time (UTC), save time when unknown
        created_at: First ingestion time (UTC), kept across merges

    Example:
        >>> article = Article(title="Cricket World Cup", url="https://example.com/cricket")
        >>> article.model_dump(by_alias=True)["sentimentScore"]
        0.0
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str | None = Field(default=None, description="Opaque unique identifier")
    title: str = Field(default="", description="Article headline")
    url: str = Field(default="", description="Canonical article URL (dedup key)")
    source: str = Field(default="", description="Publisher name")
    topic: str = Field(default=GENERAL_TOPIC, description="Topic name or 'general'")
    summary: str = Field(default="", description="Bounded-length summary")
    sentiment_score: float = Field(default=0.0, description="Sentiment in [-1.0, 1.0]")
    key_entities: list[str] = Field(default_factory=list, description="Distinct key terms")
    affected_states: list[str] = Field(default_factory=list, description="Mentioned regions")
    image_url: str | None = Field(default=None, description="Image URL or placeholder")
    published_at: datetime | None = Field(default=None, description="Publication time (UTC)")
    created_at: datetime | None = Field(default=None, description="First ingestion time (UTC)")

    @field_validator("sentiment_score")
    @classmethod
    def _clamp_sentiment(cls, v: float) -> float:
        return max(-1.0, min(1.0, v))

    @field_validator("key_entities", "affected_states")
    @classmethod
    def _distinct_non_empty(cls, v: list[str]) -> list[str]:
        # Keep first occurrence order; the extractor decides the ordering
        return list(dict.fromkeys(s for s in v if s and s.strip()))

    @field_validator("published_at", "created_at")
    @classmethod
    def _ensure_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_json(self) -> dict:
        """Serialize to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    def __str__(self) -> str:
        """Human-readable representation for logging."""
        return f"Article({self.url[:60]}, '{self.title[:50]}')"


class ArticlePage(BaseModel):
    """One page of a filtered, sorted article listing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    articles: list[Article] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    total_pages: int = 0

    @classmethod
    def paginate(cls, articles: list[Article], page: int, limit: int) -> "ArticlePage":
        """Slice an already filtered and sorted list.

        Args:
            articles: Full filtered, sorted result set
            page: 1-based page number
            limit: Page size (must be positive)

        Returns:
            ArticlePage; pages past the end carry an empty article list
        """
        total = len(articles)
        start = (page - 1) * limit
        return cls(
            articles=articles[start:start + limit],
            total=total,
            page=page,
            total_pages=ceil(total / limit) if total else 0,
        )

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class StoreStats(BaseModel):
    """Aggregate counts over the stored collection."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_articles: int = 0
    topics: int = 0
    sources: int = 0
    states: int = 0
    latest_article: datetime | None = None

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
