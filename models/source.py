"""Feed source configuration and raw feed item models.

SourceDescriptor:
    Static description of one RSS/Atom endpoint. Several descriptors may
    share a publisher name (one per section feed).

RawItem:
    One parsed feed entry before normalization and classification.
    body_text still carries the feed's markup.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.article import DEFAULT_IMAGE_URL


class SourceDescriptor(BaseModel):
    """A configured feed endpoint.

    Attributes:
        name: Publisher name stored on every article from this feed
        feed_url: RSS/Atom document URL
        topic_hint: Section label; overrides the classifier when it names a known topic

    Example:
        >>> SourceDescriptor(name="The Hindu", feed_url="https://www.thehindu.com/sport/feeder/default.rss",
        ...                  topic_hint="sport")
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str = Field(description="Publisher name")
    feed_url: str = Field(description="RSS/Atom feed URL")
    topic_hint: str | None = Field(default=None, description="Optional section/topic label")

    def __str__(self) -> str:
        return f"{self.name} ({self.topic_hint or '-'})"


class RawItem(BaseModel):
    """A feed entry as parsed from the document."""

    title: str = ""
    url: str = ""
    body_text: str = ""
    published_at: datetime | None = None
    image_url: str = DEFAULT_IMAGE_URL
