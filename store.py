"""Article storage and query engine.

This module holds the canonical article collection. It enforces url
uniqueness with merge-on-save, persists the collection as one JSON file
(or keeps it in memory only), answers filtered / paginated / aggregated
queries, and owns the staleness clock that triggers re-ingestion.

Persisted Format:
    A single JSON array of Article records with camelCase keys and
    ISO-8601 timestamps, rewritten wholesale (temp file + atomic rename)
    on every committed save.

Merge-on-save:
    The url is the only dedup key. Saving a url that already exists
    overwrites every field with the incoming values except id and
    created_at, which keep their first-write values.

Durability:
    Mutations are applied in memory first, then persisted. A failed write
    raises StorageError but leaves the in-memory change in place, and a
    crash between the two steps loses the latest write.

Concurrency:
    - One asyncio.Lock serializes structural mutation (insert/merge/evict);
      readers copy a snapshot under the same lock and filter outside it
    - A second lock makes refreshes single-flight: callers arriving while
      a cycle is running wait for it, then return without starting another
"""

import asyncio
import json
import logging
import os
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Awaitable, Callable

from pydantic import ValidationError

from models.article import Article, ArticlePage, StoreStats, DEFAULT_IMAGE_URL
from samples import sample_articles

logger = logging.getLogger(__name__)

# Query page size bounds
MAX_PAGE_LIMIT = 50

# Fields answerable by get_distinct, keyed by accepted name
_SCALAR_FIELDS = {
    "id": "id",
    "title": "title",
    "url": "url",
    "source": "source",
    "topic": "topic",
}
_SET_FIELDS = {
    "affectedStates": "affected_states",
    "affected_states": "affected_states",
    "keyEntities": "key_entities",
    "key_entities": "key_entities",
}


class InvalidArticle(Exception):
    """Article rejected at save (missing url)."""


class StorageError(Exception):
    """The collection could not be written to its backing file."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _published_key(article: Article) -> datetime:
    return article.published_at or datetime.min.replace(tzinfo=timezone.utc)


class ArticleStore:
    """URL-keyed article collection with JSON persistence.

    Provides storage and retrieval for the ingestion pipeline and the
    query service. The store is constructed explicitly and shared by
    reference; no caller gets the backing dict.

    Refresh:
        A refresher coroutine (normally Pipeline.run_cycle) is bound after
        construction. get_articles() and initialize() call refresh() first,
        which runs the refresher when the store is stale: never refreshed,
        empty, or last refreshed more than `ttl` ago.

    Example:
        >>> store = ArticleStore("data/articles.json", ttl=timedelta(minutes=15))
        >>> store.bind_refresher(pipeline.run_cycle)
        >>> await store.initialize()
        >>> page = await store.get_articles(topic="sports", page=1, limit=20)
    """

    path: Path | None

    def __init__(
        self,
        path: Path | str | None = None,
        ttl: timedelta = timedelta(minutes=15),
        seed_on_empty: bool = True,
        max_articles: int = 0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """Create an empty store.

        Args:
            path: JSON file backing the collection; None keeps it in memory
            ttl: Maximum age of the last refresh before reads trigger a new one
            seed_on_empty: Load the sample set when a refresh of an empty
                store produces nothing
            max_articles: Capacity; 0 means unlimited
            clock: Returns the current UTC time (injectable for tests)
        """
        self.path = Path(path) if path else None
        self.ttl = ttl
        self.seed_on_empty = seed_on_empty
        self.max_articles = max_articles
        self._clock = clock

        self._articles: dict[str, Article] = {}
        self._lock = asyncio.Lock()
        self._refresh_lock = asyncio.Lock()
        self._refresher: Callable[[], Awaitable[int]] | None = None
        self._refresh_generation = 0
        self._dirty = False
        self._initialized = False

        self.last_refreshed_at: datetime | None = None

    # === Lifecycle ===

    def bind_refresher(self, refresher: Callable[[], Awaitable[int]] | None) -> None:
        """Set the coroutine that runs one ingestion cycle.

        Args:
            refresher: Returns the number of net-new articles; None disables refresh
        """
        self._refresher = refresher

    async def initialize(self, refresh: bool = True) -> None:
        """Load persisted articles, then refresh if stale or empty.

        Safe to call more than once; only the first call loads the file.

        Args:
            refresh: Run the stale check (False when the caller schedules
                its own ingestion right after)
        """
        if not self._initialized:
            self._load()
            self._initialized = True
            logger.info("Store initialized | articles=%d path=%s", len(self._articles), self.path or "memory")
        if refresh:
            await self.refresh()

    def _load(self) -> None:
        """Read the backing file into memory.

        Missing file: start empty and create it. Unreadable or malformed
        file: log and start empty. Invalid records are skipped.
        """
        if self.path is None:
            return
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.info("No articles file found, starting empty | path=%s", self.path)
            self._dirty = True
            try:
                self.commit()
            except StorageError as e:
                logger.error("Cannot create articles file | error=%s", e)
            return
        except (OSError, ValueError) as e:
            logger.error("Failed to load articles | path=%s error=%s", self.path, e)
            return

        if not isinstance(raw, list):
            logger.error("Articles file is not a JSON array | path=%s", self.path)
            return

        skipped = 0
        for record in raw:
            try:
                article = Article.model_validate(record)
            except ValidationError as e:
                skipped += 1
                logger.warning("Skipping invalid stored record | error=%s", e.errors()[:1])
                continue
            if not article.url:
                skipped += 1
                continue
            self._articles[article.url] = article
        logger.debug("Articles loaded | count=%d skipped=%d", len(self._articles), skipped)

    def close(self) -> None:
        """Flush pending changes."""
        if self._dirty:
            self.commit()

    def __enter__(self) -> "ArticleStore":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()

    # === Persistence ===

    def commit(self) -> None:
        """Write the whole collection to the backing file.

        Raises:
            StorageError: If the file cannot be written
        """
        if self.path is None:
            self._dirty = False
            return
        payload = [article.to_json() for article in self._articles.values()]
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StorageError(f"Failed to save articles to {self.path}: {e}") from e
        self._dirty = False
        logger.debug("Articles persisted | count=%d path=%s", len(payload), self.path)

    # === Writes ===

    async def save(self, article: Article, commit: bool = True) -> Article:
        """Insert or merge an article by url.

        Args:
            article: Article to store; the instance itself is not modified
            commit: Persist immediately (False for batch operations)

        Returns:
            A copy of the stored record

        Raises:
            InvalidArticle: If the url is empty
            StorageError: If persisting fails (the in-memory change is kept)
        """
        stored, _ = await self.upsert(article, commit=commit)
        return stored

    async def upsert(self, article: Article, commit: bool = True) -> tuple[Article, bool]:
        """Like save(), also reporting whether the url was new.

        Returns:
            (copy of the stored article, True if a new url is now stored /
            False if merged or evicted straight away by the capacity limit)
        """
        if not article.url or not article.url.strip():
            raise InvalidArticle(f"Invalid article data: missing url (title='{article.title[:50]}')")

        now = self._clock()
        async with self._lock:
            existing = self._articles.get(article.url)
            if existing is not None:
                # Content is last-write-wins; identity and provenance are first-write-wins.
                # Missing image/publication time fall back to the stored values.
                updates = {
                    "id": existing.id,
                    "created_at": existing.created_at,
                    "image_url": article.image_url or existing.image_url or DEFAULT_IMAGE_URL,
                    "published_at": article.published_at or existing.published_at or now,
                }
            else:
                updates = {
                    "id": article.id or uuid.uuid4().hex,
                    "created_at": article.created_at or now,
                    "image_url": article.image_url or DEFAULT_IMAGE_URL,
                    "published_at": article.published_at or now,
                }
            stored = article.model_copy(update=updates, deep=True)

            self._articles[stored.url] = stored
            created = existing is None
            if created:
                self._evict_over_capacity()
                # An insert older than everything at capacity is evicted on arrival
                created = stored.url in self._articles
            self._dirty = True

            if commit:
                self.commit()

        logger.debug("Article %s | url=%s", "inserted" if created else "merged", stored.url)
        return stored.model_copy(deep=True), created

    def _evict_over_capacity(self) -> None:
        """Drop oldest-published articles beyond max_articles."""
        if self.max_articles <= 0:
            return
        while len(self._articles) > self.max_articles:
            oldest = min(self._articles.values(), key=_published_key)
            del self._articles[oldest.url]
            logger.debug("Article evicted | url=%s", oldest.url)

    async def seed_sample(self, commit: bool = True) -> list[Article]:
        """Save the fixed demonstration set (merging by url)."""
        saved = [await self.save(article, commit=False) for article in sample_articles()]
        if commit:
            async with self._lock:
                self.commit()
        logger.info("Sample articles saved | count=%d", len(saved))
        return saved

    async def seed_if_empty(self) -> int:
        """Seed the sample set only when the store holds no articles.

        Returns:
            Number of articles seeded
        """
        if self._articles:
            return 0
        saved = await self.seed_sample()
        logger.warning("Store was empty after refresh, seeded placeholder articles | count=%d", len(saved))
        return len(saved)

    # === Staleness ===

    def is_stale(self) -> bool:
        """True when never refreshed, empty, or last refresh older than ttl."""
        if self.last_refreshed_at is None or not self._articles:
            return True
        return self._clock() - self.last_refreshed_at > self.ttl

    async def refresh(self, force: bool = False) -> int:
        """Run one ingestion cycle if stale (or forced).

        Concurrent callers share a single cycle: whoever arrives while one
        is in flight waits for it and returns 0 without starting another.

        Args:
            force: Run even if the store is fresh (scheduled refresh)

        Returns:
            Number of net-new articles ingested by this call's cycle
        """
        if self._refresher is None:
            return 0
        if not force and not self.is_stale():
            return 0

        generation = self._refresh_generation
        async with self._refresh_lock:
            if generation != self._refresh_generation:
                logger.debug("Refresh already completed by another caller")
                return 0

            was_empty = not self._articles
            new = 0
            try:
                new = await self._refresher()
            except Exception as e:
                logger.error("Refresh failed | error=%s", e, exc_info=True)
            finally:
                self.last_refreshed_at = self._clock()
                self._refresh_generation += 1

            if new == 0 and was_empty and self.seed_on_empty:
                await self.seed_if_empty()
            return new

    # === Reads ===

    async def _snapshot(self) -> list[Article]:
        async with self._lock:
            return list(self._articles.values())

    async def find_by_url(self, url: str) -> Article | None:
        """Look up an article by its url (returns a copy)."""
        article = self._articles.get(url)
        return article.model_copy(deep=True) if article is not None else None

    async def count(self) -> int:
        return len(self._articles)

    def __contains__(self, url: object) -> bool:
        return url in self._articles

    async def get_articles(
        self,
        topic: str | None = None,
        source: str | None = None,
        state: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> ArticlePage:
        """Filtered, newest-first, paginated listing.

        Refreshes first when stale. Filters are case-insensitive: exact
        match on topic and source, membership on affected_states. Empty
        filter values are ignored.

        Args:
            topic: Topic filter
            source: Publisher filter
            state: Region filter
            page: 1-based page (values below 1 become 1)
            limit: Page size, clamped to [1, 50]

        Returns:
            ArticlePage; pages past the end have no articles
        """
        await self.refresh()

        page = max(1, page)
        limit = max(1, min(MAX_PAGE_LIMIT, limit))

        articles = await self._snapshot()
        if topic:
            wanted = topic.casefold()
            articles = [a for a in articles if a.topic and a.topic.casefold() == wanted]
        if source:
            wanted = source.casefold()
            articles = [a for a in articles if a.source and a.source.casefold() == wanted]
        if state:
            wanted = state.casefold()
            articles = [a for a in articles if any(s.casefold() == wanted for s in a.affected_states)]

        # sorted() is stable, so equal timestamps keep insertion order
        articles = sorted(articles, key=_published_key, reverse=True)
        result = ArticlePage.paginate(articles, page, limit)
        # Hand out copies; the stored records stay private to the store
        result.articles = [a.model_copy(deep=True) for a in result.articles]
        return result

    async def get_distinct(self, field: str) -> list[str]:
        """Distinct non-empty values of a field, sorted.

        Set-valued fields (affectedStates, keyEntities) return the union
        of their elements. Unknown field names return an empty list.
        """
        return _distinct(await self._snapshot(), field)

    async def get_stats(self) -> StoreStats:
        """Collection size, distinct topic/source/state counts and newest publication time.

        Every figure comes from the same snapshot.
        """
        articles = await self._snapshot()
        published = [a.published_at for a in articles if a.published_at]
        return StoreStats(
            total_articles=len(articles),
            topics=len(_distinct(articles, "topic")),
            sources=len(_distinct(articles, "source")),
            states=len(_distinct(articles, "affectedStates")),
            latest_article=max(published) if published else None,
        )


def _distinct(articles: list[Article], field: str) -> list[str]:
    values: set[str] = set()
    if field in _SCALAR_FIELDS:
        attr = _SCALAR_FIELDS[field]
        values = {getattr(a, attr) for a in articles if getattr(a, attr)}
    elif field in _SET_FIELDS:
        attr = _SET_FIELDS[field]
        values = {v for a in articles for v in getattr(a, attr) if v}
    else:
        logger.debug("Distinct requested for unknown field | field=%s", field)
    return sorted(values)
