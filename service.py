"""Query service: the API surface consumed by a route layer or the CLI.

This module wires the store and the ingestion pipeline together and
exposes the read/seed operations as JSON-ready dicts:

    articles(topic?, source?, state?, page=1, limit=20)
        -> {articles, total, page, totalPages}
    distinct(field) / topics() / sources() / states()
        -> sorted list of strings
    stats()
        -> {totalArticles, topics, sources, states, latestArticle}
    seed_sample()
        -> {message, articles}

Error Contract:
    Query methods never raise. On an internal failure they log the error
    and return their default shape plus an "error" key.

Lifecycle:
    service = NewsService.from_config(config)   # construct
    await service.start()                       # load + refresh if stale
    ...                                         # serve
    service.close()                             # flush
"""

import logging
from datetime import timedelta
from typing import Any

from config import Config
from pipeline import Pipeline
from store import ArticleStore

logger = logging.getLogger(__name__)


class NewsService:
    """Store + pipeline with a failure-tolerant query facade.

    Args:
        config: Application configuration
        store: Article store (shared with the pipeline)
        pipeline: Ingestion pipeline writing into `store`
        auto_refresh: Bind the pipeline as the store's refresher so stale
            reads trigger ingestion; False serves persisted data only
    """

    def __init__(
        self,
        config: Config,
        store: ArticleStore,
        pipeline: Pipeline,
        auto_refresh: bool = True,
    ):
        self.config = config
        self.store = store
        self.pipeline = pipeline
        if auto_refresh:
            store.bind_refresher(pipeline.run_cycle)

    @classmethod
    def from_config(cls, config: Config, auto_refresh: bool = True) -> "NewsService":
        """Construct store and pipeline from configuration."""
        store = ArticleStore(
            config.data_path,
            ttl=timedelta(seconds=config.stale_ttl_seconds),
            seed_on_empty=config.seed_on_empty,
            max_articles=config.max_articles,
        )
        pipeline = Pipeline(config, store)
        return cls(config, store, pipeline, auto_refresh=auto_refresh)

    async def start(self, refresh: bool = True) -> None:
        await self.store.initialize(refresh=refresh)

    def close(self) -> None:
        self.store.close()

    async def ingest(self) -> int:
        """Run an ingestion cycle now (shares the store's refresh lock)."""
        return await self.store.refresh(force=True)

    async def run_scheduler(self) -> None:
        """Periodic ingestion until cancelled."""
        await self.pipeline.run_continuous()

    # === Queries ===

    async def articles(
        self,
        topic: str | None = None,
        source: str | None = None,
        state: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Filtered, paginated article listing."""
        if limit is None:
            limit = self.config.default_page_limit
        try:
            result = await self.store.get_articles(
                topic=topic, source=source, state=state, page=page, limit=limit,
            )
            return result.to_json()
        except Exception as e:
            logger.error("Error fetching articles | error=%s", e, exc_info=True)
            return {"articles": [], "total": 0, "page": page, "totalPages": 0, "error": str(e)}

    async def distinct(self, field: str) -> list[str] | dict[str, Any]:
        """Distinct values of a field; unknown fields give an empty list."""
        try:
            return await self.store.get_distinct(field)
        except Exception as e:
            logger.error("Error fetching distinct values | field=%s error=%s", field, e, exc_info=True)
            return {"values": [], "error": str(e)}

    async def topics(self) -> list[str] | dict[str, Any]:
        return await self.distinct("topic")

    async def sources(self) -> list[str] | dict[str, Any]:
        return await self.distinct("source")

    async def states(self) -> list[str] | dict[str, Any]:
        return await self.distinct("affectedStates")

    async def stats(self) -> dict[str, Any]:
        """Collection statistics."""
        try:
            result = await self.store.get_stats()
            return result.to_json()
        except Exception as e:
            logger.error("Error fetching stats | error=%s", e, exc_info=True)
            return {
                "totalArticles": 0,
                "topics": 0,
                "sources": 0,
                "states": 0,
                "latestArticle": None,
                "error": str(e),
            }

    async def seed_sample(self) -> dict[str, Any]:
        """Load the demonstration article set."""
        try:
            saved = await self.store.seed_sample()
        except Exception as e:
            logger.error("Error adding sample articles | error=%s", e, exc_info=True)
            return {"message": "Failed to add sample articles", "articles": [], "error": str(e)}
        return {
            "message": f"Added {len(saved)} sample articles",
            "articles": [article.to_json() for article in saved],
        }
