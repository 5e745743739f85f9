"""Ingestion pipeline orchestration.

This module coordinates one ingestion cycle across every configured source:

Pipeline Flow:
    1. FETCH: Concurrently fetch and parse all RSS/Atom feeds
    2. FILTER: Skip items whose body is empty after normalization
    3. NORMALIZE: Strip markup from title and body
    4. EXTRACT: Topic, entities, regions, sentiment, summary
    5. SAVE: Upsert into the article store (merge by url)
    6. COMMIT: Persist each source's batch

Failure Isolation:
    - A feed that cannot be fetched contributes zero items
    - An item without a url is logged and skipped
    - Any other error while processing a source is logged and the cycle
      continues with the next source
"""

import asyncio
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any

from config import Config
from extraction import MetadataExtractor, normalize
from feeds import fetch_all_sources
from models.article import Article
from models.source import RawItem, SourceDescriptor
from observability.logging import clear_context, set_run_context, source_context
from store import ArticleStore, InvalidArticle, StorageError

logger = logging.getLogger(__name__)


@dataclass
class PipelineStats:
    """Statistics from a single ingestion cycle.

    Attributes:
        sources: Sources attempted
        failed_sources: Sources whose processing raised
        fetched: Raw items parsed from all feeds
        skipped: Items with an empty body
        invalid: Items rejected by the store (missing url)
        new: Net-new articles
        updated: Existing articles merged
        errors: Count of errors at any stage
        duration: Total run time in seconds
    """

    sources: int = 0         # Sources attempted
    failed_sources: int = 0  # Sources that raised during processing
    fetched: int = 0         # Items from feeds
    skipped: int = 0         # Empty body
    invalid: int = 0         # Missing url
    new: int = 0             # Inserted
    updated: int = 0         # Merged
    errors: int = 0          # Errors encountered
    duration: float = 0.0    # Run time (seconds)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d["duration"] = round(d["duration"], 2)
        return d


class Pipeline:
    """Fetch, classify and store articles from every configured source.

    The pipeline writes through the store it is given; it does not own
    the store's lifecycle.

    Example:
        >>> store = ArticleStore(config.data_path)
        >>> pipeline = Pipeline(config, store)
        >>> store.bind_refresher(pipeline.run_cycle)
        >>> new = await pipeline.run_cycle()
    """

    def __init__(
        self,
        config: Config,
        store: ArticleStore,
        extractor: MetadataExtractor | None = None,
    ):
        """Initialize pipeline with its collaborators.

        Args:
            config: Application configuration (sources, timeouts, workers)
            store: Article store receiving classified articles
            extractor: Metadata extractor (default tables when omitted)
        """
        self.config = config
        self.store = store
        self.extractor = extractor or MetadataExtractor()

    def build_article(self, source: SourceDescriptor, item: RawItem) -> Article | None:
        """Normalize and classify one raw item.

        Returns:
            Article ready to save, or None if the body is empty
        """
        body = normalize(item.body_text)
        if not body:
            return None
        title = normalize(item.title)
        meta = self.extractor.extract(title, body)
        topic = self.extractor.resolve_topic(source.topic_hint) or meta.topic

        return Article(
            title=title,
            url=item.url,
            source=source.name,
            topic=topic,
            summary=meta.summary,
            sentiment_score=meta.sentiment_score,
            key_entities=meta.key_entities,
            affected_states=meta.affected_states,
            image_url=item.image_url,
            published_at=item.published_at,
        )

    async def _process_source(
        self,
        source: SourceDescriptor,
        items: list[RawItem],
        stats: PipelineStats,
    ) -> None:
        """Classify and save one source's items, then commit the batch."""
        new = updated = 0
        for item in items:
            article = self.build_article(source, item)
            if article is None:
                stats.skipped += 1
                logger.debug("Skipping item without content | url=%s", item.url)
                continue
            existed = article.url in self.store
            try:
                _, created = await self.store.upsert(article, commit=False)
            except InvalidArticle as e:
                stats.invalid += 1
                logger.warning("Invalid article skipped | source=%s error=%s", source.name, e)
                continue
            if created:
                new += 1
            elif existed:
                updated += 1

        stats.new += new
        stats.updated += updated

        try:
            self.store.commit()
        except StorageError as e:
            stats.errors += 1
            logger.error("Persist failed | source=%s error=%s", source.name, e)

        logger.info(
            "Source processed | source=%s topic_hint=%s items=%d new=%d updated=%d",
            source.name, source.topic_hint, len(items), new, updated,
        )

    async def run_once(self) -> PipelineStats:
        """Execute one complete ingestion cycle.

        Returns:
            PipelineStats with counts from each stage
        """
        run_id = uuid.uuid4().hex[:8]
        set_run_context(run_id)
        start = time.time()
        stats = PipelineStats(sources=len(self.config.sources))

        logger.info("Ingestion started | sources=%d", stats.sources)

        try:
            results = await fetch_all_sources(
                self.config.sources,
                timeout=self.config.fetch_timeout,
                max_concurrent=self.config.max_workers,
            )
            stats.fetched = sum(len(items) for _, items in results)

            for source, items in results:
                try:
                    with source_context(source.name):
                        await self._process_source(source, items, stats)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    stats.failed_sources += 1
                    stats.errors += 1
                    logger.error(
                        "Source failed | source=%s url=%s type=%s error=%s",
                        source.name, source.feed_url, type(e).__name__, e, exc_info=True,
                    )
        except asyncio.CancelledError:
            logger.info("Ingestion cancelled")
            raise
        except Exception as e:
            logger.error("Ingestion error | type=%s error=%s", type(e).__name__, e, exc_info=True)
            stats.errors += 1
        finally:
            stats.duration = time.time() - start
            logger.info(
                "Ingestion done | duration=%.1fs fetched=%d new=%d updated=%d skipped=%d invalid=%d errors=%d",
                stats.duration, stats.fetched, stats.new, stats.updated,
                stats.skipped, stats.invalid, stats.errors,
            )
            clear_context()

        return stats

    async def run_cycle(self) -> int:
        """Run one cycle and return the number of net-new articles."""
        stats = await self.run_once()
        return stats.new

    async def run_continuous(self) -> None:
        """Refresh the store on a fixed interval until cancelled.

        Goes through ArticleStore.refresh() so scheduled cycles never
        overlap with cycles triggered by stale reads.
        """
        run_count = 0
        total_new = 0

        logger.info("Starting continuous mode | interval=%ds", self.config.poll_interval_seconds)

        try:
            while True:
                run_count += 1
                try:
                    total_new += await self.store.refresh(force=True)
                except Exception as e:
                    logger.error("Run failed | run=%d error=%s", run_count, e, exc_info=True)

                logger.info("Run complete | run=%d total_new=%d", run_count, total_new)
                await asyncio.sleep(self.config.poll_interval_seconds)

        except asyncio.CancelledError:
            logger.info("Pipeline stopped | runs=%d total_new=%d", run_count, total_new)
            raise
