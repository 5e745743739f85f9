"""Tests for the ingestion pipeline with fetching stubbed out."""

import asyncio
from datetime import datetime, timezone

import pytest

import pipeline as pipeline_module
from config import Config
from models.source import RawItem, SourceDescriptor
from pipeline import Pipeline
from store import ArticleStore

FARM_SOURCE = SourceDescriptor(name="Times of India", feed_url="https://example.com/india.rss", topic_hint="india")
SPORT_SOURCE = SourceDescriptor(name="The Hindu", feed_url="https://example.com/sport.rss", topic_hint="Sport")
BROKEN_SOURCE = SourceDescriptor(name="Broken", feed_url="https://example.com/broken.rss")

FARM_ITEM = RawItem(
    title="New Agricultural Policy",
    url="https://example.com/farm-policy",
    body_text="<p>Farmers in Punjab celebrate new policy</p>",
    published_at=datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc),
)


def stub_fetch(monkeypatch: pytest.MonkeyPatch, results: list) -> None:
    async def fake_fetch_all_sources(sources, timeout=30, max_concurrent=8):
        return results

    monkeypatch.setattr(pipeline_module, "fetch_all_sources", fake_fetch_all_sources)


def make_pipeline(sources: list[SourceDescriptor]) -> Pipeline:
    config = Config(sources=sources, data_path=None)
    return Pipeline(config, ArticleStore(None, seed_on_empty=False))


class TestBuildArticle:
    def test_classifies_item(self) -> None:
        pipe = make_pipeline([FARM_SOURCE])

        article = pipe.build_article(FARM_SOURCE, FARM_ITEM)

        assert article.source == "Times of India"
        assert article.topic == "agriculture"  # "india" is not a known topic
        assert article.affected_states == ["Punjab"]
        assert {"Farmers", "Policy"} <= set(article.key_entities)
        assert article.summary == "Farmers in Punjab celebrate new policy."
        assert article.published_at == FARM_ITEM.published_at

    def test_known_topic_hint_overrides(self) -> None:
        pipe = make_pipeline([SPORT_SOURCE])

        article = pipe.build_article(SPORT_SOURCE, FARM_ITEM)

        assert article.topic == "sports"

    def test_empty_body_skipped(self) -> None:
        pipe = make_pipeline([FARM_SOURCE])
        item = RawItem(title="Photo gallery", url="https://example.com/gallery", body_text="<img src='x.jpg'/>")

        assert pipe.build_article(FARM_SOURCE, item) is None


class TestRunOnce:
    def test_end_to_end(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stub_fetch(monkeypatch, [(FARM_SOURCE, [FARM_ITEM])])
        pipe = make_pipeline([FARM_SOURCE])

        stats = asyncio.run(pipe.run_once())

        assert stats.fetched == 1
        assert stats.new == 1
        assert stats.errors == 0
        stored = asyncio.run(pipe.store.find_by_url("https://example.com/farm-policy"))
        assert stored.topic == "agriculture"
        assert "Punjab" in stored.affected_states

    def test_second_run_merges(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stub_fetch(monkeypatch, [(FARM_SOURCE, [FARM_ITEM])])
        pipe = make_pipeline([FARM_SOURCE])

        async def scenario():
            await pipe.run_once()
            return await pipe.run_once()

        stats = asyncio.run(scenario())

        assert stats.new == 0
        assert stats.updated == 1
        assert asyncio.run(pipe.store.count()) == 1

    def test_item_evicted_on_arrival_counts_as_neither(self, monkeypatch: pytest.MonkeyPatch) -> None:
        old_item = RawItem(
            title="Old Cricket Report",
            url="https://example.com/old-cricket",
            body_text="Cricket team wins",
            published_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        stub_fetch(monkeypatch, [(FARM_SOURCE, [FARM_ITEM, old_item])])
        pipe = Pipeline(
            Config(sources=[FARM_SOURCE], data_path=None),
            ArticleStore(None, max_articles=1, seed_on_empty=False),
        )

        stats = asyncio.run(pipe.run_once())

        assert stats.new == 1
        assert stats.updated == 0
        assert asyncio.run(pipe.store.count()) == 1

    def test_skips_empty_and_invalid_items(self, monkeypatch: pytest.MonkeyPatch) -> None:
        items = [
            FARM_ITEM,
            RawItem(title="Empty", url="https://example.com/empty", body_text="   "),
            RawItem(title="No link", url="", body_text="Cricket team wins"),
        ]
        stub_fetch(monkeypatch, [(FARM_SOURCE, items)])
        pipe = make_pipeline([FARM_SOURCE])

        stats = asyncio.run(pipe.run_once())

        assert stats.new == 1
        assert stats.skipped == 1
        assert stats.invalid == 1

    def test_failing_source_isolated(self, monkeypatch: pytest.MonkeyPatch) -> None:
        broken_item = RawItem(title="x", url="https://example.com/x", body_text="body")
        stub_fetch(monkeypatch, [(BROKEN_SOURCE, [broken_item]), (FARM_SOURCE, [FARM_ITEM])])
        pipe = make_pipeline([BROKEN_SOURCE, FARM_SOURCE])
        real_build = pipe.build_article

        def build_article(source, item):
            if source is BROKEN_SOURCE:
                raise RuntimeError("extractor exploded")
            return real_build(source, item)

        monkeypatch.setattr(pipe, "build_article", build_article)

        stats = asyncio.run(pipe.run_once())

        assert stats.failed_sources == 1
        assert stats.errors == 1
        assert stats.new == 1

    def test_fetch_failure_counted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def exploding_fetch(sources, timeout=30, max_concurrent=8):
            raise RuntimeError("session could not be created")

        monkeypatch.setattr(pipeline_module, "fetch_all_sources", exploding_fetch)
        pipe = make_pipeline([FARM_SOURCE])

        stats = asyncio.run(pipe.run_once())

        assert stats.errors == 1
        assert stats.new == 0

    def test_stats_to_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stub_fetch(monkeypatch, [(FARM_SOURCE, [FARM_ITEM])])
        pipe = make_pipeline([FARM_SOURCE])

        data = asyncio.run(pipe.run_once()).to_dict()

        assert data["sources"] == 1
        assert data["new"] == 1
        assert isinstance(data["duration"], float)


def test_run_cycle_drives_store_refresh(monkeypatch: pytest.MonkeyPatch) -> None:
    stub_fetch(monkeypatch, [(FARM_SOURCE, [FARM_ITEM])])
    pipe = make_pipeline([FARM_SOURCE])
    pipe.store.bind_refresher(pipe.run_cycle)

    page = asyncio.run(pipe.store.get_articles(topic="Agriculture"))

    assert page.total == 1
    assert page.articles[0].url == "https://example.com/farm-policy"
