"""Tests for feed parsing and fetch error isolation."""

import asyncio
from datetime import datetime, timezone

import pytest

import feeds
from feeds import FetchError, fetch_all_sources, fetch_source, parse_feed_content
from models.article import DEFAULT_IMAGE_URL
from models.source import RawItem, SourceDescriptor

RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Test Feed</title>
    <link>https://example.com/</link>
    <description>Test</description>
    <item>
      <title>Farmers rally in Punjab</title>
      <link>https://example.com/a</link>
      <description>Farmers in Punjab celebrate new policy</description>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
      <media:content url="https://example.com/a.jpg" medium="image" />
    </item>
    <item>
      <title>Enclosure item</title>
      <link>https://example.com/b</link>
      <description>Plain body</description>
      <enclosure url="https://example.com/b.jpg" type="image/jpeg" length="100" />
    </item>
    <item>
      <title>Inline image</title>
      <link>https://example.com/c</link>
      <description><![CDATA[<p><img src="https://example.com/c.png" /> Body text</p>]]></description>
      <pubDate>2025-01-07T08:30:00Z</pubDate>
    </item>
    <item>
      <title>No image</title>
      <link>https://example.com/d</link>
      <description>Nothing to see</description>
    </item>
  </channel>
</rss>
"""

ATOM_FEED = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom Test</title>
  <id>urn:test</id>
  <updated>2025-01-06T10:00:00Z</updated>
  <entry>
    <title>Atom headline</title>
    <link href="https://example.com/atom-1" />
    <id>urn:atom-1</id>
    <updated>2025-01-06T10:00:00Z</updated>
    <content type="html">&lt;p&gt;Cricket team wins the match&lt;/p&gt;</content>
  </entry>
</feed>
"""

SOURCE = SourceDescriptor(name="Test Source", feed_url="https://example.com/rss", topic_hint="news")


class TestParseFeedContent:
    def test_rss_items(self) -> None:
        items = parse_feed_content(RSS_FEED)

        assert [item.url for item in items] == [
            "https://example.com/a",
            "https://example.com/b",
            "https://example.com/c",
            "https://example.com/d",
        ]
        assert items[0].title == "Farmers rally in Punjab"
        assert items[0].body_text == "Farmers in Punjab celebrate new policy"

    def test_rfc822_and_iso_dates(self) -> None:
        items = parse_feed_content(RSS_FEED)

        assert items[0].published_at == datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc)
        assert items[2].published_at == datetime(2025, 1, 7, 8, 30, tzinfo=timezone.utc)
        assert items[3].published_at is None

    def test_image_preference(self) -> None:
        items = parse_feed_content(RSS_FEED)

        assert items[0].image_url == "https://example.com/a.jpg"  # media:content
        assert items[1].image_url == "https://example.com/b.jpg"  # enclosure
        assert items[2].image_url == "https://example.com/c.png"  # inline <img>
        assert items[3].image_url == DEFAULT_IMAGE_URL

    def test_atom_entries(self) -> None:
        items = parse_feed_content(ATOM_FEED)

        assert len(items) == 1
        assert items[0].title == "Atom headline"
        assert items[0].url == "https://example.com/atom-1"
        assert "Cricket team wins the match" in items[0].body_text
        assert items[0].published_at == datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc)
        assert items[0].image_url == DEFAULT_IMAGE_URL

    def test_unparseable_payload(self) -> None:
        with pytest.raises(FetchError):
            parse_feed_content("this is not a feed <<<")


class TestFetchSource:
    def test_returns_items(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def fake_fetch(session, url, timeout, verify_ssl=True):
            assert url == SOURCE.feed_url
            return RSS_FEED

        monkeypatch.setattr(feeds, "_fetch_feed", fake_fetch)

        items = asyncio.run(fetch_source(None, SOURCE, timeout=5))
        assert len(items) == 4

    def test_network_error_yields_no_items(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def failing_fetch(session, url, timeout, verify_ssl=True):
            raise FetchError("request timed out after 5s")

        monkeypatch.setattr(feeds, "_fetch_feed", failing_fetch)

        assert asyncio.run(fetch_source(None, SOURCE, timeout=5)) == []

    def test_malformed_payload_yields_no_items(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def garbage_fetch(session, url, timeout, verify_ssl=True):
            return "this is not a feed <<<"

        monkeypatch.setattr(feeds, "_fetch_feed", garbage_fetch)

        assert asyncio.run(fetch_source(None, SOURCE, timeout=5)) == []


def test_fetch_all_sources_isolates_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    good = SourceDescriptor(name="Good", feed_url="https://good.example.com/rss")
    bad = SourceDescriptor(name="Bad", feed_url="https://bad.example.com/rss")

    async def fake_fetch_source(session, source, timeout=30):
        if source is bad:
            raise RuntimeError("boom")
        return [RawItem(title="t", url="https://good.example.com/1", body_text="body")]

    monkeypatch.setattr(feeds, "fetch_source", fake_fetch_source)

    results = asyncio.run(fetch_all_sources([bad, good], timeout=5))

    assert [source.name for source, _ in results] == ["Bad", "Good"]
    assert results[0][1] == []
    assert len(results[1][1]) == 1
