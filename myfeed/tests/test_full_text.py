"""
Tests for the three-tier full-text policy.
"""

import json
from dataclasses import replace

import pytest

from myfeed.full_text import (
    ExtractionFailedError,
    ExtractionTooShortError,
    FullTextResolver,
    FullTextResult,
    FullTextSource,
    estimate_reading_time,
)
from myfeed.proxies import proxy_url

LINK = "https://news.example.com/story"
LONG_TEXT = "Readable sentence from the article body. " * 12  # ~500 chars


def article_page(body: str) -> str:
    return f"<html><body><article><p>{body}</p></article></body></html>"


class TestStoredContent:
    """Tier 1 uses stored content without touching the network."""

    @pytest.mark.asyncio
    async def test_long_stored_content_skips_proxies(self, resolver, fake_client):
        stored = "x" * 400
        result = await resolver.resolve(LINK, stored)
        assert result.source == FullTextSource.RSS
        assert result.content == stored
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_stored_content_is_normalized(self, resolver):
        stored = "word   \n\n" * 60
        result = await resolver.resolve(LINK, stored)
        assert result.source == FullTextSource.RSS
        assert "\n" not in result.content
        assert "  " not in result.content


class TestLiveExtraction:
    """Tier 2 races the extraction strategies."""

    @pytest.mark.asyncio
    async def test_metadata_api(self, resolver, fake_client, pipeline):
        fake_client.add(
            proxy_url(pipeline.microlink_url, LINK),
            json.dumps({"status": "success", "data": {"content": LONG_TEXT}}),
            content_type="application/json",
        )
        result = await resolver.resolve(LINK, None)
        assert result.source == FullTextSource.PROXY
        assert result.content == LONG_TEXT.strip()

    @pytest.mark.asyncio
    async def test_html_proxy(self, resolver, fake_client, pipeline):
        fake_client.add(proxy_url(pipeline.corsproxy_url, LINK), article_page(LONG_TEXT), content_type="text/html")
        result = await resolver.resolve(LINK, "Short teaser")
        assert result.source == FullTextSource.PROXY
        assert "Readable sentence" in result.content

    @pytest.mark.asyncio
    async def test_json_envelope_proxy(self, resolver, fake_client, pipeline):
        fake_client.add(
            proxy_url(pipeline.allorigins_url, LINK),
            json.dumps({"contents": article_page(LONG_TEXT)}),
            content_type="application/json",
        )
        result = await resolver.resolve(LINK, None)
        assert result.source == FullTextSource.PROXY

    @pytest.mark.asyncio
    async def test_too_short_answers_lose(self, resolver, fake_client, pipeline):
        """Short metadata content is rejected; the HTML proxy still wins."""
        fake_client.add(
            proxy_url(pipeline.microlink_url, LINK),
            json.dumps({"status": "success", "data": {"content": "Too short."}}),
            content_type="application/json",
        )
        fake_client.add(
            proxy_url(pipeline.corsproxy_url, LINK), article_page(LONG_TEXT),
            content_type="text/html", delay=0.05,
        )
        result = await resolver.resolve(LINK, None)
        assert result.source == FullTextSource.PROXY
        assert "Readable sentence" in result.content

    @pytest.mark.asyncio
    async def test_metadata_api_error_status(self, resolver, fake_client, pipeline):
        fake_client.add(
            proxy_url(pipeline.microlink_url, LINK),
            json.dumps({"status": "fail", "data": {"content": LONG_TEXT}}),
            content_type="application/json",
        )
        assert await resolver.resolve(LINK, None) is None


class TestStrategyErrors:
    """Each strategy reports why it lost."""

    @pytest.mark.asyncio
    async def test_metadata_api_http_failure(self, resolver, fake_client, pipeline):
        fake_client.add(proxy_url(pipeline.microlink_url, LINK), "oops", status=500)
        with pytest.raises(ExtractionFailedError) as exc_info:
            await resolver._via_metadata_api(LINK)
        assert not isinstance(exc_info.value, ExtractionTooShortError)
        assert "HTTP 500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_metadata_api_invalid_json(self, resolver, fake_client, pipeline):
        fake_client.add(proxy_url(pipeline.microlink_url, LINK), "not json", content_type="application/json")
        with pytest.raises(ExtractionFailedError) as exc_info:
            await resolver._via_metadata_api(LINK)
        assert not isinstance(exc_info.value, ExtractionTooShortError)

    @pytest.mark.asyncio
    async def test_metadata_api_short_content(self, resolver, fake_client, pipeline):
        fake_client.add(
            proxy_url(pipeline.microlink_url, LINK),
            json.dumps({"status": "success", "data": {"content": "Too short."}}),
            content_type="application/json",
        )
        with pytest.raises(ExtractionTooShortError):
            await resolver._via_metadata_api(LINK)

    @pytest.mark.asyncio
    async def test_html_proxy_http_failure(self, resolver, fake_client, pipeline):
        fake_client.add(proxy_url(pipeline.corsproxy_url, LINK), "gone", status=404, content_type="text/html")
        with pytest.raises(ExtractionFailedError) as exc_info:
            await resolver._via_html_proxy(pipeline.corsproxy_url, LINK)
        assert not isinstance(exc_info.value, ExtractionTooShortError)

    @pytest.mark.asyncio
    async def test_html_proxy_short_extraction(self, resolver, fake_client, pipeline):
        fake_client.add(proxy_url(pipeline.corsproxy_url, LINK), article_page("Tiny."), content_type="text/html")
        with pytest.raises(ExtractionTooShortError):
            await resolver._via_html_proxy(pipeline.corsproxy_url, LINK)


class TestDegradedContent:
    """Tier 3 falls back to whatever was stored."""

    @pytest.mark.asyncio
    async def test_short_stored_content_when_live_fails(self, resolver, fake_client):
        stored = "A forty character teaser for the story."
        result = await resolver.resolve(LINK, stored)
        assert result.source == FullTextSource.RSS_PARTIAL
        assert result.content == stored
        assert len(fake_client.calls) == 3

    @pytest.mark.asyncio
    async def test_nothing_available(self, resolver):
        assert await resolver.resolve(LINK, None) is None
        assert await resolver.resolve(LINK, "   ") is None

    @pytest.mark.asyncio
    async def test_no_link_uses_stored_content(self, resolver, fake_client):
        result = await resolver.resolve(None, "Just a teaser")
        assert result.source == FullTextSource.RSS_PARTIAL
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_partial_threshold(self, fake_client, pipeline):
        strict = FullTextResolver(fake_client, replace(pipeline, partial_content_min_length=50))
        assert await strict.resolve(LINK, "A forty character teaser for the story.") is None


class TestReadingTime:

    def test_estimate(self):
        assert estimate_reading_time("word " * 238) == 1
        assert estimate_reading_time("word " * 239) == 2
        assert estimate_reading_time("one") == 1
        assert estimate_reading_time("") is None
        assert estimate_reading_time(None) is None

    def test_result_property(self):
        result = FullTextResult("word " * 500, FullTextSource.RSS)
        assert result.reading_time_minutes == 3
