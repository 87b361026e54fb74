"""
Full-text resolution.

Most feeds already embed the whole article, so stored content is tried
first with no network cost. Only thin teasers trigger a race of live
extraction strategies against the article URL, and when that race is lost
whatever the feed stored is still better than nothing.
"""

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum

from .config import PipelineConfig
from .content_extractor import ContentExtractor, clean_text
from .exceptions import AllStrategiesFailedError
from .proxies import ProxyClient, proxy_url, unwrap_body
from .proxy_race import Strategy, race

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 238


class FullTextSource(str, Enum):
    """Which tier produced the text."""
    RSS = "rss"
    PROXY = "proxy"
    RSS_PARTIAL = "rss-partial"


@dataclass
class FullTextResult:
    content: str
    source: FullTextSource

    @property
    def reading_time_minutes(self) -> int | None:
        return estimate_reading_time(self.content)


class ExtractionFailedError(Exception):
    """A live extraction strategy got no usable response."""


class ExtractionTooShortError(ExtractionFailedError):
    """A strategy answered, but with too little text to count."""


def estimate_reading_time(text: str | None) -> int | None:
    """Minutes to read `text` at 238 words per minute, never less than 1."""
    if not text or not text.strip():
        return None
    words = len(text.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


class FullTextResolver:
    """Three-tier full-text policy: stored content, live race, degraded stored content."""

    def __init__(
        self,
        client: ProxyClient,
        config: PipelineConfig | None = None,
        extractor: ContentExtractor | None = None,
    ):
        self.client = client
        self.config = config or PipelineConfig()
        self.extractor = extractor or ContentExtractor(
            min_length=self.config.extract_min_length,
            max_length=self.config.extract_max_length,
        )

    async def resolve(self, link: str | None, stored_content: str | None = None) -> FullTextResult | None:
        """
        Resolve the best available text for an article.

        Args:
            link: The article's canonical URL
            stored_content: Content saved at ingestion time, if any

        Returns:
            FullTextResult, or None when nothing usable was found
        """
        stored = (stored_content or "").strip()

        if len(stored) >= self.config.stored_content_min_length:
            return FullTextResult(self._clean(stored), FullTextSource.RSS)

        if link:
            try:
                content = await race(self._strategies(link), timeout=self.config.full_text_timeout)
                return FullTextResult(content, FullTextSource.PROXY)
            except AllStrategiesFailedError as e:
                logger.info(f"Live extraction failed for {link} ({len(e.errors)} strategies)")

        if stored and len(stored) > self.config.partial_content_min_length:
            return FullTextResult(self._clean(stored), FullTextSource.RSS_PARTIAL)

        return None

    def _clean(self, text: str) -> str:
        return clean_text(text, self.config.extract_max_length)

    def _strategies(self, link: str) -> list[Strategy[str]]:
        return [
            Strategy("microlink", lambda: self._via_metadata_api(link)),
            Strategy("allorigins", lambda: self._via_html_proxy(self.config.allorigins_url, link)),
            Strategy("corsproxy", lambda: self._via_html_proxy(self.config.corsproxy_url, link)),
        ]

    async def _via_metadata_api(self, link: str) -> str:
        response = await self.client.get(proxy_url(self.config.microlink_url, link))
        if not response.ok:
            raise ExtractionFailedError(f"microlink failed with HTTP {response.status}")
        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise ExtractionFailedError("microlink returned invalid JSON") from e

        if not isinstance(payload, dict) or payload.get("status") != "success":
            raise ExtractionFailedError("microlink reported an error")
        data = payload.get("data") or {}
        content = data.get("content") or data.get("description") or ""
        if len(content) < self.config.metadata_api_min_length:
            raise ExtractionTooShortError("too short")
        return self._clean(content)

    async def _via_html_proxy(self, template: str, link: str) -> str:
        response = await self.client.get(proxy_url(template, link))
        if not response.ok:
            raise ExtractionFailedError(f"Proxy request failed with HTTP {response.status}")
        extracted = self.extractor.extract(unwrap_body(response))
        if not extracted or len(extracted) < self.config.html_proxy_min_length:
            raise ExtractionTooShortError("extraction too short")
        return extracted
