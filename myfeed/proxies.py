"""
Proxy client - the single network boundary for third-party relays.

Feeds and article pages are never fetched directly; they go through public
CORS relays and conversion APIs (rss2json, allorigins, corsproxy,
microlink). All of them are best-effort, so callers race them.
"""

import json
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import aiohttp


@dataclass
class ProxyResponse:
    """Body and headers of a proxy reply."""
    status: int
    content_type: str
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.text)

    def is_json(self) -> bool:
        return "json" in self.content_type.lower()


def proxy_url(template: str, target_url: str) -> str:
    """Fill a proxy URL template with the percent-encoded target URL."""
    return template.replace("{url}", quote(target_url, safe=""))


def unwrap_body(response: ProxyResponse) -> str:
    """
    Get the relayed document out of a proxy reply.

    JSON envelopes (allorigins style) carry it under "contents" or "body";
    anything else is the raw document itself.
    """
    if response.is_json():
        try:
            data = response.json()
        except json.JSONDecodeError:
            return ""
        if isinstance(data, dict):
            return data.get("contents") or data.get("body") or ""
        return ""
    return response.text


class ProxyClient:
    """Performs GET requests against proxy endpoints."""

    def __init__(self, user_agent: str | None = None, timeout: float = 30):
        self.timeout = timeout
        self.headers = {
            "User-Agent": user_agent or "Mozilla/5.0 (compatible; myFeed/1.0)",
            "Accept": "application/json, application/xml, text/xml, text/html;q=0.9, */*;q=0.8",
        }

    async def get(self, url: str) -> ProxyResponse:
        """Fetch a proxy URL. Non-2xx statuses are returned, not raised."""
        async with aiohttp.ClientSession(headers=self.headers) as session:
            async with session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                allow_redirects=True
            ) as resp:
                text = await resp.text(errors="replace")
                return ProxyResponse(
                    status=resp.status,
                    content_type=resp.headers.get("Content-Type", ""),
                    text=text,
                )
