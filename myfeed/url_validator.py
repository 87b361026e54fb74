"""
URL Validator - Reject feed URLs that can never be fetched.

Feeds are fetched by third-party relays, never directly, so a URL pointing
at a private or local host would only waste a proxy race. Rejected up front:
- Non-http(s) schemes (file:, javascript:, feed: without a host)
- Missing hostnames
- Loopback, link-local and private addresses, and local-only domain names
"""

import ipaddress
import re
from urllib.parse import urlparse, urlunparse

from fastapi import HTTPException

from .exceptions import MyFeedError


class InvalidFeedURLError(MyFeedError):
    """Raised when a feed URL fails validation."""


ALLOWED_SCHEMES = {"http", "https"}

BLOCKED_HOSTNAMES = {
    "localhost",
    "localhost.localdomain",
    "ip6-localhost",
    "ip6-loopback",
}

BLOCKED_SUFFIXES = (".local", ".internal", ".localhost")

# "javascript:..." or "mailto:..." but not "example.com:8080"
_BARE_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:(?!\d)")


def normalize_feed_url(url: str) -> str:
    """Trim the URL, add https:// when no scheme was given, turn feed:// into https://."""
    url = (url or "").strip()
    if url.startswith("feed://"):
        url = "https://" + url[len("feed://"):]
    elif url and "://" not in url and not _BARE_SCHEME.match(url):
        url = "https://" + url
    return url


def is_private_address(hostname: str) -> bool:
    """Check whether a hostname is a literal IP in a non-public range."""
    try:
        ip = ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False
    return ip.is_private or ip.is_loopback or ip.is_link_local or ip.is_reserved or ip.is_unspecified


def validate_feed_url(url: str) -> str:
    """
    Validate and normalize a feed URL.

    Returns:
        The normalized URL

    Raises:
        InvalidFeedURLError: If the URL fails validation
    """
    url = normalize_feed_url(url)
    if not url:
        raise InvalidFeedURLError("Feed URL is required")

    parsed = urlparse(url)
    if parsed.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidFeedURLError(f"URL scheme '{parsed.scheme}' is not allowed. Use http or https.")

    if not parsed.hostname:
        raise InvalidFeedURLError("URL must include a hostname")

    hostname = parsed.hostname.lower()
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(BLOCKED_SUFFIXES):
        raise InvalidFeedURLError(f"Access to '{hostname}' is not allowed")
    if is_private_address(hostname):
        raise InvalidFeedURLError(f"Access to IP address '{hostname}' is not allowed")

    return urlunparse(parsed._replace(scheme=parsed.scheme.lower()))


def validate_feed_url_or_raise_http(url: str) -> str:
    """
    Validate a feed URL, raising HTTPException on failure.

    Convenience wrapper for use in FastAPI route handlers.
    """
    try:
        return validate_feed_url(url)
    except InvalidFeedURLError as e:
        raise HTTPException(status_code=400, detail=str(e))
