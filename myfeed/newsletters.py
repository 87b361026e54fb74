"""
Newsletter sources.

Newsletters become ordinary feeds: Substack publications expose /feed, and
email-only newsletters go through an email-to-Atom bridge inbox.
"""

import secrets
import string
from dataclasses import dataclass
from urllib.parse import urlparse

NEWSLETTER_CATEGORY = "Newsletters"
NEWSLETTER_FEED_TYPE = "newsletter"

BRIDGE_DOMAIN = "kill-the-newsletter.com"

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


@dataclass
class NewsletterInbox:
    """An email address whose received mail is published at feed_url."""
    email: str
    feed_url: str


def substack_feed_url(value: str) -> str:
    """
    Turn a Substack name, host or URL into its RSS feed URL.

    "stratechery", "stratechery.substack.com" and
    "https://stratechery.substack.com/p/some-post" all resolve to
    "https://stratechery.substack.com/feed". Full URLs on custom domains
    keep their origin.
    """
    value = value.strip().rstrip("/")
    if not value:
        raise ValueError("Substack name or URL is required")

    if value.startswith("http"):
        parsed = urlparse(value)
        return f"{parsed.scheme}://{parsed.netloc}/feed"

    slug = value.replace(".substack.com", "")
    return f"https://{slug}.substack.com/feed"


def substack_title(value: str) -> str:
    """Display title derived from the publication name."""
    name = value.strip()
    for prefix in ("https://", "http://"):
        if name.startswith(prefix):
            name = name[len(prefix):]
    name = name.replace(".substack.com", "").rstrip("/").split("/")[0]
    return name[:1].upper() + name[1:]


def create_newsletter_inbox() -> NewsletterInbox:
    """Generate a fresh bridge inbox with a random token."""
    token = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(8))
    return NewsletterInbox(
        email=f"myfeed-{token}@{BRIDGE_DOMAIN}",
        feed_url=f"https://{BRIDGE_DOMAIN}/feeds/{token}.xml",
    )
