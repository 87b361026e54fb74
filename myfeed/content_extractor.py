"""
Content Extractor - Turn HTML into readable plain text.

Handles:
- Boilerplate removal (scripts, navigation, ads, share widgets, comments)
- Article container detection via a prioritized selector list
- Whitespace normalization and output length capping
- Markup stripping for feed-embedded content (teasers and full text)
"""

import re
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

# Feed bodies are often short plain strings; bs4 would warn they look like URLs
warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)

BOILERPLATE_SELECTORS = [
    "script", "style", "nav", "header", "footer", "aside",
    "[class*='ad-']", "[id*='ad-']", "[class*='sidebar']",
    "[class*='comment']", "[class*='related']", "[class*='share']",
    "[class*='social']", "[class*='newsletter']", "[class*='popup']",
]

CONTENT_SELECTORS = [
    "article",
    "[itemprop='articleBody']",
    "[class*='article-body']",
    "[class*='article-content']",
    "[class*='post-content']",
    "[class*='entry-content']",
    "[class*='story-body']",
    "[class*='body-content']",
    "main",
    "[role='main']",
    ".content",
    "#content",
]

# Block elements that become line breaks when flattening feed HTML
BLOCK_TAGS = ["p", "br", "li", "h1", "h2", "h3", "h4", "h5", "h6", "blockquote"]

DEFAULT_MAX_LENGTH = 5000


def clean_text(text: str | None, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Collapse all whitespace runs to single spaces and cap the length."""
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()[:max_length]


def strip_html(html: str | None) -> str:
    """Plain text content of an HTML fragment."""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text().strip()


def html_to_text(html: str | None) -> str:
    """
    Flatten an HTML fragment to text, keeping paragraph breaks.

    Used for feed-embedded content, where the paragraph structure is worth
    preserving for the reader view.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for element in soup.find_all(BLOCK_TAGS):
        element.insert_before("\n")
    text = soup.get_text().strip()
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[ \t]+", " ", text)
    return text.strip()


class ContentExtractor:
    """Extracts the readable body of an article page."""

    def __init__(self, min_length: int = 200, max_length: int = DEFAULT_MAX_LENGTH):
        self.min_length = min_length
        self.max_length = max_length

    def extract(self, html: str | None) -> str | None:
        """
        Extract readable text from a full HTML page.

        Returns None when neither a content container nor the page body
        holds more than `min_length` characters of text.
        """
        if not html:
            return None

        soup = BeautifulSoup(html, "html.parser")
        self._remove_boilerplate(soup)

        for selector in CONTENT_SELECTORS:
            candidate = soup.select_one(selector)
            if candidate is None:
                continue
            text = candidate.get_text(separator=" ").strip()
            if len(text) > self.min_length:
                return clean_text(text, self.max_length)

        body = soup.body or soup
        text = body.get_text(separator=" ").strip()
        if len(text) > self.min_length:
            return clean_text(text, self.max_length)
        return None

    def _remove_boilerplate(self, soup: BeautifulSoup) -> None:
        for selector in BOILERPLATE_SELECTORS:
            for element in soup.select(selector):
                if not element.decomposed:
                    element.decompose()
