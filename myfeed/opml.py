"""OPML and CSV conversion for importing and exporting feed subscriptions."""

import csv
import io
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime

from .exceptions import OPMLParseError

DEFAULT_CATEGORY = "General"

INVALID_OPML_MESSAGE = "Invalid OPML file. Please check the file and try again."
NO_FEEDS_MESSAGE = "No RSS feeds found in this OPML file."


@dataclass
class OPMLFeed:
    """A feed entry from an OPML file (or a feed about to be exported)."""
    url: str
    title: str
    category: str = DEFAULT_CATEGORY
    created_at: datetime | None = None


def parse_opml(xml_content: str | bytes, default_category: str = DEFAULT_CATEGORY) -> list[OPMLFeed]:
    """
    Parse OPML XML content and extract feed subscriptions.

    Every outline carrying an xmlUrl is a feed, at any depth. A feed whose
    parent is a folder outline (no xmlUrl of its own) takes the folder's
    text/title as its category.

    Raises:
        OPMLParseError: If the XML is invalid or holds no feeds
    """
    try:
        root = ET.fromstring(xml_content)
    except ET.ParseError as e:
        raise OPMLParseError(INVALID_OPML_MESSAGE) from e

    feeds: list[OPMLFeed] = []
    _collect_outlines(root, feeds, parent_category=None, default_category=default_category)

    if not feeds:
        raise OPMLParseError(NO_FEEDS_MESSAGE)
    return feeds


def _collect_outlines(
    element: ET.Element,
    feeds: list[OPMLFeed],
    parent_category: str | None,
    default_category: str,
) -> None:
    for child in element:
        if child.tag != "outline":
            _collect_outlines(child, feeds, None, default_category)
            continue

        url = (child.get("xmlUrl") or child.get("xmlurl") or "").strip()
        if url:
            title = (child.get("title") or child.get("text") or "").strip() or url
            feeds.append(OPMLFeed(url=url, title=title, category=parent_category or default_category))
            # Outlines nested under a feed have no folder parent
            _collect_outlines(child, feeds, None, default_category)
        else:
            folder = (child.get("text") or child.get("title") or "").strip()
            _collect_outlines(child, feeds, folder or None, default_category)


def group_by_category(feeds: list[OPMLFeed]) -> dict[str, list[OPMLFeed]]:
    """Group feeds by category, keeping first-seen category order."""
    grouped: dict[str, list[OPMLFeed]] = {}
    for feed in feeds:
        grouped.setdefault(feed.category or DEFAULT_CATEGORY, []).append(feed)
    return grouped


def generate_opml(feeds: list[OPMLFeed], title: str = "myFeed Export") -> str:
    """
    Generate OPML XML from a list of feeds, one folder outline per category.

    Returns:
        OPML XML string
    """
    root = ET.Element("opml", version="2.0")

    head = ET.SubElement(root, "head")
    ET.SubElement(head, "title").text = title
    ET.SubElement(head, "dateCreated").text = format_datetime(datetime.now(timezone.utc), usegmt=True)

    body = ET.SubElement(root, "body")
    for category, cat_feeds in group_by_category(feeds).items():
        folder = ET.SubElement(body, "outline", text=category, title=category)
        for feed in cat_feeds:
            name = feed.title or feed.url
            ET.SubElement(folder, "outline", type="rss", text=name, title=name, xmlUrl=feed.url)

    ET.indent(root, space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode")


def generate_csv(feeds: list[OPMLFeed]) -> str:
    """Generate a CSV export with every field quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write("Title,URL,Category,Added\n")
    for feed in feeds:
        added = feed.created_at.strftime("%Y-%m-%d") if feed.created_at else ""
        writer.writerow([feed.title or "", feed.url or "", feed.category or "", added])
    return buffer.getvalue().rstrip("\n")
