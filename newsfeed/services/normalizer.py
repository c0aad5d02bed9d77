from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Sequence

from newsfeed.models.schemas import FeedEntry
from newsfeed.services.parser import Candidate, FeedNode

GUID_FIELDS: list[Candidate] = [("guid", None), ("id", None), (None, "guid"), (None, "id")]
LINK_FIELDS: list[Candidate] = [
    ("link", None),
    ("href", None),
    ("link", "href"),  # Atom <link href="..."/>
    (None, "link"),
    (None, "href"),
]
TITLE_FIELDS: list[Candidate] = [("title", None), (None, "title")]
DESCRIPTION_FIELDS: list[Candidate] = [
    ("description", None),
    ("summary", None),
    (None, "description"),
    (None, "summary"),
]
# content falls back to description on purpose
CONTENT_FIELDS: list[Candidate] = [
    ("content:encoded", None),
    ("content", None),
    ("description", None),
    (None, "content"),
    (None, "description"),
]
IMAGE_FIELDS: list[Candidate] = [
    ("enclosure", "url"),
    ("media:content", "url"),
    ("media:thumbnail", "url"),
    ("image", "url"),
]
DATE_FIELDS = ("pubDate", "published", "updated", "dc:date")

_IMG_RE = re.compile(r"""<img[^>]+src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)


def parse_date(value: str) -> datetime | None:
    """RFC 822 (RSS) first, then ISO 8601 (Atom, dc:date). Returns UTC; naive input is taken as UTC."""
    value = value.strip()
    if not value:
        return None
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        dt = None
    if dt is None:
        iso = value[:-1] + "+00:00" if value[-1] in "Zz" else value
        try:
            dt = datetime.fromisoformat(iso)
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def find_image(node: FeedNode, texts: Sequence[str | None]) -> str | None:
    url = node.first_value(IMAGE_FIELDS)
    if url:
        return url
    for text in texts:
        if not text:
            continue
        m = _IMG_RE.search(text)
        if m:
            return m.group(1).strip()
    return None


def find_published_at(node: FeedNode, now: datetime) -> datetime:
    for name in DATE_FIELDS:
        for child in node.children(name):
            value = "".join(child.itertext())
            dt = parse_date(value)
            if dt is not None:
                return dt
    return now


def normalize(node: FeedNode, now: datetime | None = None) -> FeedEntry | None:
    """
    Map one raw feed node to a FeedEntry.

    Returns None when the node has no usable identity (guid, or link as fallback)
    or no title; such items can't be stored.
    """
    guid = node.first_value(GUID_FIELDS) or node.first_value(LINK_FIELDS)
    if not guid:
        return None

    title = node.first_value(TITLE_FIELDS)
    if not title:
        return None

    description = node.first_value(DESCRIPTION_FIELDS)
    content = node.first_value(CONTENT_FIELDS)

    return FeedEntry(
        guid=guid,
        title=title,
        description=description,
        content=content,
        link=node.first_value(LINK_FIELDS),
        image_url=find_image(node, [description, content]),
        published_at=find_published_at(node, now or datetime.now(timezone.utc)),
    )
