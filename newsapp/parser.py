from __future__ import annotations

import calendar
import hashlib
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup
from dateutil.parser import parse as parse_date

from .models import Article


UNKNOWN_SOURCE = "Unknown"
ARTICLE_ID_LENGTH = 16

# publish date first, then the alternate timestamp feeds carry
_PUBLISHED_FIELDS = ("published", "pubDate")
_ALTERNATE_FIELDS = ("updated", "isoDate")

_IMG_SRC = re.compile(r'<img[^>]+src="([^">]+)"')

# Abbreviations dateutil does not resolve on its own
TZINFOS = {
    "CET": timezone(timedelta(hours=1)),
    "CEST": timezone(timedelta(hours=2)),
    "MEZ": timezone(timedelta(hours=1)),
    "MESZ": timezone(timedelta(hours=2)),
    "WET": timezone.utc,
    "WEST": timezone(timedelta(hours=1)),
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
}


def make_article_id(link: str) -> str:
    """Stable, fixed-length, URL-safe identity for an article link."""
    return hashlib.sha256(link.encode("utf-8")).hexdigest()[:ARTICLE_ID_LENGTH]


def extract_source(link: str) -> str:
    """Hostname of `link` without a leading `www.`; UNKNOWN_SOURCE if unparseable."""
    try:
        host = urlparse(link).hostname
    except ValueError:
        return UNKNOWN_SOURCE
    if not host:
        return UNKNOWN_SOURCE
    if host.startswith("www."):
        host = host[len("www."):]
    return host


def extract_image(html: str) -> str:
    match = _IMG_SRC.search(html or "")
    return match.group(1) if match else ""


def _html_to_text(html: str) -> str:
    if "<" not in html:
        return html.strip()
    return BeautifulSoup(html, "html.parser").get_text(" ", strip=True)


def _first_content_value(entry: Mapping[str, Any]) -> str:
    content = entry.get("content")
    if isinstance(content, list):
        for block in content:
            if isinstance(block, Mapping):
                value = block.get("value")
                if isinstance(value, str) and value:
                    return value
    elif isinstance(content, str):
        return content
    return ""


def _get_description(entry: Mapping[str, Any]) -> str:
    """
    Plain-text snippet of the entry.
    Priority: summary/description (HTML stripped) -> raw content -> "".
    """
    for key in ("summary", "description"):
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return _html_to_text(value)
    return _first_content_value(entry)


def _struct_to_datetime(value: time.struct_time) -> Optional[datetime]:
    # feedparser normalizes *_parsed values to UTC
    try:
        return datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return None


def _string_to_datetime(value: str) -> Optional[datetime]:
    try:
        dt = parse_date(value, tzinfos=TZINFOS)
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _to_datetime(entry: Mapping[str, Any], fields: Iterable[str]) -> Optional[datetime]:
    for key in fields:
        parsed = entry.get(f"{key}_parsed")
        if isinstance(parsed, time.struct_time):
            dt = _struct_to_datetime(parsed)
            if dt is not None:
                return dt
        raw = entry.get(key)
        if isinstance(raw, str) and raw.strip():
            dt = _string_to_datetime(raw)
            if dt is not None:
                return dt
    return None


def _get_published_at(entry: Mapping[str, Any], fetched_at: datetime) -> datetime:
    return (
        _to_datetime(entry, _PUBLISHED_FIELDS)
        or _to_datetime(entry, _ALTERNATE_FIELDS)
        or fetched_at
    )


def _first_url(items: Any, *keys: str) -> str:
    if isinstance(items, Mapping):
        items = [items]
    if not isinstance(items, list):
        return ""
    for item in items:
        if not isinstance(item, Mapping):
            continue
        for key in keys:
            url = item.get(key)
            if isinstance(url, str) and url:
                return url
    return ""


def _get_image(entry: Mapping[str, Any]) -> str:
    """
    Priority: enclosure -> media:content -> media:thumbnail -> first <img> in content.
    """
    return (
        _first_url(entry.get("enclosures") or entry.get("enclosure"), "href", "url")
        or _first_url(entry.get("media_content"), "url")
        or _first_url(entry.get("media_thumbnail"), "url")
        or extract_image(_first_content_value(entry))
        or extract_image(entry.get("summary") or "")
    )


def parse_entry(entry: Mapping[str, Any], category: str, fetched_at: datetime) -> Article:
    """
    Map a raw feed entry (from feedparser) to an Article.

    Missing fields never raise; they default to empty strings, the fetch time
    or UNKNOWN_SOURCE.
    """
    link = (entry.get("link") or "").strip()
    return Article(
        id=make_article_id(link),
        title=(entry.get("title") or "").strip(),
        link=link,
        description=_get_description(entry),
        published_at=_get_published_at(entry, fetched_at),
        image_url=_get_image(entry),
        source_host=extract_source(link),
        category=category,
    )
