"""Shared fixtures: feed documents and article factories."""

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Callable, Dict, Optional, Tuple
from xml.sax.saxutils import escape

import httpx
import pytest

from newsapp.models import Article
from newsapp.parser import make_article_id

RSS_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
<channel>
<title>Test feed</title>
<link>https://feeds.test/</link>
<description>Test feed</description>
{items}
</channel>
</rss>
"""

ITEM_TEMPLATE = """<item>
<title>{title}</title>
<link>{link}</link>
<description>{description}</description>
<pubDate>{pub_date}</pubDate>
</item>"""


def _rss(*items: Tuple[str, str, datetime]) -> bytes:
    rendered = "\n".join(
        ITEM_TEMPLATE.format(
            title=escape(title),
            link=escape(link),
            description=escape(f"<p>About {title}</p>"),
            pub_date=format_datetime(published, usegmt=True),
        )
        for title, link, published in items
    )
    return RSS_TEMPLATE.format(items=rendered).encode("utf-8")


@pytest.fixture
def rss_feed() -> Callable[..., bytes]:
    """Build an RSS 2.0 document from (title, link, published) tuples."""
    return _rss


@pytest.fixture
def feed_transport() -> Callable[[Dict[str, Optional[bytes]]], httpx.MockTransport]:
    """
    MockTransport serving feed bodies by URL.
    A None body simulates a connection failure; unknown URLs get a 404.
    """

    def build(routes: Dict[str, Optional[bytes]]) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            if url not in routes:
                return httpx.Response(404, text="not found")
            body = routes[url]
            if body is None:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, content=body, headers={"Content-Type": "application/rss+xml"})

        return httpx.MockTransport(handler)

    return build


def _article(
    title: str,
    published: datetime,
    *,
    link: Optional[str] = None,
    category: str = "tech",
    image_url: str = "",
    description: str = "",
) -> Article:
    link = link or f"https://www.example.com/{title.strip().lower().replace(' ', '-')}"
    return Article(
        id=make_article_id(link),
        title=title,
        link=link,
        description=description,
        published_at=published,
        image_url=image_url,
        source_host="example.com",
        category=category,
    )


@pytest.fixture
def make_article() -> Callable[..., Article]:
    return _article


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def at() -> Callable[..., datetime]:
    """UTC datetime shortcut: at(2024, 1, 1, 12)."""
    return utc
