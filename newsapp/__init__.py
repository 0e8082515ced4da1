"""
newsapp

Aggregates RSS/Atom feeds across categories and serves them as one list.

Core ideas:
- Input: a static category → feed URLs table
- Process: fetch (concurrently, per source) → parse → merge → sort (newest first) → deduplicate
- Output: List[Article], cached server-side for a few minutes

Example
-------
import asyncio
from newsapp import Aggregator

articles = asyncio.run(Aggregator().fetch_all())

for item in articles[:10]:
    print(item.published_at, item.source_host, item.title)
"""
from .models import Article
from .aggregator import Aggregator
from .cache import ResponseCache

__all__ = [
    "Article",
    "Aggregator",
    "ResponseCache",
]
