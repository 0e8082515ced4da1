from __future__ import annotations

from typing import Iterable, List, Set

from .models import Article


def title_key(article: Article) -> str:
    return article.title.strip().lower()


def deduplicate(items: Iterable[Article]) -> List[Article]:
    """
    Remove articles whose normalized title was already seen.
    Keeps the first occurrence and preserves input order, so callers sort first.
    """
    seen: Set[str] = set()
    out: List[Article] = []
    for it in items:
        key = title_key(it)
        if key in seen:
            continue
        seen.add(key)
        out.append(it)
    return out
