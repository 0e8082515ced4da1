from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from dateutil.parser import isoparse


@dataclass(frozen=True)
class Article:
    """
    Normalized news article produced from one feed entry.

    Instances are immutable. `id` is derived from `link` only, so the same
    story keeps its id (and its bookmarks) across refreshes.
    """
    id: str
    title: str
    link: str
    description: str
    published_at: datetime
    image_url: str = ""
    source_host: str = "Unknown"
    category: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """JSON shape served by the API and stored in the client mirror."""
        return {
            "id": self.id,
            "title": self.title,
            "link": self.link,
            "description": self.description,
            "pubDate": self.published_at.isoformat(),
            "image": self.image_url,
            "source": self.source_host,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Article":
        published_at = isoparse(data["pubDate"])
        if published_at.tzinfo is None:
            published_at = published_at.replace(tzinfo=timezone.utc)
        return cls(
            id=data["id"],
            title=data.get("title") or "",
            link=data.get("link") or "",
            description=data.get("description") or "",
            published_at=published_at,
            image_url=data.get("image") or "",
            source_host=data.get("source") or "Unknown",
            category=data.get("category") or "",
        )
