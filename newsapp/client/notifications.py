"""Push payload → system notification, and notification click routing."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Tuple

DEFAULT_TITLE = "NewsApp"
DEFAULT_BODY = "Neue Nachrichten verfügbar"
DEFAULT_URL = "/"
ICON = "/images/icon-192.png"


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    url: str
    icon: str = ICON
    badge: str = ICON
    vibrate: Tuple[int, ...] = (200, 100, 200)
    actions: Tuple[Tuple[str, str], ...] = field(
        default=(("open", "Öffnen"), ("close", "Schließen"))
    )


@dataclass(frozen=True)
class ClickResult:
    action: str  # "focus" or "open"
    target: str


def build_notification(payload: Optional[Mapping[str, Any]]) -> Notification:
    payload = payload or {}
    return Notification(
        title=payload.get("title") or DEFAULT_TITLE,
        body=payload.get("body") or DEFAULT_BODY,
        url=payload.get("url") or DEFAULT_URL,
    )


def resolve_click(
    notification: Notification,
    action: str,
    open_windows: Sequence[str],
) -> Optional[ClickResult]:
    """
    Decide what a notification click does.
    `close` does nothing; an open window at the root gets focus; otherwise the
    notification URL is opened in a new window.
    """
    if action == "close":
        return None
    for url in open_windows:
        if url == DEFAULT_URL:
            return ClickResult("focus", url)
    return ClickResult("open", notification.url)
