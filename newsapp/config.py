"""Runtime settings and the static category → feed table."""
from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv


RSS_FEEDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "politik": (
        "https://www.tagesschau.de/xml/rss2/",
        "https://www.spiegel.de/politik/index.rss",
    ),
    "sport": (
        "https://www.kicker.de/rss/news",
        "https://www.spiegel.de/sport/index.rss",
    ),
    "tech": (
        "https://www.heise.de/rss/heise-top-atom.xml",
        "https://www.golem.de/rss.php",
    ),
    "unterhaltung": (
        "https://www.spiegel.de/kultur/index.rss",
    ),
    "wirtschaft": (
        "https://www.tagesschau.de/wirtschaft/index~rss2.xml",
    ),
    "wissen": (
        "https://www.spiegel.de/wissenschaft/index.rss",
    ),
    "rezepte": (
        "https://www.eat-this.org/feed/",
        "https://www.biancazapatka.com/de/feed/",
    ),
    "italien": (
        "https://www.suedtirolnews.it/feed",
        "https://www.stol.it/rss",
    ),
    "portugal": (
        "https://www.algarve-entdecker.com/feed/",
        "https://portugaltipps.de/feed/",
    ),
})

CATEGORY_LABELS: Mapping[str, str] = MappingProxyType({
    "politik": "Politik",
    "sport": "Sport",
    "tech": "Tech",
    "unterhaltung": "Kultur",
    "wirtschaft": "Wirtschaft",
    "wissen": "Wissen",
    "rezepte": "Rezepte",
    "italien": "Italien",
    "portugal": "Portugal",
})


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8080
    cache_ttl: float = 300.0
    fetch_timeout: float = 10.0
    user_agent: str = "NewsApp/1.0"
    log_level: str = "INFO"


def _env_number(name: str, default: float, cast=float):
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from the environment.

    A `.env` file (or `env_file` when given) is loaded first; variables already
    present in the process environment win over the file.
    """
    load_dotenv(env_file)
    return Settings(
        host=os.getenv("NEWSAPP_HOST", Settings.host),
        port=_env_number("NEWSAPP_PORT", Settings.port, int),
        cache_ttl=_env_number("NEWSAPP_CACHE_TTL", Settings.cache_ttl),
        fetch_timeout=_env_number("NEWSAPP_FETCH_TIMEOUT", Settings.fetch_timeout),
        user_agent=os.getenv("NEWSAPP_USER_AGENT", Settings.user_agent),
        log_level=os.getenv("NEWSAPP_LOG_LEVEL", Settings.log_level).upper(),
    )
