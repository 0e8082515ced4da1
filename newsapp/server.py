"""FastAPI application serving the aggregated news."""

import logging
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .aggregator import Aggregator
from .cache import ResponseCache
from .config import Settings, category_label, load_settings
from .exceptions import UnknownCategoryError
from .logging_config import setup_logging
from .models import Article


logger = logging.getLogger(__name__)


class ArticleResponse(BaseModel):
    """Article as served to the client."""

    id: str
    title: str
    link: str
    description: str
    pubDate: datetime
    image: str
    source: str
    category: str

    @classmethod
    def from_article(cls, article: Article) -> "ArticleResponse":
        return cls(
            id=article.id,
            title=article.title,
            link=article.link,
            description=article.description,
            pubDate=article.published_at,
            image=article.image_url,
            source=article.source_host,
            category=article.category,
        )


class NewsResponse(BaseModel):
    articles: List[ArticleResponse]
    cached: bool
    timestamp: int


class CategoryNewsResponse(BaseModel):
    articles: List[ArticleResponse]


class CategoryInfo(BaseModel):
    key: str
    label: str


class CategoriesResponse(BaseModel):
    categories: List[CategoryInfo]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def get_response_cache(request: Request) -> ResponseCache:
    return request.app.state.response_cache


def get_aggregator(request: Request) -> Aggregator:
    return request.app.state.aggregator


def create_app(
    settings: Optional[Settings] = None,
    *,
    aggregator: Optional[Aggregator] = None,
    response_cache: Optional[ResponseCache] = None,
) -> FastAPI:
    """
    Build the API application.

    The aggregator and cache are created from `settings` unless given; tests
    pass their own to avoid network access.
    """
    settings = settings or Settings()
    if aggregator is None:
        aggregator = Aggregator(
            timeout=settings.fetch_timeout,
            user_agent=settings.user_agent,
        )
    if response_cache is None:
        response_cache = ResponseCache(aggregator, ttl=settings.cache_ttl)

    app = FastAPI(
        title="NewsApp API",
        description="Aggregated RSS/Atom news across categories",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.aggregator = aggregator
    app.state.response_cache = response_cache

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    @app.get("/api/news", response_model=NewsResponse)
    async def list_news(
        cache: Annotated[ResponseCache, Depends(get_response_cache)],
        refresh: Annotated[Optional[str], Query(description="`true` bypasses the server cache")] = None,
    ):
        """All categories, newest first, deduplicated by title."""
        # only the literal "true" forces a refresh; anything else reads the cache
        force_refresh = refresh == "true"
        try:
            result = await cache.get(force_refresh=force_refresh)
        except Exception as e:
            logger.exception("Aggregation failed")
            return _error(500, str(e) or e.__class__.__name__)

        return NewsResponse(
            articles=[ArticleResponse.from_article(a) for a in result.articles],
            cached=result.cached,
            timestamp=result.timestamp,
        )

    @app.get("/api/news/{category}", response_model=CategoryNewsResponse)
    async def list_category_news(
        category: str,
        aggregator: Annotated[Aggregator, Depends(get_aggregator)],
    ):
        """One category's feeds, fetched on demand (not cached)."""
        try:
            articles = await aggregator.fetch_category(category)
        except UnknownCategoryError:
            return _error(404, "Kategorie nicht gefunden")
        except Exception as e:
            logger.exception("Category aggregation failed for %s", category)
            return _error(500, str(e) or e.__class__.__name__)

        return CategoryNewsResponse(
            articles=[ArticleResponse.from_article(a) for a in articles],
        )

    @app.get("/api/categories", response_model=CategoriesResponse)
    async def list_categories(
        aggregator: Annotated[Aggregator, Depends(get_aggregator)],
    ):
        return CategoriesResponse(
            categories=[
                CategoryInfo(key=key, label=category_label(key))
                for key in aggregator.categories
            ],
        )

    return app


def main() -> None:
    """Run the API server."""
    import uvicorn

    settings = load_settings()
    setup_logging(settings.log_level)
    app = create_app(settings)
    logger.info("NewsApp server on http://%s:%d/api/news", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
