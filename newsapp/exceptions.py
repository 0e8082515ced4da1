class FeedFetchError(Exception):
    """Raised when an RSS/Atom feed cannot be fetched or parsed."""


class UnknownCategoryError(KeyError):
    """Raised when a category key is not part of the feed configuration."""

    def __init__(self, category: str) -> None:
        super().__init__(category)
        self.category = category

    def __str__(self) -> str:
        return f"Unknown category: {self.category}"


class NewsUnavailableError(Exception):
    """Raised by the client when the server is unreachable and no mirror exists."""


class CacheInstallError(Exception):
    """Raised when the static asset manifest cannot be pre-cached."""
