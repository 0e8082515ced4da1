"""Logging setup for the server entry point."""
import logging


def setup_logging(level: str = "INFO") -> None:
    """Configure standard logging format for the news server."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
