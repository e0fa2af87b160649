import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - [hypershot] %(name)s: %(message)s"


def setup_logging(level: str | int = logging.INFO) -> None:
    """Send hypershot logs to stderr with timestamps."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Repeated calls (tests, reloads) must not stack handlers
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)

    # httpx logs one INFO line per request
    logging.getLogger("httpx").setLevel(logging.WARNING)
