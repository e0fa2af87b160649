import uuid
from datetime import UTC, datetime
from urllib.parse import urlparse

HTTP_SCHEMES = {"http", "https"}
SLUG_PREFIX_LENGTH = 80


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in HTTP_SCHEMES and bool(parsed.netloc)


def is_http_url(value: str | None) -> bool:
    """True for absolute http(s) URLs; anything unparsable counts as not http."""
    if not value:
        return False
    try:
        return is_valid_url(value.strip())
    except ValueError:
        return False


def safe_slug(url: str, now: datetime | None = None) -> str:
    """Folder name for one snapshot run: <host>_<path>_<timestamp>_<random>, unique per call."""
    parsed = urlparse(url)
    host = parsed.netloc.replace(":", "_")
    path = parsed.path.strip("/").replace("/", "_") or "root"
    ts = (now or datetime.now(UTC)).strftime("%Y%m%d_%H%M%S")
    prefix = f"{host}_{path}"[:SLUG_PREFIX_LENGTH]
    return f"{prefix}_{ts}_{uuid.uuid4().hex[:8]}"
