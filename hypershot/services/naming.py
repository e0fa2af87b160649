"""Content addressing: local file names derived from a resource's URL."""
from __future__ import annotations

import hashlib
import mimetypes
from collections.abc import Mapping

DEFAULT_CONTENT_TYPE = "text/plain"

# Web media types pinned so names do not depend on the interpreter's registry
CANONICAL_EXTENSIONS = {
    "text/plain": ".txt",
    "text/html": ".html",
    "text/css": ".css",
    "text/javascript": ".js",
    "application/javascript": ".js",
    "application/x-javascript": ".js",
    "application/ecmascript": ".js",
    "application/json": ".json",
    "application/manifest+json": ".webmanifest",
    "application/xml": ".xml",
    "text/xml": ".xml",
    "image/png": ".png",
    "image/jpeg": ".jpeg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/avif": ".avif",
    "image/svg+xml": ".svg",
    "image/x-icon": ".ico",
    "image/vnd.microsoft.icon": ".ico",
    "font/woff": ".woff",
    "font/woff2": ".woff2",
    "font/ttf": ".ttf",
    "font/otf": ".otf",
    "application/font-woff": ".woff",
}

# Built-in table only; host mime.types files are not read
_registry = mimetypes.MimeTypes(filenames=())


def hash_url(url: str, algorithm: str = "md5") -> str:
    return hashlib.new(algorithm, url.encode("utf-8")).hexdigest()


def media_type(headers: Mapping[str, str] | None) -> str:
    raw = None
    if headers:
        raw = headers.get("content-type")
        if raw is None:
            raw = next((v for k, v in headers.items() if k.lower() == "content-type"), None)
    raw = raw or DEFAULT_CONTENT_TYPE
    return raw.split(";", 1)[0].strip().lower()


def resolve_extension(headers: Mapping[str, str] | None) -> str:
    mime = media_type(headers)
    if not mime:
        return ""
    return CANONICAL_EXTENSIONS.get(mime) or _registry.guess_extension(mime, strict=False) or ""


def local_name(url: str, headers: Mapping[str, str] | None, algorithm: str = "md5") -> str:
    return hash_url(url, algorithm) + resolve_extension(headers)
