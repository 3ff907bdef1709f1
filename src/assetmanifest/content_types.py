"""
Content type classification for uploaded assets.

Maps a path to a MIME type by its extension. Text types get a `charset`
parameter so browsers decode them correctly when served from the bucket.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from types import MappingProxyType

# Sentinel text encoding that suppresses the charset parameter.
NO_CHARSET = "none"

DEFAULT_TEXT_ENCODING = "UTF-8"


@dataclass(frozen=True)
class ContentType:
    mime: str
    is_text: bool = False


DEFAULT_CONTENT_TYPE = ContentType("application/octet-stream", is_text=False)

# Apple/Android app association files are served without an extension but must be JSON.
_SITE_ASSOCIATION_SUFFIX = ".well-known/site-association-json"

CONTENT_TYPES: MappingProxyType[str, ContentType] = MappingProxyType(
    {
        # Text
        ".txt": ContentType("text/plain", is_text=True),
        ".htm": ContentType("text/html", is_text=True),
        ".html": ContentType("text/html", is_text=True),
        ".xhtml": ContentType("application/xhtml+xml", is_text=True),
        ".css": ContentType("text/css", is_text=True),
        ".js": ContentType("text/javascript", is_text=True),
        ".mjs": ContentType("text/javascript", is_text=True),
        ".json": ContentType("application/json", is_text=True),
        ".jsonld": ContentType("application/ld+json", is_text=True),
        ".xml": ContentType("application/xml", is_text=True),
        ".svg": ContentType("image/svg+xml", is_text=True),
        # Images
        ".apng": ContentType("image/apng"),
        ".avif": ContentType("image/avif"),
        ".gif": ContentType("image/gif"),
        ".jpeg": ContentType("image/jpeg"),
        ".jpg": ContentType("image/jpeg"),
        ".png": ContentType("image/png"),
        ".bmp": ContentType("image/bmp"),
        ".tiff": ContentType("image/tiff"),
        ".webp": ContentType("image/webp"),
        ".ico": ContentType("image/vnd.microsoft.icon"),
        # Fonts
        ".eot": ContentType("application/vnd.ms-fontobject"),
        ".ttf": ContentType("font/ttf"),
        ".otf": ContentType("font/otf"),
        ".woff": ContentType("font/woff"),
        ".woff2": ContentType("font/woff2"),
        # Other binary
        ".pdf": ContentType("application/pdf"),
        ".zip": ContentType("application/zip"),
        ".wasm": ContentType("application/wasm"),
    }
)


def _extension(path: str) -> str:
    if path.endswith(_SITE_ASSOCIATION_SUFFIX):
        return ".json"
    return os.path.splitext(path)[1]


def classify(path: str) -> ContentType:
    """
    Look up the content type for `path` by its (case-sensitive) extension.
    Unknown extensions fall back to `application/octet-stream`.
    """
    return CONTENT_TYPES.get(_extension(path), DEFAULT_CONTENT_TYPE)


def get_content_type(path: str, text_encoding: str = DEFAULT_TEXT_ENCODING) -> str:
    """
    Return the `Content-Type` header value for `path`, e.g. `text/html;charset=UTF-8`.
    Pass `text_encoding="none"` to omit the charset on text types.
    """
    content_type = classify(path)
    if content_type.is_text and text_encoding != NO_CHARSET:
        return f"{content_type.mime};charset={text_encoding}"
    return content_type.mime
