"""Utility functions."""
from typing import Any, Optional
from urllib.parse import parse_qs, urljoin, urlparse

from media_extractor_api.extraction.exceptions import ParsingError

_MISSING = object()


def json_path(obj: Any, path: str, default: Any = _MISSING) -> Any:
    """Follow a dotted path (``"data.meta.0.name"``) through dicts and lists.

    Raises:
        ParsingError: If a segment is missing and no default was given.
    """
    current = obj
    for segment in path.split("."):
        try:
            if isinstance(current, list):
                current = current[int(segment)]
            elif isinstance(current, dict):
                current = current[segment]
            else:
                raise KeyError(segment)
        except (KeyError, IndexError, ValueError):
            if default is not _MISSING:
                return default
            raise ParsingError(f"Missing '{segment}' in path '{path}'")
        if current is None and default is not _MISSING:
            return default
    if current is None:
        raise ParsingError(f"Null value at path '{path}'")
    return current


def to_int(s: Any) -> Optional[int]:
    """Convert a value to int, returning None if conversion fails."""
    try:
        return int(s) if s is not None else None
    except (TypeError, ValueError):
        return None


def https_url(url: str) -> str:
    """Upgrade protocol-relative and plain-http URLs to https."""
    if url.startswith("//"):
        return "https:" + url
    if url.startswith("http:"):
        return "https:" + url[len("http:"):]
    return url


def absolute_url(base: str, path: str) -> str:
    """Resolve ``path`` against ``base`` (an instance root or page URL)."""
    return urljoin(base.rstrip("/") + "/", path)


def query_param(url: str, name: str) -> Optional[str]:
    """Return the first value of a query parameter, or None."""
    values = parse_qs(urlparse(url).query).get(name)
    return values[0] if values else None
