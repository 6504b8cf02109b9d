"""Extraction core: aggregation of extractor fields and list pagination."""
from .base import ExtractorHandle, Extractor, ListExtractor, PlaylistExtractor, PlaylistType
from .cancel import CancelToken
from .exceptions import (
    ContentNotAvailableError,
    CriticalExtractionError,
    ExtractionCancelled,
    ExtractionError,
    FieldExtractionError,
    HttpStatusError,
    InvalidCursorError,
    NetworkError,
    NoMatchingServiceError,
    ParsingError,
)
from .items import InfoItemsPage, StreamInfoItem, StreamInfoItemExtractor, StreamType
from .page import Page, PageEnvelope
from .playlist import PlaylistInfo

__all__ = [
    "CancelToken",
    "ContentNotAvailableError",
    "CriticalExtractionError",
    "ExtractionCancelled",
    "ExtractionError",
    "Extractor",
    "ExtractorHandle",
    "FieldExtractionError",
    "HttpStatusError",
    "InfoItemsPage",
    "InvalidCursorError",
    "ListExtractor",
    "NetworkError",
    "NoMatchingServiceError",
    "Page",
    "PageEnvelope",
    "ParsingError",
    "PlaylistExtractor",
    "PlaylistInfo",
    "PlaylistType",
    "StreamInfoItem",
    "StreamInfoItemExtractor",
    "StreamType",
]
