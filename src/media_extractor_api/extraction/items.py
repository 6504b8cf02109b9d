"""List items, their per-item extractors, and result pages."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .aggregator import FieldKind, FieldStep, aggregate
from .exceptions import ExtractionError, NetworkError
from .page import Page

logger = logging.getLogger(__name__)


class StreamType(Enum):
    NONE = "none"
    VIDEO_STREAM = "video_stream"
    AUDIO_STREAM = "audio_stream"
    LIVE_STREAM = "live_stream"
    AUDIO_LIVE_STREAM = "audio_live_stream"


@dataclass
class StreamInfoItem:
    """A stream as it appears inside a list."""
    service_id: int
    url: str
    name: str
    stream_type: StreamType = StreamType.NONE
    thumbnail_url: str = ""
    duration: int = -1
    view_count: int = -1
    uploader_name: str = ""
    uploader_url: str = ""
    uploader_avatar_url: str = ""
    uploader_verified: bool = False
    textual_upload_date: str = ""
    upload_date: Optional[datetime] = None
    is_ad: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["stream_type"] = self.stream_type.value
        data["upload_date"] = self.upload_date.isoformat() if self.upload_date else None
        return data


class StreamInfoItemExtractor(ABC):
    """Accessors for one item of a platform list response."""

    @abstractmethod
    def get_name(self) -> str:
        ...

    @abstractmethod
    def get_url(self) -> str:
        ...

    def get_stream_type(self) -> StreamType:
        return StreamType.VIDEO_STREAM

    def get_thumbnail_url(self) -> str:
        return ""

    def get_duration(self) -> int:
        return -1

    def get_view_count(self) -> int:
        return -1

    def get_uploader_name(self) -> str:
        return ""

    def get_uploader_url(self) -> str:
        return ""

    def get_uploader_avatar_url(self) -> str:
        return ""

    def is_uploader_verified(self) -> bool:
        return False

    def get_textual_upload_date(self) -> str:
        return ""

    def get_upload_date(self) -> Optional[datetime]:
        return None

    def is_ad(self) -> bool:
        return False


ITEM_FIELD_STEPS = (
    FieldStep("url", "get_url", FieldKind.CRITICAL),
    FieldStep("name", "get_name", FieldKind.CRITICAL),
    FieldStep("stream_type", "get_stream_type", default=StreamType.NONE),
    FieldStep("thumbnail_url", "get_thumbnail_url"),
    FieldStep("duration", "get_duration", default=-1),
    FieldStep("view_count", "get_view_count", default=-1),
    FieldStep("uploader_name", "get_uploader_name"),
    FieldStep("uploader_url", "get_uploader_url"),
    FieldStep("uploader_avatar_url", "get_uploader_avatar_url"),
    FieldStep("uploader_verified", "is_uploader_verified", default=False),
    FieldStep("textual_upload_date", "get_textual_upload_date"),
    FieldStep("upload_date", "get_upload_date", default=None),
    FieldStep("is_ad", "is_ad", default=False),
)


class StreamInfoItemsCollector:
    """Turns item extractors into ``StreamInfoItem``s, keeping per-item errors.

    An item whose URL or name cannot be read is dropped; any other failing
    field keeps its default. Either way the error is recorded.
    """

    def __init__(self, service_id: int):
        self.service_id = service_id
        self.items: List[StreamInfoItem] = []
        self.errors: List[Exception] = []

    def extract(self, extractor: StreamInfoItemExtractor) -> StreamInfoItem:
        accumulator = aggregate(extractor, ITEM_FIELD_STEPS)
        self.errors.extend(accumulator.surfaced_errors())
        return StreamInfoItem(service_id=self.service_id, **accumulator.values)

    def commit(self, extractor: StreamInfoItemExtractor) -> None:
        try:
            item = self.extract(extractor)
        except NetworkError:
            raise
        except ExtractionError as e:
            logger.debug("Dropping list item: %s", e)
            self.errors.append(e)
            return
        self.items.append(item)


@dataclass
class InfoItemsPage:
    """One page of a list: its items, the cursor to the next page, and item errors."""
    items: List[StreamInfoItem] = field(default_factory=list)
    next_page: Optional[Page] = None
    errors: List[Exception] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "InfoItemsPage":
        return cls()

    @classmethod
    def from_collector(
        cls, collector: StreamInfoItemsCollector, next_page: Optional[Page]
    ) -> "InfoItemsPage":
        return cls(
            items=list(collector.items),
            next_page=next_page,
            errors=list(collector.errors),
        )

    def has_next_page(self) -> bool:
        return Page.is_valid(self.next_page)
