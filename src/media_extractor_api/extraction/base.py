"""Capability interfaces every platform extractor implements."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .cancel import CancelToken
from .exceptions import InvalidCursorError, ParsingError
from .items import InfoItemsPage
from .page import Page

if TYPE_CHECKING:
    from media_extractor_api.services.adapters.base import StreamingService
    from media_extractor_api.services.downloader import Downloader

logger = logging.getLogger(__name__)

ITEM_COUNT_UNKNOWN = -1
ITEM_COUNT_INFINITE = -2


class PlaylistType(Enum):
    """How a playlist's contents come to exist.

    ``NORMAL`` lists are curated and end. Every other value is a mix the
    platform generates on the fly (related to a stream, to music, to a
    channel, or to a genre) and has no natural end.
    """
    NORMAL = "normal"
    MIX_STREAM = "mix_stream"
    MIX_MUSIC = "mix_music"
    MIX_CHANNEL = "mix_channel"
    MIX_GENRE = "mix_genre"

    @property
    def is_mix(self) -> bool:
        return self is not PlaylistType.NORMAL


@dataclass(frozen=True)
class ExtractorHandle:
    """Identifies one extraction target."""
    service_id: int
    id: str
    url: str
    original_url: str


class Extractor(ABC):
    """Base for all extractors.

    ``fetch_page()`` must be called once before any accessor. It performs the
    network fetch and initial parse, and fails the whole extraction when the
    primary content cannot be obtained.
    """

    def __init__(
        self,
        service: "StreamingService",
        handle: ExtractorHandle,
        downloader: "Downloader",
        cancel_token: Optional[CancelToken] = None,
    ):
        self.service = service
        self.handle = handle
        self.downloader = downloader
        self.cancel_token = cancel_token
        self._page_fetched = False

    def fetch_page(self) -> None:
        if self._page_fetched:
            return
        logger.debug("Fetching %s (service %s)", self.handle.url, self.service_id)
        self.on_fetch_page(self.downloader)
        self._page_fetched = True

    @abstractmethod
    def on_fetch_page(self, downloader: "Downloader") -> None:
        ...

    def assert_page_fetched(self) -> None:
        if not self._page_fetched:
            raise ParsingError("Page not fetched")

    @property
    def is_page_fetched(self) -> bool:
        return self._page_fetched

    @property
    def service_id(self) -> int:
        return self.service.service_id

    def get_id(self) -> str:
        return self.handle.id

    def get_url(self) -> str:
        return self.handle.url

    def get_original_url(self) -> str:
        return self.handle.original_url

    @abstractmethod
    def get_name(self) -> str:
        ...


class ListExtractor(Extractor):
    """An extractor whose content is a paginated list of items."""

    @abstractmethod
    def get_initial_page(self) -> InfoItemsPage:
        ...

    @abstractmethod
    def get_page(self, page: Optional[Page]) -> InfoItemsPage:
        ...

    def check_page(self, page: Optional[Page]) -> Page:
        """Reject cursors this extractor did not produce.

        Raises:
            InvalidCursorError: If the page is empty or belongs to another service.
        """
        if not Page.is_valid(page):
            raise InvalidCursorError("Page doesn't contain a URL")
        if page.service_id is not None and page.service_id != self.service_id:
            raise InvalidCursorError(
                f"Cursor from service {page.service_id} passed to service {self.service_id}"
            )
        return page

    def new_page(self, url: str, extra=None, **kwargs) -> Page:
        """Build a cursor stamped with this extractor's service identity."""
        headers = kwargs.pop("headers", None)
        if headers:
            kwargs["headers"] = {name: list(values) for name, values in headers.items()}
        return Page(url=url, service_id=self.service_id, extra=extra, **kwargs)


class PlaylistExtractor(ListExtractor):
    """Accessors a playlist-like list exposes beyond its items."""

    @abstractmethod
    def get_thumbnail_url(self) -> str:
        ...

    @abstractmethod
    def get_uploader_url(self) -> str:
        ...

    @abstractmethod
    def get_uploader_name(self) -> str:
        ...

    @abstractmethod
    def get_uploader_avatar_url(self) -> str:
        ...

    @abstractmethod
    def get_stream_count(self) -> int:
        ...

    def is_uploader_verified(self) -> bool:
        return False

    def get_banner_url(self) -> str:
        return ""

    def get_sub_channel_url(self) -> str:
        return ""

    def get_sub_channel_name(self) -> str:
        return ""

    def get_sub_channel_avatar_url(self) -> str:
        return ""

    def get_playlist_type(self) -> PlaylistType:
        return PlaylistType.NORMAL
