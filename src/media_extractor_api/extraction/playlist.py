"""Playlist metadata aggregation and the public entry points for playlists."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .aggregator import FieldKind, FieldStep, aggregate
from .base import ITEM_COUNT_INFINITE, PlaylistExtractor, PlaylistType
from .cancel import CancelToken
from .helper import get_items_full_page_or_log_error, get_items_page_or_log_error
from .items import InfoItemsPage, StreamInfoItem
from .page import Page

if TYPE_CHECKING:
    from media_extractor_api.services.downloader import Downloader
    from media_extractor_api.services.url_router import ServiceRegistry

logger = logging.getLogger(__name__)

IDENTITY_STEPS = (
    FieldStep("id", "get_id", FieldKind.CRITICAL),
    FieldStep("url", "get_url", FieldKind.CRITICAL),
    FieldStep("name", "get_name", FieldKind.CRITICAL),
)

# Declaration order is the order errors are reported in.
PLAYLIST_FIELD_STEPS = (
    FieldStep("original_url", "get_original_url"),
    FieldStep("stream_count", "get_stream_count", default=0),
    FieldStep("thumbnail_url", "get_thumbnail_url"),
    FieldStep("uploader_url", "get_uploader_url", FieldKind.UPLOADER_GROUP),
    FieldStep("uploader_name", "get_uploader_name", FieldKind.UPLOADER_GROUP),
    FieldStep("uploader_avatar_url", "get_uploader_avatar_url", FieldKind.UPLOADER_GROUP),
    FieldStep("sub_channel_url", "get_sub_channel_url", FieldKind.UPLOADER_GROUP),
    FieldStep("sub_channel_name", "get_sub_channel_name", FieldKind.UPLOADER_GROUP),
    FieldStep("sub_channel_avatar_url", "get_sub_channel_avatar_url", FieldKind.UPLOADER_GROUP),
    FieldStep("banner_url", "get_banner_url"),
    FieldStep("playlist_type", "get_playlist_type", default=None),
)


def describe_error(error: BaseException) -> Dict[str, Any]:
    """Flatten an error (and its direct cause) into comparable data."""
    cause = error.__cause__
    return {
        "type": type(error).__name__,
        "message": str(error),
        "field": getattr(error, "field", None),
        "cause": f"{type(cause).__name__}: {cause}" if cause is not None else None,
    }


def is_mix(info: "PlaylistInfo", extractor: PlaylistExtractor) -> bool:
    """Whether the list is an endless mix.

    The type accessor can fail, so the infinite stream count and the
    service's mix-id check are consulted as well.
    """
    if info.playlist_type is not None and info.playlist_type.is_mix:
        return True
    if info.stream_count == ITEM_COUNT_INFINITE:
        return True
    return extractor.service.is_mix_id(info.id)


@dataclass
class PlaylistInfo:
    """Normalized playlist metadata plus the items of the fetched page(s).

    A populated info can still carry ``errors``: those are failures judged
    significant while aggregating, and callers should inspect them.
    ``next_page`` is None only when the platform has no further pages.
    """
    service_id: int
    id: str
    url: str
    name: str
    original_url: str = ""
    thumbnail_url: str = ""
    banner_url: str = ""
    uploader_url: str = ""
    uploader_name: str = ""
    uploader_avatar_url: str = ""
    sub_channel_url: str = ""
    sub_channel_name: str = ""
    sub_channel_avatar_url: str = ""
    stream_count: int = 0
    playlist_type: Optional[PlaylistType] = None
    related_items: List[StreamInfoItem] = field(default_factory=list)
    next_page: Optional[Page] = None
    errors: List[Exception] = field(default_factory=list)

    def has_next_page(self) -> bool:
        return Page.is_valid(self.next_page)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_id": self.service_id,
            "id": self.id,
            "url": self.url,
            "name": self.name,
            "original_url": self.original_url,
            "thumbnail_url": self.thumbnail_url,
            "banner_url": self.banner_url,
            "uploader_url": self.uploader_url,
            "uploader_name": self.uploader_name,
            "uploader_avatar_url": self.uploader_avatar_url,
            "sub_channel_url": self.sub_channel_url,
            "sub_channel_name": self.sub_channel_name,
            "sub_channel_avatar_url": self.sub_channel_avatar_url,
            "stream_count": self.stream_count,
            "playlist_type": self.playlist_type.value if self.playlist_type else None,
            "related_items": [item.to_dict() for item in self.related_items],
            "next_page": self.next_page.to_dict() if self.next_page else None,
            "errors": [describe_error(e) for e in self.errors],
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @staticmethod
    def get_info(
        registry: "ServiceRegistry",
        url: str,
        downloader: "Downloader",
        with_full_list: bool = False,
        cancel_token: Optional[CancelToken] = None,
    ) -> "PlaylistInfo":
        """Resolve ``url`` to a service, fetch it and aggregate a ``PlaylistInfo``.

        With ``with_full_list`` every page is fetched, except for mixes, which
        only ever get their first page.

        Raises:
            NoMatchingServiceError: If no registered service accepts the URL.
            CriticalExtractionError: If identity fields are unavailable.
            NetworkError: On transport failure or cancellation.
        """
        service = registry.get_service_by_url(url)
        extractor = service.get_playlist_extractor(url, downloader, cancel_token)
        extractor.fetch_page()
        if with_full_list:
            return PlaylistInfo.get_info_with_full_items(extractor)
        return PlaylistInfo.get_info_from_extractor(extractor)

    @staticmethod
    def get_more_items(
        registry: "ServiceRegistry",
        url: str,
        page: Page,
        downloader: "Downloader",
        cancel_token: Optional[CancelToken] = None,
    ) -> InfoItemsPage:
        """Fetch the page ``page`` points at.

        Raises:
            InvalidCursorError: If ``page`` was not produced by the URL's service.
        """
        service = registry.get_service_by_url(url)
        extractor = service.get_playlist_extractor(url, downloader, cancel_token)
        return extractor.get_page(page)

    @staticmethod
    def get_info_from_extractor(
        extractor: PlaylistExtractor, should_fetch_page: bool = True
    ) -> "PlaylistInfo":
        """Build a ``PlaylistInfo`` from an extractor whose page is already fetched."""
        identity = aggregate(extractor, IDENTITY_STEPS)
        info = PlaylistInfo(service_id=extractor.service_id, **identity.values)

        fields = aggregate(extractor, PLAYLIST_FIELD_STEPS, target=info)
        info.errors.extend(fields.surfaced_errors())

        if should_fetch_page:
            page = get_items_page_or_log_error(info, extractor)
            info.related_items = page.items
            info.next_page = page.next_page
        return info

    @staticmethod
    def get_info_with_full_items(extractor: PlaylistExtractor) -> "PlaylistInfo":
        info = PlaylistInfo.get_info_from_extractor(extractor, should_fetch_page=False)
        if is_mix(info, extractor):
            logger.debug("%s is a mix; fetching its first page only", info.url)
            page = get_items_page_or_log_error(info, extractor)
            info.related_items = page.items
            info.next_page = page.next_page
        else:
            page = get_items_full_page_or_log_error(info, extractor)
            info.related_items = page.items
            info.next_page = None
        return info


__all__ = [
    "PlaylistInfo",
    "PlaylistType",
    "IDENTITY_STEPS",
    "PLAYLIST_FIELD_STEPS",
    "describe_error",
    "is_mix",
]
