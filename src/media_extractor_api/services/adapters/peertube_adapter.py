"""PeerTube platform adapter: video playlists on any PeerTube instance."""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlencode

from media_extractor_api.config import settings
from media_extractor_api.extraction.base import ExtractorHandle, PlaylistExtractor
from media_extractor_api.extraction.cancel import CancelToken
from media_extractor_api.extraction.exceptions import (
    ContentNotAvailableError,
    InvalidCursorError,
    ParsingError,
)
from media_extractor_api.extraction.items import (
    InfoItemsPage,
    StreamInfoItemExtractor,
    StreamInfoItemsCollector,
    StreamType,
)
from media_extractor_api.extraction.page import Page
from media_extractor_api.services.downloader import Downloader
from media_extractor_api.utils import absolute_url, json_path, query_param, to_int
from .base import StreamingService

logger = logging.getLogger(__name__)


def _pick_image(owner: Dict[str, Any], plural: str, singular: str) -> str:
    """Return the path of the widest image in ``owner[plural]``, or ``owner[singular]``.

    Newer instances expose lists of sized images; older ones a single object.
    """
    images = owner.get(plural) or []
    if images:
        best = max(images, key=lambda image: image.get("width") or 0)
        return json_path(best, "path")
    single = owner.get(singular)
    if single:
        return json_path(single, "path")
    raise ParsingError(f"No {singular} found")


def _parse_date(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class PeertubeStreamItemExtractor(StreamInfoItemExtractor):
    """Reads one ``video`` object from a playlist-elements response."""

    def __init__(self, element: Dict[str, Any], base_url: str):
        self.element = element
        self.base_url = base_url

    @property
    def video(self) -> Dict[str, Any]:
        # Deleted or private videos stay in the list with a null video.
        return json_path(self.element, "video")

    def get_name(self) -> str:
        return json_path(self.video, "name")

    def get_url(self) -> str:
        video = self.video
        short_id = video.get("shortUUID") or json_path(video, "uuid")
        return absolute_url(self.base_url, f"/w/{short_id}")

    def get_stream_type(self) -> StreamType:
        return StreamType.LIVE_STREAM if self.video.get("isLive") else StreamType.VIDEO_STREAM

    def get_thumbnail_url(self) -> str:
        return absolute_url(self.base_url, json_path(self.video, "thumbnailPath"))

    def get_duration(self) -> int:
        return int(json_path(self.video, "duration"))

    def get_view_count(self) -> int:
        return int(json_path(self.video, "views"))

    def get_uploader_name(self) -> str:
        return json_path(self.video, "account.displayName")

    def get_uploader_url(self) -> str:
        return json_path(self.video, "account.url")

    def get_uploader_avatar_url(self) -> str:
        account = json_path(self.video, "account")
        return absolute_url(self.base_url, _pick_image(account, "avatars", "avatar"))

    def get_textual_upload_date(self) -> str:
        return json_path(self.video, "publishedAt")

    def get_upload_date(self) -> Optional[datetime]:
        return _parse_date(self.get_textual_upload_date())


class PeertubePlaylistExtractor(PlaylistExtractor):
    """Playlist metadata from ``/api/v1/video-playlists/{id}``, items paged by ``start``."""

    def __init__(self, service, handle, downloader, cancel_token=None, page_size: Optional[int] = None):
        super().__init__(service, handle, downloader, cancel_token)
        self.base_url = re.match(r"https?://[^/]+", handle.url).group(0)
        self.page_size = page_size or settings.PEERTUBE_PAGE_SIZE
        self._data: Dict[str, Any] = {}

    @property
    def api_url(self) -> str:
        return f"{self.base_url}/api/v1/video-playlists/{self.get_id()}"

    def on_fetch_page(self, downloader: Downloader) -> None:
        response = downloader.get(self.api_url, tolerated_statuses=(404,), cancel_token=self.cancel_token)
        if response.status_code == 404:
            raise ContentNotAvailableError(f"PeerTube playlist {self.get_id()} not found")
        self._data = response.json()

    @property
    def data(self) -> Dict[str, Any]:
        self.assert_page_fetched()
        return self._data

    def get_name(self) -> str:
        return json_path(self.data, "displayName")

    def get_thumbnail_url(self) -> str:
        return absolute_url(self.base_url, json_path(self.data, "thumbnailPath"))

    def get_uploader_url(self) -> str:
        return json_path(self.data, "ownerAccount.url")

    def get_uploader_name(self) -> str:
        return json_path(self.data, "ownerAccount.displayName")

    def get_uploader_avatar_url(self) -> str:
        owner = json_path(self.data, "ownerAccount")
        return absolute_url(self.base_url, _pick_image(owner, "avatars", "avatar"))

    def get_sub_channel_url(self) -> str:
        return json_path(self.data, "videoChannel.url")

    def get_sub_channel_name(self) -> str:
        return json_path(self.data, "videoChannel.displayName")

    def get_sub_channel_avatar_url(self) -> str:
        channel = json_path(self.data, "videoChannel")
        return absolute_url(self.base_url, _pick_image(channel, "avatars", "avatar"))

    def get_banner_url(self) -> str:
        channel = self.data.get("videoChannel") or {}
        if not channel.get("banners"):
            return ""
        return absolute_url(self.base_url, _pick_image(channel, "banners", "banner"))

    def get_stream_count(self) -> int:
        return int(json_path(self.data, "videosLength"))

    def _videos_url(self, start: int) -> str:
        query = urlencode({"start": start, "count": self.page_size})
        return f"{self.api_url}/videos?{query}"

    def get_initial_page(self) -> InfoItemsPage:
        return self.get_page(self.new_page(self._videos_url(0)))

    def get_page(self, page: Optional[Page]) -> InfoItemsPage:
        page = self.check_page(page)
        if not page.url.startswith(f"{self.api_url}/videos"):
            raise InvalidCursorError(f"Cursor does not belong to playlist {self.get_id()}")
        start = to_int(query_param(page.url, "start"))
        count = to_int(query_param(page.url, "count"))
        if start is None or count is None:
            raise InvalidCursorError(f"Cursor has no start/count: {page.url}")

        response = self.downloader.get(
            page.url, headers=page.headers, cookies=page.cookies, cancel_token=self.cancel_token
        )
        payload = response.json()
        total = int(json_path(payload, "total"))

        collector = StreamInfoItemsCollector(self.service_id)
        for element in json_path(payload, "data"):
            collector.commit(PeertubeStreamItemExtractor(element, self.base_url))

        next_start = start + count
        next_page = self.new_page(self._videos_url(next_start)) if next_start < total else None
        return InfoItemsPage.from_collector(collector, next_page)


class PeertubeService(StreamingService):
    """PeerTube federation: playlist URLs are recognised on any host."""

    service_id = 3
    playlist_url_patterns = [
        re.compile(
            r"^(?P<base>https?://[^/?#]+)/(?:w/p|videos/watch/playlist|video-playlists)/"
            r"(?P<id>[0-9A-Za-z-]+)/?(?:[?#].*)?$"
        ),
    ]

    def __init__(self, page_size: Optional[int] = None):
        self.page_size = page_size

    @staticmethod
    def platform_name() -> str:
        return "peertube"

    def canonicalize(self, match) -> Tuple[str, str]:
        playlist_id = match.group("id")
        return playlist_id, f"{match.group('base')}/w/p/{playlist_id}"

    def get_playlist_extractor(
        self,
        url: str,
        downloader: Downloader,
        cancel_token: Optional[CancelToken] = None,
    ) -> PeertubePlaylistExtractor:
        handle: ExtractorHandle = self.get_playlist_handle(url)
        return PeertubePlaylistExtractor(self, handle, downloader, cancel_token, self.page_size)
