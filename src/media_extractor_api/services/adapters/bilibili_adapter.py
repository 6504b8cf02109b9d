"""Bilibili platform adapter: uploader collections and related-video mixes."""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode

from media_extractor_api.config import settings
from media_extractor_api.extraction.base import (
    ITEM_COUNT_INFINITE,
    ExtractorHandle,
    PlaylistExtractor,
    PlaylistType,
)
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
from media_extractor_api.services.downloader import Downloader, Response
from media_extractor_api.utils import https_url, json_path, query_param, to_int
from .base import StreamingService

logger = logging.getLogger(__name__)

API_BASE = "https://api.bilibili.com"
COLLECTION_ARCHIVES_URL = f"{API_BASE}/x/polymer/web-space/seasons_archives_list"
VIDEO_VIEW_URL = f"{API_BASE}/x/web-interface/view"
RELATED_URL = f"{API_BASE}/x/web-interface/archive/related"

HEADERS = {"Referer": ["https://www.bilibili.com/"]}

# API codes meaning the content is gone or hidden rather than malformed.
_UNAVAILABLE_CODES = {-404, 62002, 62004, 62012}

# Bounds the size of a mix cursor.
MAX_SEEN_IDS = 200

MIX_ID_PREFIX = "RD"


def api_data(response: Response) -> Any:
    """Unwrap Bilibili's ``{code, message, data}`` envelope.

    Raises:
        ContentNotAvailableError: For codes that mean missing or private content.
        ParsingError: For any other non-zero code or a malformed body.
    """
    payload = response.json()
    code = to_int(json_path(payload, "code"))
    if code in _UNAVAILABLE_CODES:
        raise ContentNotAvailableError(f"Bilibili content unavailable: {payload.get('message')}")
    if code != 0:
        raise ParsingError(f"Bilibili API error {code}: {payload.get('message')}")
    return json_path(payload, "data", None)


def video_url(bvid: str) -> str:
    return f"https://www.bilibili.com/video/{bvid}"


def space_url(mid: Any) -> str:
    return f"https://space.bilibili.com/{mid}"


class BilibiliFeedItemExtractor(StreamInfoItemExtractor):
    """Reads one video object as returned by feed, related and archive endpoints."""

    def __init__(self, item: Dict[str, Any]):
        self.item = item

    def get_name(self) -> str:
        return json_path(self.item, "title")

    def get_url(self) -> str:
        uri = self.item.get("uri")
        if uri:
            return https_url(uri)
        return video_url(json_path(self.item, "bvid"))

    def get_thumbnail_url(self) -> str:
        return https_url(json_path(self.item, "pic"))

    def get_stream_type(self) -> StreamType:
        return StreamType.VIDEO_STREAM

    def get_duration(self) -> int:
        return int(json_path(self.item, "duration"))

    def get_view_count(self) -> int:
        return int(json_path(self.item, "stat.view"))

    def get_uploader_name(self) -> str:
        return json_path(self.item, "owner.name")

    def get_uploader_url(self) -> str:
        return space_url(json_path(self.item, "owner.mid"))

    def get_uploader_avatar_url(self) -> str:
        return https_url(json_path(self.item, "owner.face"))

    def get_textual_upload_date(self) -> str:
        return self.get_upload_date().strftime("%Y-%m-%d %H:%M:%S")

    def get_upload_date(self) -> Optional[datetime]:
        return datetime.fromtimestamp(int(json_path(self.item, "pubdate")), tz=timezone.utc)


class BilibiliArchiveItemExtractor(BilibiliFeedItemExtractor):
    """Collection archives carry no owner; the collection's uploader is used."""

    def __init__(self, item: Dict[str, Any], mid: Any):
        super().__init__(item)
        self.mid = mid

    def get_uploader_name(self) -> str:
        return ""

    def get_uploader_url(self) -> str:
        return space_url(self.mid)

    def get_uploader_avatar_url(self) -> str:
        return ""


class BilibiliCollectionExtractor(PlaylistExtractor):
    """An uploader's collection ("season"), paged by ``page_num``.

    The archives endpoint exposes the owner's id but not their name or avatar.
    """

    def __init__(self, service, handle, downloader, cancel_token=None, mid: str = "", page_size: Optional[int] = None):
        super().__init__(service, handle, downloader, cancel_token)
        self.mid = mid
        self.page_size = page_size or settings.BILIBILI_PAGE_SIZE
        self._first: Dict[str, Any] = {}

    def _archives_url(self, page_num: int) -> str:
        query = urlencode({
            "mid": self.mid,
            "season_id": self.get_id(),
            "sort_reverse": "false",
            "page_num": page_num,
            "page_size": self.page_size,
        })
        return f"{COLLECTION_ARCHIVES_URL}?{query}"

    def on_fetch_page(self, downloader: Downloader) -> None:
        response = downloader.get(self._archives_url(1), headers=HEADERS, cancel_token=self.cancel_token)
        self._first = api_data(response)

    @property
    def meta(self) -> Dict[str, Any]:
        self.assert_page_fetched()
        return json_path(self._first, "meta")

    def get_name(self) -> str:
        return json_path(self.meta, "name")

    def get_thumbnail_url(self) -> str:
        return https_url(json_path(self.meta, "cover"))

    def get_uploader_url(self) -> str:
        return space_url(json_path(self.meta, "mid"))

    def get_uploader_name(self) -> str:
        raise ParsingError("Collection response has no uploader name")

    def get_uploader_avatar_url(self) -> str:
        raise ParsingError("Collection response has no uploader avatar")

    def get_sub_channel_url(self) -> str:
        raise ParsingError("Bilibili collections have no sub-channel")

    def get_sub_channel_name(self) -> str:
        raise ParsingError("Bilibili collections have no sub-channel")

    def get_sub_channel_avatar_url(self) -> str:
        raise ParsingError("Bilibili collections have no sub-channel")

    def get_stream_count(self) -> int:
        return int(json_path(self.meta, "total"))

    def get_initial_page(self) -> InfoItemsPage:
        return self.get_page(self.new_page(self._archives_url(1), headers=HEADERS))

    def get_page(self, page: Optional[Page]) -> InfoItemsPage:
        page = self.check_page(page)
        if not page.url.startswith(COLLECTION_ARCHIVES_URL) or query_param(page.url, "season_id") != self.get_id():
            raise InvalidCursorError(f"Cursor does not belong to collection {self.get_id()}")
        page_num = to_int(query_param(page.url, "page_num"))
        if page_num is None:
            raise InvalidCursorError(f"Cursor has no page number: {page.url}")

        if page_num == 1 and self._first:
            data = self._first
        else:
            response = self.downloader.get(
                page.url, headers=page.headers, cookies=page.cookies, cancel_token=self.cancel_token
            )
            data = api_data(response)
        if not isinstance(data, dict):
            raise ParsingError(f"Collection page has no data: {page.url}")

        collector = StreamInfoItemsCollector(self.service_id)
        for archive in data.get("archives") or []:
            collector.commit(BilibiliArchiveItemExtractor(archive, self.mid))

        total = int(json_path(data, "page.total"))
        page_size = int(json_path(data, "page.page_size"))
        next_page = None
        if page_num * page_size < total:
            next_page = self.new_page(self._archives_url(page_num + 1), headers=HEADERS)
        return InfoItemsPage.from_collector(collector, next_page)


class BilibiliMixExtractor(PlaylistExtractor):
    """Videos related to a seed video, chained page after page.

    Every page is the related list of the previous page's last new video, so
    the mix never ends. The cursor's ``extra`` holds the seed and the ids
    already returned, which are skipped on later pages.
    """

    def __init__(self, service, handle, downloader, cancel_token=None, bvid: str = ""):
        super().__init__(service, handle, downloader, cancel_token)
        self.bvid = bvid
        self._seed: Dict[str, Any] = {}

    def on_fetch_page(self, downloader: Downloader) -> None:
        response = downloader.get(
            f"{VIDEO_VIEW_URL}?{urlencode({'bvid': self.bvid})}",
            headers=HEADERS,
            cancel_token=self.cancel_token,
        )
        self._seed = api_data(response)

    @property
    def seed(self) -> Dict[str, Any]:
        self.assert_page_fetched()
        return self._seed

    def get_name(self) -> str:
        return f"Mix - {json_path(self.seed, 'title')}"

    def get_thumbnail_url(self) -> str:
        return https_url(json_path(self.seed, "pic"))

    # Mixes are generated by the platform and belong to nobody.
    def get_uploader_url(self) -> str:
        raise ParsingError("Mixes have no uploader")

    def get_uploader_name(self) -> str:
        raise ParsingError("Mixes have no uploader")

    def get_uploader_avatar_url(self) -> str:
        raise ParsingError("Mixes have no uploader")

    def get_sub_channel_url(self) -> str:
        raise ParsingError("Mixes have no sub-channel")

    def get_sub_channel_name(self) -> str:
        raise ParsingError("Mixes have no sub-channel")

    def get_sub_channel_avatar_url(self) -> str:
        raise ParsingError("Mixes have no sub-channel")

    def get_stream_count(self) -> int:
        return ITEM_COUNT_INFINITE

    def get_playlist_type(self) -> PlaylistType:
        return PlaylistType.MIX_STREAM

    def _related_page(self, bvid: str, seen: List[str]) -> Page:
        return self.new_page(
            f"{RELATED_URL}?{urlencode({'bvid': bvid})}",
            headers=HEADERS,
            extra={"seed": self.bvid, "seen": seen[-MAX_SEEN_IDS:]},
        )

    def get_initial_page(self) -> InfoItemsPage:
        return self.get_page(self._related_page(self.bvid, [self.bvid]))

    def get_page(self, page: Optional[Page]) -> InfoItemsPage:
        page = self.check_page(page)
        extra = page.extra
        if not isinstance(extra, dict) or extra.get("seed") != self.bvid or not isinstance(extra.get("seen"), list):
            raise InvalidCursorError(f"Cursor does not belong to mix {self.get_id()}")
        if not page.url.startswith(RELATED_URL):
            raise InvalidCursorError(f"Unexpected mix cursor URL: {page.url}")

        response = self.downloader.get(
            page.url, headers=page.headers, cookies=page.cookies, cancel_token=self.cancel_token
        )
        related = api_data(response) or []
        if not isinstance(related, list):
            raise ParsingError(f"Related list is not a list: {page.url}")

        seen: List[str] = list(extra["seen"])
        collector = StreamInfoItemsCollector(self.service_id)
        last_new: Optional[str] = None
        for item in related:
            bvid = item.get("bvid") if isinstance(item, dict) else None
            if bvid in seen:
                continue
            collector.commit(BilibiliFeedItemExtractor(item))
            if bvid:
                seen.append(bvid)
                last_new = bvid

        next_page = self._related_page(last_new, seen) if last_new else None
        return InfoItemsPage.from_collector(collector, next_page)


class BilibiliService(StreamingService):
    service_id = 5
    playlist_url_patterns = [
        re.compile(
            r"^https?://space\.bilibili\.com/(?P<mid>\d+)/channel/collectiondetail\?(?:.*&)?sid=(?P<sid>\d+)"
        ),
        re.compile(r"^https?://(?:www\.)?bilibili\.com/list/(?P<mid>\d+)\?(?:.*&)?sid=(?P<sid>\d+)"),
        re.compile(r"^https?://(?:www\.)?bilibili\.com/list/mix\?(?:.*&)?bvid=(?P<bvid>BV[0-9A-Za-z]{10})"),
    ]

    def __init__(self, page_size: Optional[int] = None):
        self.page_size = page_size

    @staticmethod
    def platform_name() -> str:
        return "bilibili"

    def is_mix_id(self, playlist_id: str) -> bool:
        return playlist_id.startswith(MIX_ID_PREFIX)

    def canonicalize(self, match) -> Tuple[str, str]:
        groups = match.groupdict()
        if groups.get("bvid"):
            bvid = groups["bvid"]
            return f"{MIX_ID_PREFIX}{bvid}", f"https://www.bilibili.com/list/mix?bvid={bvid}"
        mid, sid = groups["mid"], groups["sid"]
        return sid, f"https://space.bilibili.com/{mid}/channel/collectiondetail?sid={sid}"

    def get_playlist_extractor(
        self,
        url: str,
        downloader: Downloader,
        cancel_token: Optional[CancelToken] = None,
    ) -> PlaylistExtractor:
        handle: ExtractorHandle = self.get_playlist_handle(url)
        groups = self.match_playlist_url(url).groupdict()
        if groups.get("bvid"):
            return BilibiliMixExtractor(self, handle, downloader, cancel_token, bvid=groups["bvid"])
        return BilibiliCollectionExtractor(
            self, handle, downloader, cancel_token, mid=groups["mid"], page_size=self.page_size
        )
