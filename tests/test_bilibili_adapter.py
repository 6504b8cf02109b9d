"""Tests for the Bilibili adapter: collections and related-video mixes."""
from datetime import datetime, timezone

import pytest

from media_extractor_api.extraction.base import ITEM_COUNT_INFINITE, PlaylistType
from media_extractor_api.extraction.exceptions import (
    ContentNotAvailableError,
    InvalidCursorError,
    ParsingError,
)
from media_extractor_api.extraction.page import Page
from media_extractor_api.extraction.playlist import PlaylistInfo
from media_extractor_api.services.adapters.bilibili_adapter import (
    COLLECTION_ARCHIVES_URL,
    HEADERS,
    RELATED_URL,
    VIDEO_VIEW_URL,
    BilibiliService,
)
from media_extractor_api.services.url_router import ServiceRegistry
from factories import FakeDownloader

COLLECTION_URL = "https://space.bilibili.com/42/channel/collectiondetail?sid=7"
MIX_URL = "https://www.bilibili.com/list/mix?bvid=BV1xx411c7mD"
SEED = "BV1xx411c7mD"


def _ok(data):
    return {"code": 0, "message": "0", "data": data}


def _archive(n: int) -> dict:
    return {
        "bvid": f"BV1aa411c7a{n}",
        "title": f"Episode {n}",
        "pic": f"http://i0.hdslb.com/bfs/archive/{n}.jpg",
        "duration": 120 + n,
        "stat": {"view": 1000 + n},
        "pubdate": 1700000000,
    }


def _related(bvid: str, title: str) -> dict:
    return {
        "bvid": bvid,
        "title": title,
        "pic": "//i1.hdslb.com/bfs/archive/r.jpg",
        "duration": 300,
        "stat": {"view": 77},
        "owner": {"mid": 9, "name": "Bob", "face": "http://i2.hdslb.com/face.jpg"},
        "pubdate": 1700000000,
    }


def _archives_url(page_num: int) -> str:
    return (
        f"{COLLECTION_ARCHIVES_URL}?mid=42&season_id=7&sort_reverse=false"
        f"&page_num={page_num}&page_size=2"
    )


def _related_url(bvid: str) -> str:
    return f"{RELATED_URL}?bvid={bvid}"


@pytest.fixture
def bilibili():
    registry = ServiceRegistry()
    registry.register(BilibiliService(page_size=2))
    downloader = FakeDownloader()
    meta = {"name": "Travel diary", "cover": "http://i0.hdslb.com/cover.jpg", "mid": 42, "total": 3}
    downloader.add_json(_archives_url(1), _ok({
        "archives": [_archive(1), _archive(2)],
        "meta": meta,
        "page": {"page_num": 1, "page_size": 2, "total": 3},
    }))
    downloader.add_json(_archives_url(2), _ok({
        "archives": [_archive(3)],
        "meta": meta,
        "page": {"page_num": 2, "page_size": 2, "total": 3},
    }))
    downloader.add_json(f"{VIDEO_VIEW_URL}?bvid={SEED}", _ok({"title": "Seed video", "pic": "http://i0.hdslb.com/seed.jpg"}))
    downloader.add_json(_related_url(SEED), _ok([
        _related(SEED, "Seed again"),
        _related("BV1bb411c7b1", "Related 1"),
        _related("BV1bb411c7b2", "Related 2"),
    ]))
    downloader.add_json(_related_url("BV1bb411c7b2"), _ok([
        _related("BV1bb411c7b1", "Related 1"),
        _related("BV1cc411c7c1", "Related 3"),
    ]))
    return registry, downloader


class TestCollection:
    def test_metadata_with_suppressed_uploader_group(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, COLLECTION_URL, downloader)

        assert info.service_id == 5
        assert info.id == "7"
        assert info.name == "Travel diary"
        assert info.thumbnail_url == "https://i0.hdslb.com/cover.jpg"
        assert info.stream_count == 3
        assert info.uploader_url == "https://space.bilibili.com/42"
        assert info.uploader_name == ""
        assert info.playlist_type is PlaylistType.NORMAL
        # five uploader-group fields are unavailable and nothing else failed
        assert info.errors == []

    def test_first_page_is_not_fetched_twice(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, COLLECTION_URL, downloader)

        assert [item.name for item in info.related_items] == ["Episode 1", "Episode 2"]
        assert downloader.urls() == [_archives_url(1)]
        assert info.next_page.url == _archives_url(2)

    def test_items(self, bilibili):
        registry, downloader = bilibili
        item = PlaylistInfo.get_info(registry, COLLECTION_URL, downloader).related_items[0]
        assert item.url == "https://www.bilibili.com/video/BV1aa411c7a1"
        assert item.thumbnail_url == "https://i0.hdslb.com/bfs/archive/1.jpg"
        assert item.duration == 121
        assert item.view_count == 1001
        assert item.uploader_url == "https://space.bilibili.com/42"
        assert item.upload_date == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
        assert item.textual_upload_date == "2023-11-14 22:13:20"

    def test_cursor_headers_are_private_copies(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, COLLECTION_URL, downloader)

        info.next_page.headers["Referer"].append("https://other.test/")
        info.next_page.headers["X-Extra"] = ["1"]

        assert HEADERS == {"Referer": ["https://www.bilibili.com/"]}
        again = PlaylistInfo.get_info(registry, COLLECTION_URL, downloader)
        assert again.next_page.headers == HEADERS

    def test_full_list(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, COLLECTION_URL, downloader, with_full_list=True)
        assert [item.name for item in info.related_items] == ["Episode 1", "Episode 2", "Episode 3"]
        assert info.next_page is None

    def test_missing_cover_surfaces_uploader_group(self, bilibili):
        registry, downloader = bilibili
        downloader.add_json(_archives_url(1), _ok({
            "archives": [],
            "meta": {"name": "No cover", "mid": 42, "total": 0},
            "page": {"page_num": 1, "page_size": 2, "total": 0},
        }))
        info = PlaylistInfo.get_info(registry, COLLECTION_URL, downloader)
        assert [e.field for e in info.errors] == [
            "thumbnail_url",
            "uploader_name",
            "uploader_avatar_url",
            "sub_channel_url",
            "sub_channel_name",
            "sub_channel_avatar_url",
        ]

    def test_cursor_for_other_collection_rejected(self, bilibili):
        registry, downloader = bilibili
        page = Page(
            url=f"{COLLECTION_ARCHIVES_URL}?mid=42&season_id=8&page_num=2&page_size=2",
            service_id=5,
        )
        with pytest.raises(InvalidCursorError):
            PlaylistInfo.get_more_items(registry, COLLECTION_URL, page, downloader)

    @pytest.mark.parametrize("code,error", [
        (-404, ContentNotAvailableError),
        (62004, ContentNotAvailableError),
        (-400, ParsingError),
    ])
    def test_api_error_codes(self, bilibili, code, error):
        registry, downloader = bilibili
        downloader.add_json(_archives_url(1), {"code": code, "message": "nope", "data": None})
        with pytest.raises(error):
            PlaylistInfo.get_info(registry, COLLECTION_URL, downloader)


class TestMix:
    def test_metadata(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, MIX_URL, downloader)

        assert info.id == f"RD{SEED}"
        assert info.name == "Mix - Seed video"
        assert info.playlist_type is PlaylistType.MIX_STREAM
        assert info.stream_count == ITEM_COUNT_INFINITE
        assert info.uploader_name == ""
        assert info.errors == []

    def test_seed_is_skipped(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, MIX_URL, downloader)
        assert [item.name for item in info.related_items] == ["Related 1", "Related 2"]
        assert info.related_items[0].uploader_name == "Bob"
        assert info.related_items[0].thumbnail_url == "https://i1.hdslb.com/bfs/archive/r.jpg"

    def test_full_list_fetches_one_page_and_keeps_cursor(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, MIX_URL, downloader, with_full_list=True)

        assert len(info.related_items) == 2
        assert downloader.urls().count(_related_url(SEED)) == 1
        assert _related_url("BV1bb411c7b2") not in downloader.urls()
        assert info.next_page.url == _related_url("BV1bb411c7b2")

    def test_next_page_skips_already_returned_videos(self, bilibili):
        registry, downloader = bilibili
        info = PlaylistInfo.get_info(registry, MIX_URL, downloader)
        cursor = Page.from_json(info.next_page.to_json())

        page = PlaylistInfo.get_more_items(registry, MIX_URL, cursor, downloader)

        assert [item.name for item in page.items] == ["Related 3"]
        assert page.next_page.extra["seen"] == [SEED, "BV1bb411c7b1", "BV1bb411c7b2", "BV1cc411c7c1"]

    def test_page_with_nothing_new_ends_the_mix(self, bilibili):
        registry, downloader = bilibili
        downloader.add_json(_related_url("BV1bb411c7b2"), _ok([_related("BV1bb411c7b1", "Related 1")]))
        info = PlaylistInfo.get_info(registry, MIX_URL, downloader)
        page = PlaylistInfo.get_more_items(registry, MIX_URL, info.next_page, downloader)
        assert page.items == []
        assert page.next_page is None

    def test_cursor_for_another_seed_rejected(self, bilibili):
        registry, downloader = bilibili
        page = Page(
            url=_related_url("BV1bb411c7b2"),
            service_id=5,
            extra={"seed": "BV1zz411c7zz", "seen": []},
        )
        with pytest.raises(InvalidCursorError):
            PlaylistInfo.get_more_items(registry, MIX_URL, page, downloader)

    def test_deleted_seed_video(self, bilibili):
        registry, downloader = bilibili
        downloader.add_json(f"{VIDEO_VIEW_URL}?bvid={SEED}", {"code": 62002, "message": "hidden"})
        with pytest.raises(ContentNotAvailableError):
            PlaylistInfo.get_info(registry, MIX_URL, downloader)
