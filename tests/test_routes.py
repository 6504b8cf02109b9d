"""Tests for the HTTP routes, wired to fake services through create_app()."""
import pytest

from media_extractor_api.extraction.exceptions import ExtractionCancelled, NetworkError
from media_extractor_api.extraction.page import Page
from media_extractor_api.services.adapters.peertube_adapter import PeertubeService
from media_extractor_api.services.url_router import ServiceRegistry
from factories import UPLOADER_GROUP, make_items

FAKE_URL = "https://fake.test/playlist/PL1"
PEERTUBE_URL = "https://tube.example/w/p/abc"
PEERTUBE_API = "https://tube.example/api/v1/video-playlists/abc"


@pytest.fixture
def client(make_registry, make_client):
    registry, _ = make_registry(pages=[make_items(0, 2), make_items(1, 1)])
    return make_client(registry)


@pytest.fixture
def peertube_client(make_client, downloader):
    registry = ServiceRegistry()
    registry.register(PeertubeService())
    return make_client(registry), downloader


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_services(client):
    response = client.get("/services")
    assert response.status_code == 200
    assert response.json() == [
        {"service_id": 99, "name": "fake"},
        {"service_id": 98, "name": "other"},
    ]


class TestPlaylist:
    def test_first_page(self, client):
        response = client.get("/playlist", params={"url": FAKE_URL})
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Fake playlist"
        assert body["playlist_type"] == "normal"
        assert [item["name"] for item in body["related_items"]] == ["Video 0-0", "Video 0-1"]
        assert body["related_items"][0]["url"] == "https://fake.test/v/0-0"
        assert body["next_page"] is not None
        assert body["errors"] == []

    def test_full_list(self, client):
        response = client.get("/playlist", params={"url": FAKE_URL, "full_list": "true"})
        body = response.json()
        assert len(body["related_items"]) == 3
        assert body["next_page"] is None

    def test_recorded_errors_are_returned(self, make_registry, make_client):
        registry, _ = make_registry(failing=UPLOADER_GROUP + ["thumbnail_url"])
        body = make_client(registry).get("/playlist", params={"url": FAKE_URL}).json()
        assert len(body["errors"]) == 7
        first = body["errors"][0]
        assert first["type"] == "FieldExtractionError"
        assert first["field"] == "thumbnail_url"
        assert first["cause"].startswith("ParsingError")

    def test_unsupported_url(self, client):
        response = client.get("/playlist", params={"url": "https://nowhere.test/x"})
        assert response.status_code == 400

    def test_critical_failure(self, make_registry, make_client):
        registry, _ = make_registry(failing=["name"])
        response = make_client(registry).get("/playlist", params={"url": FAKE_URL})
        assert response.status_code == 422

    def test_not_found(self, peertube_client):
        client, downloader = peertube_client
        downloader.add_json(PEERTUBE_API, {}, status=404)
        assert client.get("/playlist", params={"url": PEERTUBE_URL}).status_code == 404

    def test_network_error(self, peertube_client):
        client, downloader = peertube_client
        downloader.add_json(PEERTUBE_API, NetworkError("connection reset"))
        assert client.get("/playlist", params={"url": PEERTUBE_URL}).status_code == 502

    def test_cancellation(self, peertube_client):
        client, downloader = peertube_client
        downloader.add_json(PEERTUBE_API, ExtractionCancelled("timed out"))
        assert client.get("/playlist", params={"url": PEERTUBE_URL}).status_code == 504


class TestMoreItems:
    def test_follow_cursor_to_the_end(self, client):
        first = client.get("/playlist", params={"url": FAKE_URL}).json()

        response = client.post(
            "/playlist/more-items", json={"url": FAKE_URL, "next_page": first["next_page"]}
        )

        assert response.status_code == 200
        body = response.json()
        assert [item["name"] for item in body["items"]] == ["Video 1-0"]
        assert body["next_page"] is None
        assert body["errors"] == []

    @pytest.mark.parametrize("cursor", [
        "not a cursor",
        '{"version": 1, "url": ""}',
        Page(url="https://other.test/api?page=1", service_id=98, extra={"index": 1}).to_json(),
    ])
    def test_bad_cursor(self, client, cursor):
        response = client.post("/playlist/more-items", json={"url": FAKE_URL, "next_page": cursor})
        assert response.status_code == 400

    def test_missing_cursor_is_a_validation_error(self, client):
        response = client.post("/playlist/more-items", json={"url": FAKE_URL})
        assert response.status_code == 422
