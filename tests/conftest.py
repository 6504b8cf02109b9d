"""
Test fixtures for media-extractor-api.

Provides an in-memory downloader, a scriptable fake service and a FastAPI
client wired to them, so tests run offline and deterministically.
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Repo root: .../media-extractor-api
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Make src/ importable so tests can do `import media_extractor_api...`
for p in {ROOT, SRC}:
    p_str = str(p)
    if p_str not in sys.path:
        sys.path.insert(0, p_str)

from media_extractor_api.main import create_app
from media_extractor_api.services.url_router import ServiceRegistry
from factories import FakeDownloader, FakeService, OtherFakeService


FAKE_URL = "https://fake.test/playlist/PL1"


# ---------------------------------------------------------------------------
# Core doubles
# ---------------------------------------------------------------------------


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def make_registry():
    """Build a registry holding a FakeService configured with the given kwargs."""

    def _make(**extractor_kwargs):
        service = FakeService(**extractor_kwargs)
        registry = ServiceRegistry()
        registry.register(service)
        registry.register(OtherFakeService())
        return registry, service

    return _make


# ---------------------------------------------------------------------------
# Test client
# ---------------------------------------------------------------------------


@pytest.fixture
def make_client(downloader):
    """Per-test FastAPI TestClient over an explicit registry."""

    def _make(registry: ServiceRegistry) -> TestClient:
        return TestClient(create_app(registry=registry, downloader=downloader))

    return _make
