"""Platform adapters and the default service registry."""
from typing import Optional

from media_extractor_api.config import Settings, settings as default_settings
from media_extractor_api.services.url_router import ServiceRegistry
from .base import StreamingService
from .bilibili_adapter import BilibiliService
from .peertube_adapter import PeertubeService


def build_default_registry(settings: Optional[Settings] = None) -> ServiceRegistry:
    """Build a registry with every bundled service.

    PeerTube is registered first: its patterns accept any host, but only with
    PeerTube's playlist paths, which no other service uses.
    """
    settings = settings or default_settings
    registry = ServiceRegistry()
    registry.register(PeertubeService(page_size=settings.PEERTUBE_PAGE_SIZE))
    registry.register(BilibiliService(page_size=settings.BILIBILI_PAGE_SIZE))
    return registry


__all__ = [
    "build_default_registry",
    "StreamingService",
    "PeertubeService",
    "BilibiliService",
]
