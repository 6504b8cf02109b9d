"""Route any URL to the streaming service that handles it."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List

from media_extractor_api.extraction.exceptions import NoMatchingServiceError

if TYPE_CHECKING:
    from media_extractor_api.services.adapters.base import StreamingService

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """The set of known services, built once at startup and passed around."""

    def __init__(self):
        self._services: List["StreamingService"] = []
        self._by_id: Dict[int, "StreamingService"] = {}
        self._by_name: Dict[str, "StreamingService"] = {}

    def register(self, service: StreamingService) -> None:
        """Register a service. Lookup by URL follows registration order.

        Raises:
            ValueError: If a service with the same id or name is already registered.
        """
        name = service.platform_name()
        if service.service_id in self._by_id:
            raise ValueError(f"Service already registered with id {service.service_id}")
        if name in self._by_name:
            raise ValueError(f"Service already registered for platform '{name}'")
        self._services.append(service)
        self._by_id[service.service_id] = service
        self._by_name[name] = service

    def services(self) -> List["StreamingService"]:
        return list(self._services)

    def get_service(self, service_id: int) -> StreamingService:
        """Raises KeyError if no service has this id."""
        return self._by_id[service_id]

    def get_service_by_name(self, name: str) -> StreamingService:
        """Raises KeyError if no service has this name."""
        return self._by_name[name]

    def get_service_by_url(self, url: str) -> StreamingService:
        """Return the first registered service that accepts ``url``.

        Raises:
            NoMatchingServiceError: If no service accepts the URL.
        """
        for service in self._services:
            if service.accepts_playlist_url(url):
                logger.debug("Routed %s to %s", url, service.platform_name())
                return service
        raise NoMatchingServiceError(url)
