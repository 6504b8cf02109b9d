"""Base classes for platform adapters."""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from media_extractor_api.extraction.base import ExtractorHandle, PlaylistExtractor
from media_extractor_api.extraction.cancel import CancelToken
from media_extractor_api.extraction.exceptions import ParsingError
from media_extractor_api.services.downloader import Downloader


class StreamingService(ABC):
    """A platform: recognises its URLs and builds extractors for them."""

    service_id: int = -1
    # Each pattern's named groups feed get_playlist_handle().
    playlist_url_patterns: List[re.Pattern] = []

    @staticmethod
    @abstractmethod
    def platform_name() -> str:
        """Return the canonical platform identifier (e.g. 'peertube')."""
        ...

    def match_playlist_url(self, url: str) -> Optional[re.Match]:
        for pattern in self.playlist_url_patterns:
            match = pattern.search(url)
            if match:
                return match
        return None

    def accepts_playlist_url(self, url: str) -> bool:
        return self.match_playlist_url(url) is not None

    def get_playlist_handle(self, url: str) -> ExtractorHandle:
        """Turn a playlist URL into a handle with canonical id and URL.

        Raises:
            ParsingError: If the URL is not one of this service's playlist URLs.
        """
        match = self.match_playlist_url(url)
        if match is None:
            raise ParsingError(f"{self.platform_name()} does not recognise URL: {url}")
        playlist_id, canonical_url = self.canonicalize(match)
        return ExtractorHandle(
            service_id=self.service_id,
            id=playlist_id,
            url=canonical_url,
            original_url=url,
        )

    @abstractmethod
    def canonicalize(self, match: re.Match) -> Tuple[str, str]:
        """Return ``(id, canonical_url)`` for a matched playlist URL."""
        ...

    def is_mix_id(self, playlist_id: str) -> bool:
        """Whether a canonical playlist id names a generated mix."""
        return False

    @abstractmethod
    def get_playlist_extractor(
        self,
        url: str,
        downloader: Downloader,
        cancel_token: Optional[CancelToken] = None,
    ) -> PlaylistExtractor:
        ...
