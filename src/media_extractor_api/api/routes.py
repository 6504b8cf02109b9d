"""API routes for playlist extraction."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from media_extractor_api.config import settings
from media_extractor_api.extraction.cancel import CancelToken
from media_extractor_api.extraction.exceptions import (
    ContentNotAvailableError,
    ExtractionCancelled,
    ExtractionError,
    InvalidCursorError,
    NetworkError,
    NoMatchingServiceError,
)
from media_extractor_api.extraction.page import Page
from media_extractor_api.extraction.playlist import PlaylistInfo
from media_extractor_api.models import (
    ItemsPageResponse,
    MoreItemsRequest,
    PlaylistInfoResponse,
    ServiceModel,
)
from media_extractor_api.services.downloader import Downloader
from media_extractor_api.services.url_router import ServiceRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


def get_downloader(request: Request) -> Downloader:
    return request.app.state.downloader


def _to_http_error(exc: Exception) -> HTTPException:
    """Map a call-terminating extraction error to an HTTP error."""
    if isinstance(exc, (NoMatchingServiceError, InvalidCursorError)):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, ContentNotAvailableError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ExtractionError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, ExtractionCancelled):
        return HTTPException(status_code=504, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/health")
def health():
    return {"status": "ok", "environment": settings.ENVIRONMENT}


@router.get("/services", response_model=List[ServiceModel])
def list_services(registry: ServiceRegistry = Depends(get_registry)):
    return [
        ServiceModel(service_id=service.service_id, name=service.platform_name())
        for service in registry.services()
    ]


@router.get("/playlist", response_model=PlaylistInfoResponse)
def get_playlist(
    url: str = Query(..., description="Playlist or mix URL"),
    full_list: bool = Query(False, description="Fetch every page (mixes: first page only)"),
    registry: ServiceRegistry = Depends(get_registry),
    downloader: Downloader = Depends(get_downloader),
):
    """Extract playlist metadata and its first page (or all pages)."""
    cancel_token = CancelToken(timeout=settings.EXTRACTION_TIMEOUT)
    try:
        info = PlaylistInfo.get_info(
            registry, url, downloader, with_full_list=full_list, cancel_token=cancel_token
        )
    except (ExtractionError, NetworkError) as exc:
        logger.warning("Playlist extraction failed for %s: %s", url, exc)
        raise _to_http_error(exc) from exc

    if info.errors:
        logger.info("Playlist %s extracted with %d error(s)", info.url, len(info.errors))
    return PlaylistInfoResponse.from_info(info)


@router.post("/playlist/more-items", response_model=ItemsPageResponse)
def get_more_items(
    payload: MoreItemsRequest,
    registry: ServiceRegistry = Depends(get_registry),
    downloader: Downloader = Depends(get_downloader),
):
    """Fetch the page a previously returned cursor points at."""
    cancel_token = CancelToken(timeout=settings.EXTRACTION_TIMEOUT)
    try:
        page = Page.from_json(payload.next_page)
        items_page = PlaylistInfo.get_more_items(
            registry, payload.url, page, downloader, cancel_token=cancel_token
        )
    except (ExtractionError, NetworkError) as exc:
        logger.warning("Fetching more items failed for %s: %s", payload.url, exc)
        raise _to_http_error(exc) from exc
    return ItemsPageResponse.from_page(items_page)
