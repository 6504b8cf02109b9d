"""Main FastAPI application.

Serve with the ``server`` extra installed:

    uvicorn media_extractor_api.main:app
"""
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from media_extractor_api.api.routes import router
from media_extractor_api.config import settings
from media_extractor_api.services.adapters import build_default_registry
from media_extractor_api.services.downloader import Downloader
from media_extractor_api.services.url_router import ServiceRegistry


def create_app(
    registry: Optional[ServiceRegistry] = None,
    downloader: Optional[Downloader] = None,
) -> FastAPI:
    """Build the app with an explicit service registry and downloader."""
    logging.getLogger("media_extractor_api").setLevel(settings.LOG_LEVEL)

    application = FastAPI(title="Media Extractor API")
    application.state.registry = registry or build_default_registry(settings)
    application.state.downloader = downloader or Downloader()

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:3001"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(router)
    return application


app = create_app()
