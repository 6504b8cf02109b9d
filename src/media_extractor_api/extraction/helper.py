"""Page retrieval helpers that record failures on the info instead of raising."""
from __future__ import annotations

import logging
from typing import Any, List

from .base import ListExtractor
from .exceptions import ExtractionError
from .items import InfoItemsPage, StreamInfoItem

logger = logging.getLogger(__name__)


def get_items_page_or_log_error(info: Any, extractor: ListExtractor) -> InfoItemsPage:
    """Return the first page, adding its item errors to ``info.errors``.

    A first page that cannot be parsed is recorded as an error and an empty
    page is returned. Transport failures propagate.
    """
    try:
        page = extractor.get_initial_page()
    except ExtractionError as e:
        logger.warning("First page of %s failed: %s", extractor.get_url(), e)
        info.errors.append(e)
        return InfoItemsPage.empty()
    info.errors.extend(page.errors)
    return page


def get_items_full_page_or_log_error(info: Any, extractor: ListExtractor) -> InfoItemsPage:
    """Follow cursors from the first page until one has no successor.

    Items and errors are concatenated in page order. The returned page never
    has a cursor. A page that fails after the first is recorded on ``info``
    and accumulation stops there.
    """
    page = get_items_page_or_log_error(info, extractor)
    items: List[StreamInfoItem] = list(page.items)
    errors: List[Exception] = list(page.errors)
    pages = 1

    while page.has_next_page():
        if extractor.cancel_token is not None:
            extractor.cancel_token.raise_if_cancelled()
        try:
            page = extractor.get_page(page.next_page)
        except ExtractionError as e:
            logger.warning("Page %d of %s failed: %s", pages + 1, extractor.get_url(), e)
            info.errors.append(e)
            break
        pages += 1
        items.extend(page.items)
        errors.extend(page.errors)
        info.errors.extend(page.errors)

    logger.debug("Collected %d items over %d page(s) from %s", len(items), pages, extractor.get_url())
    return InfoItemsPage(items=items, next_page=None, errors=errors)
