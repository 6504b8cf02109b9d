"""HTTP transport used by extractors, built on requests."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import requests
from urllib3.exceptions import TimeoutError as Urllib3Timeout

from media_extractor_api.config import settings
from media_extractor_api.extraction.cancel import CancelToken
from media_extractor_api.extraction.exceptions import (
    ExtractionCancelled,
    HttpStatusError,
    NetworkError,
    ParsingError,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def is_timeout(exc: BaseException) -> bool:
    """Whether a requests failure was caused by a connect or read timeout.

    With streamed bodies, requests reports a read timeout as a
    ``ConnectionError`` wrapping urllib3's ``ReadTimeoutError``.
    """
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, (requests.Timeout, Urllib3Timeout)):
            return True
        if isinstance(current, BaseException):
            pending.extend([current.__cause__, current.__context__])
            pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
    return False


@dataclass
class Request:
    """An outgoing request. Header values are lists so repeated headers survive."""
    method: str
    url: str
    headers: Dict[str, List[str]] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    tolerated_statuses: Iterable[int] = ()


@dataclass
class Response:
    status_code: int
    url: str
    latest_url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ParsingError: If the body is not valid JSON.
        """
        try:
            return json.loads(self.body)
        except ValueError as e:
            raise ParsingError(f"Invalid JSON from {self.latest_url}: {e}") from e


class Downloader:
    """Executes requests with a shared session and honours cancellation.

    Timeouts (including a token's deadline) surface as ``ExtractionCancelled``;
    other transport failures and non-2xx statuses surface as ``NetworkError``.
    Nothing is retried.
    """

    def __init__(
        self,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.user_agent = user_agent or settings.USER_AGENT
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def get(
        self,
        url: str,
        headers: Optional[Dict[str, List[str]]] = None,
        cookies: Optional[Dict[str, str]] = None,
        tolerated_statuses: Iterable[int] = (),
        cancel_token: Optional[CancelToken] = None,
    ) -> Response:
        return self.execute(
            Request("GET", url, headers or {}, cookies or {}, None, tolerated_statuses),
            cancel_token,
        )

    def post(
        self,
        url: str,
        body: Optional[bytes],
        headers: Optional[Dict[str, List[str]]] = None,
        cookies: Optional[Dict[str, str]] = None,
        tolerated_statuses: Iterable[int] = (),
        cancel_token: Optional[CancelToken] = None,
    ) -> Response:
        return self.execute(
            Request("POST", url, headers or {}, cookies or {}, body, tolerated_statuses),
            cancel_token,
        )

    def _timeout_for(self, cancel_token: Optional[CancelToken]) -> float:
        if cancel_token is None:
            return self.timeout
        remaining = cancel_token.remaining()
        if remaining is None:
            return self.timeout
        return min(self.timeout, remaining)

    def execute(self, request: Request, cancel_token: Optional[CancelToken] = None) -> Response:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        headers = {"User-Agent": self.user_agent}
        for name, values in request.headers.items():
            headers[name] = ", ".join(values)

        logger.debug("%s %s", request.method, request.url)
        try:
            raw = self.session.request(
                request.method,
                request.url,
                headers=headers,
                cookies=request.cookies or None,
                data=request.body,
                timeout=self._timeout_for(cancel_token),
                stream=True,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            if is_timeout(e):
                raise ExtractionCancelled(f"Request to {request.url} timed out") from e
            raise NetworkError(f"Request to {request.url} failed: {e}") from e

        try:
            chunks = []
            for chunk in raw.iter_content(chunk_size=CHUNK_SIZE):
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                chunks.append(chunk)
        except requests.RequestException as e:
            if is_timeout(e):
                raise ExtractionCancelled(f"Reading {request.url} timed out") from e
            raise NetworkError(f"Reading {request.url} failed: {e}") from e
        finally:
            raw.close()

        response = Response(
            status_code=raw.status_code,
            url=request.url,
            latest_url=raw.url or request.url,
            headers=dict(raw.headers),
            body=b"".join(chunks),
        )
        if not 200 <= response.status_code < 300 and response.status_code not in request.tolerated_statuses:
            raise HttpStatusError(response.status_code, request.url)
        return response
