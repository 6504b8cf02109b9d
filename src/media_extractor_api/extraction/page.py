"""Pagination cursor and its serialized envelope."""
from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from .exceptions import InvalidCursorError

ENVELOPE_VERSION = 1


class PageEnvelope(BaseModel):
    """Self-contained, platform-agnostic serialized form of a ``Page``."""
    version: int = ENVELOPE_VERSION
    url: str
    method: str = "GET"
    headers: Dict[str, List[str]] = Field(default_factory=dict)
    cookies: Dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None  # base64
    service_id: Optional[int] = None
    extra: Any = None


@dataclass(frozen=True, eq=False)
class Page:
    """Opaque continuation token for a paginated list.

    ``service_id`` names the service whose extractor produced the page and
    ``extra`` is data only that extractor interprets. ``extra`` must be
    JSON-compatible so it survives ``to_json``/``from_json`` verbatim.
    Pages are compared by identity only.
    """
    url: str
    method: str = "GET"
    headers: Dict[str, List[str]] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    service_id: Optional[int] = None
    extra: Any = None

    @staticmethod
    def is_valid(page: Optional["Page"]) -> bool:
        return page is not None and bool(page.url)

    def to_envelope(self) -> PageEnvelope:
        return PageEnvelope(
            url=self.url,
            method=self.method,
            headers={k: list(v) for k, v in self.headers.items()},
            cookies=dict(self.cookies),
            body=base64.b64encode(self.body).decode("ascii") if self.body is not None else None,
            service_id=self.service_id,
            extra=self.extra,
        )

    @classmethod
    def from_envelope(cls, envelope: PageEnvelope) -> "Page":
        if envelope.version != ENVELOPE_VERSION:
            raise InvalidCursorError(f"Unsupported cursor version: {envelope.version}")
        if not envelope.url:
            raise InvalidCursorError("Cursor has no URL")
        body = None
        if envelope.body is not None:
            try:
                body = base64.b64decode(envelope.body, validate=True)
            except (binascii.Error, ValueError) as e:
                raise InvalidCursorError(f"Cursor body is not valid base64: {e}") from e
        return cls(
            url=envelope.url,
            method=envelope.method,
            headers=envelope.headers,
            cookies=envelope.cookies,
            body=body,
            service_id=envelope.service_id,
            extra=envelope.extra,
        )

    def to_json(self) -> str:
        return self.to_envelope().model_dump_json()

    @classmethod
    def from_json(cls, raw: str) -> "Page":
        try:
            envelope = PageEnvelope.model_validate_json(raw)
        except ValidationError as e:
            raise InvalidCursorError(f"Malformed cursor: {e.error_count()} validation error(s)") from e
        return cls.from_envelope(envelope)

    def to_dict(self) -> Dict[str, Any]:
        return self.to_envelope().model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Page":
        try:
            envelope = PageEnvelope.model_validate(data)
        except ValidationError as e:
            raise InvalidCursorError(f"Malformed cursor: {e.error_count()} validation error(s)") from e
        return cls.from_envelope(envelope)
