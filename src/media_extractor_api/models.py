"""Request and response models for the HTTP surface."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from media_extractor_api.extraction.items import InfoItemsPage, StreamInfoItem
from media_extractor_api.extraction.playlist import PlaylistInfo, describe_error


class ErrorModel(BaseModel):
    """A failure recorded during extraction (not a failed request)."""
    type: str
    message: str
    field: Optional[str] = None  # set for per-field failures
    cause: Optional[str] = None


class StreamItemModel(BaseModel):
    service_id: int
    url: str
    name: str
    stream_type: str
    thumbnail_url: str = ""
    duration: int = -1
    view_count: int = -1
    uploader_name: str = ""
    uploader_url: str = ""
    uploader_avatar_url: str = ""
    uploader_verified: bool = False
    textual_upload_date: str = ""
    upload_date: Optional[str] = None
    is_ad: bool = False

    @classmethod
    def from_item(cls, item: StreamInfoItem) -> "StreamItemModel":
        return cls(**item.to_dict())


class ItemsPageResponse(BaseModel):
    items: List[StreamItemModel] = Field(default_factory=list)
    # Serialized cursor; pass it back to /playlist/more-items. None at the end of the list.
    next_page: Optional[str] = None
    errors: List[ErrorModel] = Field(default_factory=list)

    @classmethod
    def from_page(cls, page: InfoItemsPage) -> "ItemsPageResponse":
        return cls(
            items=[StreamItemModel.from_item(item) for item in page.items],
            next_page=page.next_page.to_json() if page.has_next_page() else None,
            errors=[ErrorModel(**describe_error(e)) for e in page.errors],
        )


class PlaylistInfoResponse(BaseModel):
    service_id: int
    id: str
    url: str
    original_url: str
    name: str
    thumbnail_url: str = ""
    banner_url: str = ""
    uploader_url: str = ""
    uploader_name: str = ""
    uploader_avatar_url: str = ""
    sub_channel_url: str = ""
    sub_channel_name: str = ""
    sub_channel_avatar_url: str = ""
    stream_count: int = 0
    playlist_type: Optional[str] = None
    related_items: List[StreamItemModel] = Field(default_factory=list)
    next_page: Optional[str] = None
    errors: List[ErrorModel] = Field(default_factory=list)

    @classmethod
    def from_info(cls, info: PlaylistInfo) -> "PlaylistInfoResponse":
        data: Dict[str, Any] = info.to_dict()
        data["related_items"] = [StreamItemModel.from_item(item) for item in info.related_items]
        data["next_page"] = info.next_page.to_json() if info.has_next_page() else None
        data["errors"] = [ErrorModel(**describe_error(e)) for e in info.errors]
        return cls(**data)


class MoreItemsRequest(BaseModel):
    url: str
    next_page: str


class ServiceModel(BaseModel):
    service_id: int
    name: str
