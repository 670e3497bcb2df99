"""
Media gallery — Pydantic V2 models for backend rows.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationInfo, field_validator

from app.gallery.constants import TIMED_TYPES, ZERO_DURATION


class ContentItem(BaseModel):
    """One row of the unified content query.

    Frozen: local state is only ever changed by replacing an item with a
    patched copy, which keeps rollback snapshots cheap and exact.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    user_id: str
    title: str
    creator: str
    description: str | None = None
    thumbnail_url: str = ""
    content_url: str = ""
    like_count: int = 0
    views_count: int | None = None
    duration: str | None = None
    read_time: str | None = None
    category: str | None = None
    is_premium: bool = False
    type: str = Field(description="Content type tag; unknown tags are kept and never shown")
    created_at: datetime

    @field_validator("thumbnail_url", "content_url", "like_count", "is_premium", mode="before")
    @classmethod
    def _null_to_default(cls, value: object, info: ValidationInfo) -> object:
        # NULL columns take the field default
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    def needs_duration(self) -> bool:
        return self.type in TIMED_TYPES and (not self.duration or self.duration == ZERO_DURATION)

    def with_like_count(self, like_count: int) -> ContentItem:
        return self.model_copy(update={"like_count": like_count})

    def with_duration(self, duration: str) -> ContentItem:
        return self.model_copy(update={"duration": duration})


content_list_adapter: TypeAdapter[list[ContentItem]] = TypeAdapter(list[ContentItem])
