"""
Upload relay — Pydantic V2 request/response schemas.

Wire names follow the browser client (camelCase); Python attributes are
snake_case through aliases.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Base(BaseModel):
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )


# ── Requests ─────────────────────────────────────────────────────────────────

class ProcessVideoRequest(_Base):
    """Hand a stored bucket object to the transcoder.

    Both fields are optional at the schema level so that a missing field
    is reported as the relay's own 400 rather than a validation error.
    """
    filename: str | None = Field(default=None, description="Bucket key returned by the upload handler")
    user_id: str | None = Field(default=None, alias="userId", description="Owning user id")


class PlaybackId(_Base):
    id: str
    policy: str | None = None


class WebhookAsset(_Base):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    status: str | None = None
    playback_ids: list[PlaybackId] = Field(default_factory=list)
    errors: dict[str, Any] | None = None


class WebhookEvent(_Base):
    """Subset of a Mux webhook delivery consumed by the tracker."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str
    data: WebhookAsset

    def error_message(self) -> str | None:
        if not self.data.errors:
            return None
        messages = self.data.errors.get("messages")
        if isinstance(messages, list) and messages:
            return "; ".join(str(m) for m in messages)
        return self.data.errors.get("type")


# ── Responses ────────────────────────────────────────────────────────────────

class UploadResult(_Base):
    success: bool = True
    public_url: str = Field(alias="publicUrl")
    filename: str


class WebhookAck(_Base):
    received: bool = True
    updated: bool = False
