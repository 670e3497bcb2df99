"""Realtime row-change events.

The change feed publishes loosely-typed JSON documents of the shape
``{"eventType": "UPDATE", "table": "...", "new": {...}, "old": {...}}``.
They are validated here, at the boundary, into a closed set of typed
events before any consumer touches local state.
"""
from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

CONTENT_TABLE = "media_page_content"
LIKES_TABLE = "media_page_likes"


class ContentUpdated(BaseModel):
    """UPDATE on the content table; only the like counter is consumed."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["content_updated"] = "content_updated"
    id: str
    like_count: int = Field(ge=0)


class LikeChanged(BaseModel):
    """Any INSERT / UPDATE / DELETE on the like relation table."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["like_changed"] = "like_changed"
    event_type: Literal["INSERT", "UPDATE", "DELETE"]


RealtimeEvent = Annotated[Union[ContentUpdated, LikeChanged], Field(discriminator="kind")]

_event_adapter: TypeAdapter[ContentUpdated | LikeChanged] = TypeAdapter(RealtimeEvent)


class InvalidRealtimePayload(ValueError):
    pass


def parse_change(raw: str | bytes | dict[str, Any]) -> ContentUpdated | LikeChanged:
    """Turn a raw change-feed document into a typed event.

    Raises InvalidRealtimePayload for malformed documents, for tables this
    module does not consume and for non-UPDATE events on the content table.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise InvalidRealtimePayload(f"not JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidRealtimePayload("payload is not an object")

    table = raw.get("table")
    event_type = raw.get("eventType")
    if table == CONTENT_TABLE:
        if event_type != "UPDATE":
            raise InvalidRealtimePayload(f"ignored {event_type} on {table}")
        new = raw.get("new") or {}
        if not isinstance(new, dict):
            raise InvalidRealtimePayload("new row is not an object")
        candidate: dict[str, Any] = {
            "kind": "content_updated",
            "id": new.get("id"),
            "like_count": new.get("like_count"),
        }
    elif table == LIKES_TABLE:
        candidate = {"kind": "like_changed", "event_type": event_type}
    else:
        raise InvalidRealtimePayload(f"unknown table {table!r}")

    try:
        return _event_adapter.validate_python(candidate)
    except ValidationError as exc:
        raise InvalidRealtimePayload(str(exc)) from exc
