from shared.events.schemas import (
    CONTENT_TABLE,
    LIKES_TABLE,
    ContentUpdated,
    InvalidRealtimePayload,
    LikeChanged,
    RealtimeEvent,
    parse_change,
)

__all__ = [
    "CONTENT_TABLE",
    "LIKES_TABLE",
    "ContentUpdated",
    "InvalidRealtimePayload",
    "LikeChanged",
    "RealtimeEvent",
    "parse_change",
]
