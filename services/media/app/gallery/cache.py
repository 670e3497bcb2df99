"""
Advisory session cache for the content list.

Only used to avoid an empty loading state on revisit; never authoritative.
Values are stored serialized in a string mapping so any session store
(a dict, a browser-session bridge) can back it.
"""
from __future__ import annotations

import logging
from collections.abc import MutableMapping

from pydantic import ValidationError

from app.gallery.constants import CONTENT_CACHE_KEY
from app.gallery.schemas import ContentItem, content_list_adapter

logger = logging.getLogger(__name__)


class SessionCache:
    def __init__(
        self,
        store: MutableMapping[str, str] | None = None,
        key: str = CONTENT_CACHE_KEY,
    ) -> None:
        self._store: MutableMapping[str, str] = store if store is not None else {}
        self._key = key

    def load(self) -> list[ContentItem] | None:
        """Cached items, or None when absent or unreadable."""
        raw = self._store.get(self._key)
        if raw is None:
            return None
        try:
            return content_list_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("Ignoring unreadable content cache")
            return None

    def store(self, items: list[ContentItem]) -> None:
        self._store[self._key] = content_list_adapter.dump_json(items).decode()

    def clear(self) -> None:
        self._store.pop(self._key, None)
