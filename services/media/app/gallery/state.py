"""
Media gallery — local session state.

All mutation happens synchronously on the event loop, so no locking is
needed. Optimistic updates are two-phase: take an InteractionSnapshot,
apply the tentative change, and on failure hand the same snapshot back to
restore(). The snapshot travels through the caller's continuation; nothing
is stashed on the state object itself.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from app.gallery.constants import ALL_CATEGORIES, Tab
from app.gallery.filtering import categories_for_tab, filter_content
from app.gallery.schemas import ContentItem


@dataclass(frozen=True)
class InteractionSnapshot:
    """Pre-mutation values; None means "not captured, leave alone"."""

    items: tuple[ContentItem, ...] | None = None
    liked_ids: frozenset[str] | None = None
    followed_creators: frozenset[str] | None = None


@dataclass(frozen=True)
class PendingDeletion:
    content_id: str
    title: str


@dataclass
class GalleryState:
    items: list[ContentItem] = field(default_factory=list)
    liked_ids: set[str] = field(default_factory=set)
    followed_creators: set[str] = field(default_factory=set)
    active_tab: Tab = Tab.STREAM
    category: str = ALL_CATEGORIES
    search_query: str = ""
    loading: bool = True
    pending_deletion: PendingDeletion | None = None
    is_deleting: bool = False
    playing: ContentItem | None = None

    # ── Filters ───────────────────────────────────────────────────────────

    def set_tab(self, tab: Tab) -> None:
        """Switch tab; the category resets, the search query survives."""
        self.active_tab = tab
        self.category = ALL_CATEGORIES

    def visible_items(self) -> list[ContentItem]:
        return filter_content(self.items, self.active_tab, self.category, self.search_query)

    def available_categories(self) -> tuple[str, ...]:
        return categories_for_tab(self.active_tab)

    # ── Content list ──────────────────────────────────────────────────────

    def replace_items(self, items: list[ContentItem]) -> None:
        self.items = list(items)

    def _patch(self, content_id: str, change: Callable[[ContentItem], ContentItem]) -> bool:
        for index, item in enumerate(self.items):
            if item.id == content_id:
                self.items[index] = change(item)
                return True
        return False

    def patch_like_count(self, content_id: str, like_count: int) -> bool:
        return self._patch(content_id, lambda item: item.with_like_count(like_count))

    def patch_duration(self, content_id: str, duration: str) -> bool:
        return self._patch(content_id, lambda item: item.with_duration(duration))

    def remove_item(self, content_id: str) -> None:
        self.items = [item for item in self.items if item.id != content_id]

    # ── Interactions ──────────────────────────────────────────────────────

    def replace_interactions(
        self,
        liked_ids: set[str] | None = None,
        followed_creators: set[str] | None = None,
    ) -> None:
        if liked_ids is not None:
            self.liked_ids = set(liked_ids)
        if followed_creators is not None:
            self.followed_creators = set(followed_creators)

    def clear_interactions(self) -> None:
        self.liked_ids = set()
        self.followed_creators = set()

    def snapshot_for_like(self) -> InteractionSnapshot:
        return InteractionSnapshot(items=tuple(self.items), liked_ids=frozenset(self.liked_ids))

    def snapshot_for_follow(self) -> InteractionSnapshot:
        return InteractionSnapshot(followed_creators=frozenset(self.followed_creators))

    def apply_like(self, content_id: str, *, liked: bool) -> None:
        """Tentatively set like membership and move the counter by one."""
        if liked:
            self.liked_ids = self.liked_ids | {content_id}
        else:
            self.liked_ids = self.liked_ids - {content_id}
        for index, item in enumerate(self.items):
            if item.id == content_id:
                delta = 1 if liked else -1
                self.items[index] = item.with_like_count(max(0, item.like_count + delta))
                break

    def apply_follow(self, creator_name: str, *, following: bool) -> None:
        if following:
            self.followed_creators = self.followed_creators | {creator_name}
        else:
            self.followed_creators = self.followed_creators - {creator_name}

    def restore(self, snapshot: InteractionSnapshot) -> None:
        """Put back every captured field in one step."""
        if snapshot.items is not None:
            self.items = list(snapshot.items)
        if snapshot.liked_ids is not None:
            self.liked_ids = set(snapshot.liked_ids)
        if snapshot.followed_creators is not None:
            self.followed_creators = set(snapshot.followed_creators)
