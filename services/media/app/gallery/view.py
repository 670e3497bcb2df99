"""
Media gallery view model — one instance per viewing session.

Owns the GalleryState and every side effect around it:

  mount()        cache → content fetch → (signed in) interactions + realtime
  set_user()     re-runs the user-dependent half on sign-in / sign-out
  toggle_*()     optimistic mutation, rolled back from a snapshot on failure
  play()         opens the player, tracks the view in the background

Duration backfills, view tracking and realtime-triggered refreshes run as
detached tasks; their failures are logged and never reach the caller.
settle() waits for them (tests, shutdown).
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, MutableMapping
from typing import Any

from redis.exceptions import RedisError

from app.gallery.backend import BackendClient
from app.gallery.cache import SessionCache
from app.gallery.config import GalleryConfig
from app.gallery.constants import SIGN_IN_PATH, Tab
from app.gallery.durations import DurationBackfill, Probe, probe_duration
from app.gallery.exceptions import BackendError, DurationProbeError
from app.gallery.realtime import RealtimeFeed, RealtimeSubscription
from app.gallery.schemas import ContentItem
from app.gallery.state import GalleryState, PendingDeletion
from shared.events.schemas import ContentUpdated, LikeChanged
from shared.models.user import CurrentUser

logger = logging.getLogger(__name__)

Navigate = Callable[[str], None]


class MediaGalleryView:
    def __init__(
        self,
        config: GalleryConfig,
        backend: BackendClient,
        *,
        navigate: Navigate,
        cache: SessionCache | None = None,
        feed: RealtimeFeed | None = None,
        probe: Probe = probe_duration,
        user: CurrentUser | None = None,
    ) -> None:
        self._config = config
        self._backend = backend.with_token(user.access_token if user else None)
        self._navigate = navigate
        self._cache = cache if cache is not None else SessionCache()
        self._feed = feed
        self._probe = probe
        self._user = user
        self._subscription: RealtimeSubscription | None = None
        self._tasks: set[asyncio.Task] = set()
        self._mounted = False
        self.state = GalleryState()

    @classmethod
    def create(
        cls,
        config: GalleryConfig,
        *,
        navigate: Navigate,
        user: CurrentUser | None = None,
        session_store: MutableMapping[str, str] | None = None,
    ) -> MediaGalleryView:
        """Wire the default collaborators from a GalleryConfig."""
        feed = RealtimeFeed.from_url(config.redis_url) if config.redis_url else None
        return cls(
            config,
            BackendClient(config),
            navigate=navigate,
            cache=SessionCache(session_store),
            feed=feed,
            user=user,
        )

    @property
    def user(self) -> CurrentUser | None:
        return self._user

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    # ── Lifecycle ─────────────────────────────────────────────────────────

    async def mount(self) -> None:
        self._mounted = True
        cached = self._cache.load()
        if cached is not None:
            self.state.replace_items(cached)
            self.state.loading = False
        await self.fetch_content()
        await self._sync_user()

    async def unmount(self) -> None:
        """Stop listening; in-flight requests are left to finish."""
        self._mounted = False
        await self._unsubscribe()

    async def set_user(self, user: CurrentUser | None) -> None:
        self._user = user
        self._backend = self._backend.with_token(user.access_token if user else None)
        if self._mounted:
            await self._sync_user()

    async def settle(self) -> None:
        """Wait until every detached task has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _sync_user(self) -> None:
        if self._user is None:
            await self._unsubscribe()
            self.state.clear_interactions()
            return
        await self.fetch_user_interactions()
        await self._subscribe()

    async def _subscribe(self) -> None:
        if self._feed is None or self._subscription is not None:
            return
        try:
            self._subscription = await self._feed.subscribe(self.handle_event)
        except RedisError as exc:
            logger.warning("Realtime updates unavailable: %s", exc)

    async def _unsubscribe(self) -> None:
        if self._subscription is None:
            return
        subscription, self._subscription = self._subscription, None
        await subscription.close()

    # ── Background tasks ──────────────────────────────────────────────────

    def _spawn(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task:
        task = asyncio.create_task(self._guarded(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @staticmethod
    async def _guarded(coro: Coroutine[Any, Any, Any], label: str) -> None:
        try:
            await coro
        except (BackendError, DurationProbeError) as exc:
            logger.warning("%s failed: %s", label, exc)
        except Exception:
            logger.exception("%s failed", label)

    # ── Loading ───────────────────────────────────────────────────────────

    async def fetch_content(self) -> None:
        try:
            items = await self._backend.get_content_by_destination(self._config.destination)
        except BackendError as exc:
            logger.error("Error fetching content: %s", exc)
        else:
            self.state.replace_items(items)
            self._cache.store(items)
            for item in items:
                if item.needs_duration():
                    self._spawn(self._backfill_duration(item), f"Duration backfill for {item.id}")
        finally:
            self.state.loading = False

    async def _backfill_duration(self, item: ContentItem) -> None:
        backfill = DurationBackfill(self._backend, self._probe)
        duration = await backfill.refresh(item.id, item.content_url)
        if duration:
            self.state.patch_duration(item.id, duration)

    async def fetch_user_interactions(self) -> None:
        user = self._user
        if user is None:
            return
        try:
            liked = await self._backend.liked_content_ids(user.id)
            followed = await self._backend.followed_creators(user.id)
        except BackendError as exc:
            logger.error("Error fetching user interactions: %s", exc)
            return
        self.state.replace_interactions(liked_ids=liked, followed_creators=followed)

    async def handle_event(self, event: ContentUpdated | LikeChanged) -> None:
        if isinstance(event, ContentUpdated):
            self.state.patch_like_count(event.id, event.like_count)
        elif isinstance(event, LikeChanged):
            self._spawn(self.fetch_user_interactions(), "Interaction refresh")

    async def on_upload_success(self) -> None:
        await self.fetch_content()

    # ── Interactions ──────────────────────────────────────────────────────

    async def toggle_like(self, content_id: str) -> bool:
        """Returns True when the change was committed."""
        user = self._user
        if user is None:
            self._navigate(SIGN_IN_PATH)
            return False

        liked = content_id not in self.state.liked_ids
        snapshot = self.state.snapshot_for_like()
        self.state.apply_like(content_id, liked=liked)
        try:
            if liked:
                await self._backend.like(user.id, content_id)
            else:
                await self._backend.unlike(user.id, content_id)
        except BackendError as exc:
            self.state.restore(snapshot)
            logger.error("Error toggling like on %s: %s", content_id, exc)
            return False
        return True

    async def toggle_follow(self, creator_name: str) -> bool:
        user = self._user
        if user is None:
            self._navigate(SIGN_IN_PATH)
            return False

        following = creator_name not in self.state.followed_creators
        snapshot = self.state.snapshot_for_follow()
        self.state.apply_follow(creator_name, following=following)
        try:
            if following:
                await self._backend.follow(user.id, creator_name)
            else:
                await self._backend.unfollow(user.id, creator_name)
        except BackendError as exc:
            self.state.restore(snapshot)
            logger.error("Error toggling follow on %s: %s", creator_name, exc)
            return False
        return True

    # ── Filters ───────────────────────────────────────────────────────────

    def set_tab(self, tab: Tab | str) -> None:
        self.state.set_tab(Tab(tab))

    def set_category(self, category: str) -> None:
        self.state.category = category

    def set_search(self, query: str) -> None:
        self.state.search_query = query

    def visible_items(self) -> list[ContentItem]:
        return self.state.visible_items()

    def available_categories(self) -> tuple[str, ...]:
        return self.state.available_categories()

    # ── Deletion ──────────────────────────────────────────────────────────

    def request_delete(self, content_id: str, title: str) -> None:
        self.state.pending_deletion = PendingDeletion(content_id=content_id, title=title)

    def cancel_delete(self) -> None:
        self.state.pending_deletion = None

    async def confirm_delete(self) -> bool:
        pending = self.state.pending_deletion
        if pending is None or self.state.is_deleting:
            return False

        self.state.is_deleting = True
        try:
            await self._backend.delete_from_destination(pending.content_id, self._config.destination)
        except BackendError as exc:
            logger.error("Error deleting content %s: %s", pending.content_id, exc)
            return False
        finally:
            self.state.is_deleting = False

        self.state.remove_item(pending.content_id)
        self.state.pending_deletion = None
        return True

    # ── Playback ──────────────────────────────────────────────────────────

    def play(self, item: ContentItem) -> None:
        self.state.playing = item
        self._spawn(self._backend.track_view(item.id), f"View tracking for {item.id}")

    def close_player(self) -> None:
        self.state.playing = None
