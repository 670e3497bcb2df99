import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.config import Settings
from app.gallery.backend import BackendClient
from app.gallery.cache import SessionCache
from app.gallery.config import GalleryConfig
from app.gallery.constants import CONTENT_CACHE_KEY, Tab
from app.gallery.exceptions import DurationProbeError
from app.gallery.realtime import RealtimeFeed
from app.gallery.view import MediaGalleryView
from conftest import FakeBackend, make_item
from shared.events.schemas import ContentUpdated, LikeChanged
from shared.models.user import CurrentUser

USER = CurrentUser(id="u1", email="u1@example.com", access_token="jwt-u1")


class FakeSubscription:
    def __init__(self, handler) -> None:
        self.handler = handler
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeFeed:
    def __init__(self) -> None:
        self.subscriptions: list[FakeSubscription] = []

    async def subscribe(self, handler) -> FakeSubscription:
        subscription = FakeSubscription(handler)
        self.subscriptions.append(subscription)
        return subscription


async def _no_probe(url: str) -> float:
    raise AssertionError(f"unexpected probe of {url}")


def _view(
    config: GalleryConfig,
    backend: FakeBackend,
    *,
    user: CurrentUser | None = USER,
    feed: FakeFeed | None = None,
    store: dict | None = None,
    probe=_no_probe,
    navigated: list | None = None,
) -> MediaGalleryView:
    return MediaGalleryView(
        config,
        backend,
        navigate=(navigated if navigated is not None else []).append,
        cache=SessionCache(store if store is not None else {}),
        feed=feed,
        probe=probe,
        user=user,
    )


# ── Loading ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_mount_loads_content_interactions_and_subscribes(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend([make_item("c1"), make_item("c2")])
    backend.likes.add(("u1", "c2"))
    backend.follows.add(("u1", "Creator"))
    feed = FakeFeed()
    view = _view(gallery_config, backend, feed=feed)

    await view.mount()

    assert view.state.loading is False
    assert [item.id for item in view.state.items] == ["c1", "c2"]
    assert view.state.liked_ids == {"c2"}
    assert view.state.followed_creators == {"Creator"}
    assert len(feed.subscriptions) == 1
    assert backend.calls[0] == ("get_content_by_destination", ("media",))
    assert "jwt-u1" in backend.tokens


@pytest.mark.asyncio
async def test_mount_signed_out_skips_interactions_and_realtime(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend([make_item("c1")])
    feed = FakeFeed()
    view = _view(gallery_config, backend, user=None, feed=feed)

    await view.mount()

    assert backend.call_names() == ["get_content_by_destination"]
    assert feed.subscriptions == []


@pytest.mark.asyncio
async def test_cached_items_clear_loading_before_fetch(gallery_config: GalleryConfig) -> None:
    store: dict[str, str] = {}
    SessionCache(store).store([make_item("cached")])
    backend = FakeBackend()
    backend.failing.add("get_content_by_destination")
    view = _view(gallery_config, backend, user=None, store=store)

    await view.mount()

    assert [item.id for item in view.state.items] == ["cached"]
    assert view.state.loading is False


@pytest.mark.asyncio
async def test_fetch_writes_cache(gallery_config: GalleryConfig) -> None:
    store: dict[str, str] = {}
    view = _view(gallery_config, FakeBackend([make_item("c1")]), user=None, store=store)

    await view.fetch_content()

    assert CONTENT_CACHE_KEY in store
    assert [item.id for item in SessionCache(store).load()] == ["c1"]


@pytest.mark.asyncio
async def test_fetch_failure_keeps_state_and_clears_loading(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    backend.failing.add("get_content_by_destination")
    view = _view(gallery_config, backend, user=None)
    view.state.items = [make_item("old")]

    await view.fetch_content()

    assert [item.id for item in view.state.items] == ["old"]
    assert view.state.loading is False


@pytest.mark.asyncio
async def test_duration_backfill_patches_only_missing_timed_items(gallery_config: GalleryConfig) -> None:
    probed: list[str] = []

    async def probe(url: str) -> float:
        probed.append(url)
        return 245.4

    backend = FakeBackend([
        make_item("movie0", duration="0:00"),
        make_item("song", type="audio-music", duration=None),
        make_item("timed", duration="3:10"),
        make_item("post", type="blog", duration="0:00"),
    ])
    view = _view(gallery_config, backend, user=None, probe=probe)

    await view.fetch_content()
    await view.settle()

    assert sorted(probed) == ["https://cdn.example.test/movie0.mp4", "https://cdn.example.test/song.mp4"]
    assert backend.durations == {"movie0": "4:05", "song": "4:05"}
    durations = {item.id: item.duration for item in view.state.items}
    assert durations == {"movie0": "4:05", "song": "4:05", "timed": "3:10", "post": "0:00"}


@pytest.mark.asyncio
async def test_duration_backfill_failures_are_isolated(gallery_config: GalleryConfig) -> None:
    async def probe(url: str) -> float:
        if "bad" in url:
            raise DurationProbeError("unreadable")
        return 61.0

    backend = FakeBackend([make_item("bad", duration="0:00"), make_item("good", duration="0:00")])
    view = _view(gallery_config, backend, user=None, probe=probe)

    await view.fetch_content()
    await view.settle()

    durations = {item.id: item.duration for item in view.state.items}
    assert durations == {"bad": "0:00", "good": "1:01"}


# ── Likes / follows ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_signed_out_toggle_navigates_without_network(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend([make_item("c1", like_count=3)])
    navigated: list[str] = []
    view = _view(gallery_config, backend, user=None, navigated=navigated)
    view.state.items = [make_item("c1", like_count=3)]

    assert await view.toggle_like("c1") is False
    assert await view.toggle_follow("Creator") is False

    assert navigated == ["/signin", "/signin"]
    assert backend.calls == []
    assert view.state.liked_ids == set()
    assert view.state.items[0].like_count == 3


@pytest.mark.asyncio
async def test_like_twice_returns_to_start(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    view = _view(gallery_config, backend)
    view.state.items = [make_item("c1", like_count=3)]

    assert await view.toggle_like("c1")
    assert view.state.liked_ids == {"c1"}
    assert view.state.items[0].like_count == 4

    assert await view.toggle_like("c1")
    assert view.state.liked_ids == set()
    assert view.state.items[0].like_count == 3
    assert backend.call_names() == ["like", "unlike"]


@pytest.mark.asyncio
async def test_failed_like_rolls_back(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    backend.failing.add("like")
    view = _view(gallery_config, backend)
    view.state.items = [make_item("c1", like_count=3)]

    assert await view.toggle_like("c1") is False

    assert view.state.liked_ids == set()
    assert view.state.items[0].like_count == 3


@pytest.mark.asyncio
async def test_follow_toggles_and_rolls_back(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    view = _view(gallery_config, backend)

    assert await view.toggle_follow("Ava")
    assert view.state.followed_creators == {"Ava"}

    backend.failing.add("unfollow")
    assert await view.toggle_follow("Ava") is False
    assert view.state.followed_creators == {"Ava"}


# ── Realtime / user changes ─────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_realtime_events_patch_counts_and_refresh_likes(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend([make_item("c1", like_count=1)])
    view = _view(gallery_config, backend)
    await view.mount()

    await view.handle_event(ContentUpdated(id="c1", like_count=12))
    assert view.state.items[0].like_count == 12

    backend.likes.add(("u1", "c1"))
    await view.handle_event(LikeChanged(event_type="INSERT"))
    await view.settle()
    assert view.state.liked_ids == {"c1"}


@pytest.mark.asyncio
async def test_sign_out_tears_down_and_clears(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend([make_item("c1")])
    backend.likes.add(("u1", "c1"))
    feed = FakeFeed()
    view = _view(gallery_config, backend, feed=feed)
    await view.mount()
    assert view.subscribed

    await view.set_user(None)

    assert feed.subscriptions[0].closed
    assert not view.subscribed
    assert view.state.liked_ids == set()
    assert view.state.followed_creators == set()


@pytest.mark.asyncio
async def test_sign_in_after_mount_subscribes(gallery_config: GalleryConfig) -> None:
    feed = FakeFeed()
    view = _view(gallery_config, FakeBackend(), user=None, feed=feed)
    await view.mount()
    assert feed.subscriptions == []

    await view.set_user(USER)

    assert view.subscribed
    assert view.user == USER


@pytest.mark.asyncio
async def test_unmount_closes_subscription(gallery_config: GalleryConfig) -> None:
    feed = FakeFeed()
    view = _view(gallery_config, FakeBackend(), feed=feed)
    await view.mount()

    await view.unmount()

    assert feed.subscriptions[0].closed
    assert not view.subscribed


# ── Filters ──────────────────────────────────────────────────────────────────

def test_tab_switch_resets_category_keeps_search(gallery_config: GalleryConfig) -> None:
    view = _view(gallery_config, FakeBackend(), user=None)
    view.state.items = [
        make_item("m", type="movie", title="Night"),
        make_item("s", type="audio-music", title="Night Song", category="Afrobeat"),
        make_item("s2", type="audio-music", title="Morning"),
    ]
    view.set_category("movie")
    view.set_search("night")

    view.set_tab("listen")

    assert view.state.active_tab == Tab.LISTEN
    assert view.state.category == "all"
    assert [item.id for item in view.visible_items()] == ["s"]
    assert view.available_categories()[0] == "all"


# ── Deletion ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_confirm_delete_removes_item(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    view = _view(gallery_config, backend)
    view.state.items = [make_item("c1"), make_item("c2")]

    view.request_delete("c1", "Title c1")
    assert view.state.pending_deletion.content_id == "c1"
    assert await view.confirm_delete()

    assert [item.id for item in view.state.items] == ["c2"]
    assert view.state.pending_deletion is None
    assert view.state.is_deleting is False
    assert backend.calls == [("delete_from_destination", ("c1", "media"))]


@pytest.mark.asyncio
async def test_failed_delete_keeps_item_and_dialog(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    backend.failing.add("delete_from_destination")
    view = _view(gallery_config, backend)
    view.state.items = [make_item("c1")]

    view.request_delete("c1", "Title c1")
    assert await view.confirm_delete() is False

    assert [item.id for item in view.state.items] == ["c1"]
    assert view.state.pending_deletion is not None
    assert view.state.is_deleting is False


def test_cancel_delete(gallery_config: GalleryConfig) -> None:
    view = _view(gallery_config, FakeBackend())
    view.request_delete("c1", "Title c1")
    view.cancel_delete()
    assert view.state.pending_deletion is None


# ── Playback ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_play_tracks_view_in_background(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    view = _view(gallery_config, backend)
    item = make_item("c1")

    view.play(item)
    assert view.state.playing == item
    await view.settle()
    assert backend.calls == [("track_view", ("c1",))]

    view.close_player()
    assert view.state.playing is None


@pytest.mark.asyncio
async def test_play_tracking_failure_is_swallowed(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    backend.failing.add("track_view")
    view = _view(gallery_config, backend)

    view.play(make_item("c1"))
    await view.settle()

    assert view.state.playing is not None


@pytest.mark.asyncio
async def test_upload_success_refreshes_content(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend()
    view = _view(gallery_config, backend, user=None)
    backend.items = [make_item("new")]

    await view.on_upload_success()

    assert [item.id for item in view.state.items] == ["new"]


class UnreachableFeed:
    async def subscribe(self, handler) -> FakeSubscription:
        raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")


@pytest.mark.asyncio
async def test_mount_survives_unreachable_realtime(gallery_config: GalleryConfig) -> None:
    backend = FakeBackend([make_item("c1")])
    view = _view(gallery_config, backend, feed=UnreachableFeed())

    await view.mount()

    assert [item.id for item in view.state.items] == ["c1"]
    assert not view.state.loading
    assert not view.subscribed
    assert "liked_content_ids" in backend.call_names()
    await view.unmount()


# ── Wiring ───────────────────────────────────────────────────────────────────

def test_gallery_config_from_settings(settings: Settings) -> None:
    settings = settings.model_copy(update={"redis_url": "redis://cache.test:6379/1"})

    config = GalleryConfig.from_settings(settings, relay_url="http://relay.test/api/v1/relay")

    assert config.backend_url == "http://backend.test"
    assert config.backend_anon_key == "anon"
    assert config.public_file_base_url == settings.b2_public_url
    assert config.redis_url == "redis://cache.test:6379/1"
    assert config.relay_url == "http://relay.test/api/v1/relay"
    assert GalleryConfig.from_settings(settings).relay_url == GalleryConfig.model_fields["relay_url"].default


def test_create_without_redis_has_no_feed(gallery_config: GalleryConfig) -> None:
    store: dict = {}
    view = MediaGalleryView.create(gallery_config, navigate=[].append, user=USER, session_store=store)

    assert view._feed is None
    assert isinstance(view._backend, BackendClient)
    assert view.user == USER


def test_create_with_redis_builds_feed(gallery_config: GalleryConfig) -> None:
    config = gallery_config.model_copy(update={"redis_url": "redis://cache.test:6379/1"})

    view = MediaGalleryView.create(config, navigate=[].append)

    assert isinstance(view._feed, RealtimeFeed)
    assert view.user is None
