from app.gallery.cache import SessionCache
from app.gallery.constants import CONTENT_CACHE_KEY
from conftest import make_item


def test_round_trip_through_string_store() -> None:
    store: dict[str, str] = {}
    cache = SessionCache(store)
    items = [make_item("c1", like_count=2), make_item("c2", type="blog", read_time="4 min")]

    cache.store(items)

    assert isinstance(store[CONTENT_CACHE_KEY], str)
    assert cache.load() == items


def test_missing_cache_loads_none() -> None:
    assert SessionCache({}).load() is None


def test_corrupt_cache_is_ignored() -> None:
    cache = SessionCache({CONTENT_CACHE_KEY: "{not json"})
    assert cache.load() is None


def test_clear() -> None:
    store: dict[str, str] = {}
    cache = SessionCache(store)
    cache.store([make_item("c1")])
    cache.clear()
    assert cache.load() is None
