from app.gallery.constants import Tab
from app.gallery.state import GalleryState
from conftest import make_item


def test_set_tab_resets_category_and_keeps_search() -> None:
    state = GalleryState()
    state.category = "movie"
    state.search_query = "night"

    state.set_tab(Tab.LISTEN)

    assert state.active_tab == Tab.LISTEN
    assert state.category == "all"
    assert state.search_query == "night"


def test_apply_like_moves_counter_and_restore_undoes_it() -> None:
    state = GalleryState(items=[make_item("c1", like_count=2), make_item("c2", like_count=5)])
    snapshot = state.snapshot_for_like()

    state.apply_like("c1", liked=True)
    assert state.liked_ids == {"c1"}
    assert state.items[0].like_count == 3

    state.restore(snapshot)
    assert state.liked_ids == set()
    assert [item.like_count for item in state.items] == [2, 5]


def test_unlike_never_goes_below_zero() -> None:
    state = GalleryState(items=[make_item("c1", like_count=0)], liked_ids={"c1"})
    state.apply_like("c1", liked=False)
    assert state.items[0].like_count == 0
    assert state.liked_ids == set()


def test_follow_snapshot_leaves_items_alone() -> None:
    state = GalleryState(items=[make_item("c1")], followed_creators={"Ava"})
    snapshot = state.snapshot_for_follow()

    state.apply_follow("Ben", following=True)
    state.patch_like_count("c1", 9)
    state.restore(snapshot)

    assert state.followed_creators == {"Ava"}
    assert state.items[0].like_count == 9


def test_patches_touch_only_the_matching_item() -> None:
    state = GalleryState(items=[make_item("c1"), make_item("c2")])

    assert state.patch_duration("c2", "4:05")
    assert not state.patch_like_count("missing", 1)

    assert state.items[0].duration == "3:10"
    assert state.items[1].duration == "4:05"


def test_remove_item() -> None:
    state = GalleryState(items=[make_item("c1"), make_item("c2")])
    state.remove_item("c1")
    assert [item.id for item in state.items] == ["c2"]
