"""Pure filtering of the content list into the visible tab view."""
from __future__ import annotations

from collections.abc import Iterable

from app.gallery.constants import ALL_CATEGORIES, TAB_CATEGORIES, TAB_FOR_TYPE, Tab
from app.gallery.schemas import ContentItem


def tab_for_type(content_type: str) -> Tab | None:
    """Map a content type tag to its tab; None for tags shown nowhere."""
    return TAB_FOR_TYPE.get(content_type)


def categories_for_tab(tab: Tab) -> tuple[str, ...]:
    return TAB_CATEGORIES[tab]


def matches_tab(item: ContentItem, tab: Tab) -> bool:
    return tab_for_type(item.type) == tab


def matches_category(item: ContentItem, category: str) -> bool:
    return category == ALL_CATEGORIES or item.type == category or item.category == category


def matches_search(item: ContentItem, query: str) -> bool:
    needle = query.lower()
    return needle in item.title.lower() or needle in item.creator.lower()


def filter_content(
    items: Iterable[ContentItem],
    tab: Tab,
    category: str = ALL_CATEGORIES,
    query: str = "",
) -> list[ContentItem]:
    """Items visible under (tab, category, query), in their original order."""
    return [
        item for item in items
        if matches_tab(item, tab)
        and matches_category(item, category)
        and matches_search(item, query)
    ]
