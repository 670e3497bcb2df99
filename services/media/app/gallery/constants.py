"""
Media gallery — static constants and enum types.
"""
import enum

from shared.events.schemas import CONTENT_TABLE, LIKES_TABLE  # noqa: F401 - re-exported

# Destination tag of the Media page in the unified content query
MEDIA_DESTINATION = "media"

CONTENT_CACHE_KEY = "media_content_cache"

SIGN_IN_PATH = "/signin"

# Placeholder written by ingestion when the duration is not known yet
ZERO_DURATION = "0:00"

ALL_CATEGORIES = "all"


class ContentType(str, enum.Enum):
    MOVIE = "movie"
    MUSIC_VIDEO = "music-video"
    AUDIO_MUSIC = "audio-music"
    BLOG = "blog"
    IMAGE = "image"
    DOCUMENT = "document"


class Tab(str, enum.Enum):
    STREAM = "stream"
    LISTEN = "listen"
    BLOG = "blog"
    GALLERY = "gallery"
    RESOURCES = "resources"


TAB_FOR_TYPE: dict[str, Tab] = {
    ContentType.MOVIE.value: Tab.STREAM,
    ContentType.MUSIC_VIDEO.value: Tab.STREAM,
    ContentType.AUDIO_MUSIC.value: Tab.LISTEN,
    ContentType.BLOG.value: Tab.BLOG,
    ContentType.IMAGE.value: Tab.GALLERY,
    ContentType.DOCUMENT.value: Tab.RESOURCES,
}

# Types whose duration can be probed from the media file
TIMED_TYPES: frozenset[str] = frozenset({
    ContentType.MOVIE.value,
    ContentType.MUSIC_VIDEO.value,
    ContentType.AUDIO_MUSIC.value,
})

TAB_CATEGORIES: dict[Tab, tuple[str, ...]] = {
    Tab.STREAM: (
        "all", "movie", "music-video", "documentaries", "lifesyle", "Go Live",
    ),
    Tab.LISTEN: (
        "all", "greatest-of-all-time", "latest-release", "new-talent",
        "DJ-mixtapes", "UG-Unscripted", "Afrobeat", "hip-hop", "RnB", "Others",
    ),
    Tab.BLOG: ("all", "interviews", "lifestyle", "product-reviews", "others"),
    Tab.GALLERY: ("all", "design", "photography", "art", "others"),
    Tab.RESOURCES: ("all", "templates", "ebooks", "software", "presets"),
}

# Backend relation tables
FOLLOWS_TABLE = "media_page_follows"

# Backend RPC names
RPC_CONTENT_BY_DESTINATION = "get_content_by_destination"
RPC_DELETE_FROM_DESTINATION = "delete_content_from_destination"
RPC_TRACK_VIEW = "track_video_view"
