from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.exceptions import StorageUploadFailed
from app.gallery.config import GalleryConfig
from app.gallery.exceptions import BackendError
from app.gallery.schemas import ContentItem
from app.main import create_app
from app.relay.constants import UploadStatus
from shared.utils.s3 import public_file_url

PUBLIC_BASE = "https://cdn.example.test/file/media"
SIGNED_URL = "https://s3.example.test/media/videos/1-a.mp4?X-Amz-Signature=abc"


# ── Relay fakes ──────────────────────────────────────────────────────────────

class FakeStorage:
    def __init__(self) -> None:
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.signed: list[tuple[str, int | None]] = []
        self.fail_with: str | None = None

    def public_url(self, key: str) -> str:
        return public_file_url(PUBLIC_BASE, key)

    async def put_object(self, key: str, body: bytes, content_type: str) -> None:
        if self.fail_with is not None:
            raise StorageUploadFailed(self.fail_with)
        self.objects[key] = (body, content_type)

    async def signed_read_url(self, key: str, expires_in: int | None = None) -> str:
        self.signed.append((key, expires_in))
        return SIGNED_URL


class FakeTranscoder:
    def __init__(self, response: dict[str, Any] | None = None) -> None:
        self.response = response if response is not None else {
            "data": {"id": "asset-1", "status": "preparing", "playback_ids": [{"id": "pb-1"}]},
        }
        self.inputs: list[str] = []

    async def create_asset(self, input_url: str) -> dict[str, Any]:
        self.inputs.append(input_url)
        return self.response


class FakeTracker:
    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}
        self.fail_with: Exception | None = None

    async def record(self, *, user_id: str, filename: str, b2_url: str, asset_id: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.records[asset_id] = {
            "user_id": user_id,
            "filename": filename,
            "b2_url": b2_url,
            "status": UploadStatus.PROCESSING,
            "playback_id": None,
            "error_message": None,
        }

    async def set_status(
        self,
        asset_id: str,
        *,
        status: UploadStatus,
        playback_id: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        record = self.records.get(asset_id)
        if record is None:
            return False
        record["status"] = status
        if playback_id is not None:
            record["playback_id"] = playback_id
        if error_message is not None:
            record["error_message"] = error_message
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        b2_bucket_name="media",
        b2_public_url=PUBLIC_BASE,
        mux_token_id="token",
        mux_token_secret="secret",
        mux_webhook_secret="",
        backend_url="http://backend.test",
        backend_anon_key="anon",
    )


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture
def client(
    settings: Settings,
    storage: FakeStorage,
    transcoder: FakeTranscoder,
    tracker: FakeTracker,
) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    app.state.storage = storage
    app.state.transcoder = transcoder
    app.state.tracker = tracker
    with TestClient(app) as c:
        yield c


# ── Gallery fakes ────────────────────────────────────────────────────────────

def make_item(item_id: str, **overrides: Any) -> ContentItem:
    values: dict[str, Any] = {
        "id": item_id,
        "user_id": "owner-1",
        "title": f"Title {item_id}",
        "creator": "Creator",
        "thumbnail_url": f"https://cdn.example.test/{item_id}.jpg",
        "content_url": f"https://cdn.example.test/{item_id}.mp4",
        "like_count": 0,
        "duration": "3:10",
        "type": "movie",
        "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return ContentItem(**values)


class FakeBackend:
    """In-memory stand-in for BackendClient; records every call."""

    def __init__(self, items: list[ContentItem] | None = None) -> None:
        self.items = list(items or [])
        self.likes: set[tuple[str, str]] = set()
        self.follows: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.tokens: list[str | None] = []
        self.failing: set[str] = set()
        self.durations: dict[str, str] = {}

    def with_token(self, access_token: str | None) -> "FakeBackend":
        self.tokens.append(access_token)
        return self

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.failing:
            raise BackendError(500, f"{name} failed")

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def get_content_by_destination(self, destination: str) -> list[ContentItem]:
        self._call("get_content_by_destination", destination)
        return list(self.items)

    async def update_duration(self, content_id: str, duration: str) -> None:
        self._call("update_duration", content_id, duration)
        self.durations[content_id] = duration

    async def delete_from_destination(self, content_id: str, destination: str) -> None:
        self._call("delete_from_destination", content_id, destination)

    async def track_view(self, content_id: str) -> None:
        self._call("track_view", content_id)

    async def liked_content_ids(self, user_id: str) -> set[str]:
        self._call("liked_content_ids", user_id)
        return {content_id for uid, content_id in self.likes if uid == user_id}

    async def like(self, user_id: str, content_id: str) -> None:
        self._call("like", user_id, content_id)
        self.likes.add((user_id, content_id))

    async def unlike(self, user_id: str, content_id: str) -> None:
        self._call("unlike", user_id, content_id)
        self.likes.discard((user_id, content_id))

    async def followed_creators(self, user_id: str) -> set[str]:
        self._call("followed_creators", user_id)
        return {creator for uid, creator in self.follows if uid == user_id}

    async def follow(self, user_id: str, creator_name: str) -> None:
        self._call("follow", user_id, creator_name)
        self.follows.add((user_id, creator_name))

    async def unfollow(self, user_id: str, creator_name: str) -> None:
        self._call("unfollow", user_id, creator_name)
        self.follows.discard((user_id, creator_name))


@pytest.fixture
def gallery_config() -> GalleryConfig:
    return GalleryConfig(
        backend_url="http://backend.test",
        backend_anon_key="anon",
        relay_url="http://relay.test/api/v1/relay",
        public_file_base_url=PUBLIC_BASE,
    )
