"""
Backend REST client — PostgREST conventions over async httpx.

Every call authenticates with the project's anon key plus, when a user is
signed in, that user's access token; row-level security on the backend
decides what the token may touch. Failures raise BackendError and are
handled by the caller (the gallery view rolls back or logs).
"""
from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from app.gallery.config import GalleryConfig
from app.gallery.constants import (
    CONTENT_TABLE,
    FOLLOWS_TABLE,
    LIKES_TABLE,
    RPC_CONTENT_BY_DESTINATION,
    RPC_DELETE_FROM_DESTINATION,
    RPC_TRACK_VIEW,
)
from app.gallery.exceptions import BackendError
from app.gallery.schemas import ContentItem

logger = logging.getLogger(__name__)


def _extract_error_detail(response: httpx.Response) -> str:
    detail = response.reason_phrase or f"Request failed ({response.status_code})"
    try:
        payload = response.json()
    except ValueError:
        return detail

    if isinstance(payload, dict):
        for key in ("message", "error_description", "error", "details", "hint"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return detail


def _eq(value: str) -> str:
    return f"eq.{value}"


class BackendClient:
    def __init__(
        self,
        config: GalleryConfig,
        *,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.backend_url.rstrip("/")
        self._access_token = access_token
        self._transport = transport

    def with_token(self, access_token: str | None) -> BackendClient:
        """Same backend, different caller identity."""
        return BackendClient(self._config, access_token=access_token, transport=self._transport)

    def _headers(self, prefer: str | None) -> dict[str, str]:
        bearer = self._access_token or self._config.backend_anon_key
        headers = {
            "apikey": self._config.backend_anon_key,
            "Authorization": f"Bearer {bearer}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        timeout = httpx.Timeout(self._config.request_timeout_secs, connect=3.0)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    f"{self._base_url}{path}",
                    params=params,
                    json=json,
                    headers=self._headers(prefer),
                )
        except httpx.RequestError as exc:
            raise BackendError(None, f"Backend is unavailable: {exc}") from exc

        if response.status_code >= 400:
            raise BackendError(response.status_code, _extract_error_detail(response))

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def _rpc(self, name: str, args: dict[str, Any]) -> Any:
        return await self._request("POST", f"/rest/v1/rpc/{name}", json=args)

    # ── Content ───────────────────────────────────────────────────────────

    async def get_content_by_destination(self, destination: str) -> list[ContentItem]:
        """Valid rows in backend order; malformed rows are skipped with a warning."""
        data = await self._rpc(RPC_CONTENT_BY_DESTINATION, {"destination": destination})
        if data is None:
            return []
        if not isinstance(data, list):
            raise BackendError(None, "Malformed content payload: expected a list of rows")

        items: list[ContentItem] = []
        for row in data:
            try:
                items.append(ContentItem.model_validate(row))
            except ValidationError as exc:
                row_id = row.get("id") if isinstance(row, dict) else None
                logger.warning("Skipping malformed content row %s: %s", row_id, exc)
        return items

    async def update_duration(self, content_id: str, duration: str) -> None:
        await self._request(
            "PATCH",
            f"/rest/v1/{CONTENT_TABLE}",
            params={"id": _eq(content_id)},
            json={"duration": duration},
            prefer="return=minimal",
        )

    async def delete_from_destination(self, content_id: str, destination: str) -> None:
        await self._rpc(
            RPC_DELETE_FROM_DESTINATION,
            {"content_id": content_id, "destination": destination},
        )

    async def track_view(self, content_id: str) -> None:
        await self._rpc(RPC_TRACK_VIEW, {"content_id": content_id})

    # ── Likes ─────────────────────────────────────────────────────────────

    async def liked_content_ids(self, user_id: str) -> set[str]:
        rows = await self._request(
            "GET",
            f"/rest/v1/{LIKES_TABLE}",
            params={"select": "content_id", "user_id": _eq(user_id)},
        )
        return {str(row["content_id"]) for row in rows or []}

    async def like(self, user_id: str, content_id: str) -> None:
        await self._request(
            "POST",
            f"/rest/v1/{LIKES_TABLE}",
            json={"user_id": user_id, "content_id": content_id},
            prefer="return=minimal",
        )

    async def unlike(self, user_id: str, content_id: str) -> None:
        await self._request(
            "DELETE",
            f"/rest/v1/{LIKES_TABLE}",
            params={"user_id": _eq(user_id), "content_id": _eq(content_id)},
        )

    # ── Follows (keyed by creator display name) ───────────────────────────

    async def followed_creators(self, user_id: str) -> set[str]:
        rows = await self._request(
            "GET",
            f"/rest/v1/{FOLLOWS_TABLE}",
            params={"select": "creator_name", "follower_id": _eq(user_id)},
        )
        return {str(row["creator_name"]) for row in rows or []}

    async def follow(self, user_id: str, creator_name: str) -> None:
        await self._request(
            "POST",
            f"/rest/v1/{FOLLOWS_TABLE}",
            json={"follower_id": user_id, "creator_name": creator_name},
            prefer="return=minimal",
        )

    async def unfollow(self, user_id: str, creator_name: str) -> None:
        await self._request(
            "DELETE",
            f"/rest/v1/{FOLLOWS_TABLE}",
            params={"follower_id": _eq(user_id), "creator_name": _eq(creator_name)},
        )
