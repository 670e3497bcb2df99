"""
Mux Video — asset creation over the REST API.

Mux pulls the input from the signed bucket URL and transcodes it
asynchronously; completion is reported back through the webhook route.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from app.config import Settings
from app.exceptions import TranscodeAssetFailed

logger = logging.getLogger(__name__)

_ASSETS_PATH = "/video/v1/assets"


class MuxClient:
    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = settings.mux_api_url.rstrip("/")
        self._auth = httpx.BasicAuth(settings.mux_token_id, settings.mux_token_secret)
        self._transport = transport

    async def create_asset(self, input_url: str) -> dict[str, Any]:
        """Create a public-playback asset from ``input_url``.

        Returns the provider's raw JSON body. The caller decides whether it
        describes a usable asset. Transport failures and non-JSON bodies
        raise TranscodeAssetFailed.
        """
        payload = {
            "input": {"url": input_url},
            "playback_policy": ["public"],
        }
        timeout = httpx.Timeout(30.0, connect=5.0)
        try:
            async with httpx.AsyncClient(
                timeout=timeout, auth=self._auth, transport=self._transport,
            ) as client:
                response = await client.post(f"{self._base_url}{_ASSETS_PATH}", json=payload)
        except httpx.HTTPError as exc:
            logger.error("Mux request failed: %s", exc)
            raise TranscodeAssetFailed(str(exc) or "Failed to reach transcoding provider") from exc

        if response.status_code >= 400:
            logger.error("Mux error %s: %s", response.status_code, response.text[:300])

        try:
            body = response.json()
        except ValueError as exc:
            raise TranscodeAssetFailed() from exc
        return body if isinstance(body, dict) else {}


def asset_id_of(payload: dict[str, Any]) -> str | None:
    data = payload.get("data")
    if isinstance(data, dict) and data.get("id"):
        return str(data["id"])
    return None
