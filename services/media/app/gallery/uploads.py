"""
Upload client — pushes files through the relay service.

upload_file() reports failures in its return value so the upload form can
show them inline; process_video() raises, since nothing useful can be
shown until the transcoder accepted the asset.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.gallery.config import GalleryConfig
from app.gallery.exceptions import RelayError
from shared.utils.s3 import build_upload_key, public_file_url

logger = logging.getLogger(__name__)

_DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadOutcome:
    public_url: str = ""
    filename: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _relay_error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict) and isinstance(payload.get("error"), str):
        return payload["error"]
    return response.reason_phrase


class UploadClient:
    def __init__(
        self,
        config: GalleryConfig,
        *,
        access_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._relay_url = config.relay_url.rstrip("/")
        self._access_token = access_token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"apikey": self._config.backend_anon_key}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def file_url(self, filename: str) -> str:
        return public_file_url(self._config.public_file_base_url, filename)

    async def _post(self, path: str, **kwargs: Any) -> httpx.Response:
        timeout = httpx.Timeout(120.0, connect=5.0)
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            return await client.post(f"{self._relay_url}{path}", headers=self._headers(), **kwargs)

    async def upload_file(
        self,
        data: bytes,
        original_filename: str,
        folder: str,
        content_type: str | None = None,
        *,
        now_ms: int | None = None,
    ) -> UploadOutcome:
        filename = build_upload_key(folder, original_filename, now_ms)
        content_type = content_type or _DEFAULT_CONTENT_TYPE
        try:
            response = await self._post(
                "/upload-to-bucket",
                files={"file": (original_filename, data, content_type)},
                data={"filename": filename, "contentType": content_type},
            )
        except httpx.HTTPError as exc:
            logger.error("Upload of %s failed: %s", filename, exc)
            return UploadOutcome(error=str(exc) or "Upload failed")

        if response.status_code >= 400:
            return UploadOutcome(error=_relay_error_detail(response))
        try:
            body = response.json()
        except ValueError:
            body = {}
        public_url = body.get("publicUrl") if isinstance(body, dict) else None
        if not public_url:
            return UploadOutcome(error="Failed to upload file to bucket")
        return UploadOutcome(public_url=public_url, filename=body.get("filename", filename))

    async def process_video(self, filename: str, user_id: str) -> dict[str, Any]:
        """Hand a stored file to the transcoder; returns the provider payload."""
        try:
            response = await self._post(
                "/process-new-video",
                json={"filename": filename, "userId": user_id},
            )
        except httpx.HTTPError as exc:
            raise RelayError(str(exc) or "Failed to process video") from exc
        if response.status_code >= 400:
            raise RelayError(_relay_error_detail(response), response.status_code)
        return response.json()

    async def upload_video(
        self,
        data: bytes,
        original_filename: str,
        user_id: str,
        *,
        folder: str = "videos",
        content_type: str | None = None,
    ) -> dict[str, Any]:
        """Upload then process; raises RelayError if either step fails."""
        outcome = await self.upload_file(data, original_filename, folder, content_type)
        if not outcome.ok:
            raise RelayError(outcome.error or "Upload failed")
        return await self.process_video(outcome.filename, user_id)
