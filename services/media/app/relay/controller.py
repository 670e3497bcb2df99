"""
Upload relay — controller layer.

Receives validated input from the router, drives the bucket, Mux and the
tracker, and composes the response. The bucket write is a single
PutObject, so an upload either lands whole or not at all.

Known gap: the processing handler commits in two places. If the tracking
insert fails after Mux accepted the asset, the asset exists upstream with
no local record. Nothing here reconciles that; the filename is the natural
idempotency key for a future sweep against Mux.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import time
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import (
    InvalidWebhookPayload,
    InvalidWebhookSignature,
    MissingProcessFields,
    MissingUploadFields,
    TrackingInsertFailed,
    TranscodeAssetFailed,
)
from app.mux import asset_id_of
from app.relay.constants import (
    WEBHOOK_ASSET_ERRORED,
    WEBHOOK_ASSET_READY,
    UploadStatus,
)
from app.relay.schemas import ProcessVideoRequest, UploadResult, WebhookAck, WebhookEvent

if TYPE_CHECKING:
    from fastapi import UploadFile

    from app.config import Settings

logger = logging.getLogger(__name__)

_SIGNATURE_TOLERANCE_SECS = 300


class Storage(Protocol):
    def public_url(self, key: str) -> str: ...
    async def put_object(self, key: str, body: bytes, content_type: str) -> None: ...
    async def signed_read_url(self, key: str, expires_in: int | None = None) -> str: ...


class Transcoder(Protocol):
    async def create_asset(self, input_url: str) -> dict[str, Any]: ...


class Tracker(Protocol):
    async def record(self, *, user_id: str, filename: str, b2_url: str, asset_id: str) -> None: ...
    async def set_status(
        self,
        asset_id: str,
        *,
        status: UploadStatus,
        playback_id: str | None = None,
        error_message: str | None = None,
    ) -> bool: ...


def _db_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


async def upload_to_bucket(
    file: UploadFile | None,
    filename: str | None,
    content_type: str | None,
    storage: Storage,
    settings: Settings,
) -> UploadResult:
    """Store the posted file under ``filename`` and return its public URL."""
    if file is None or not filename:
        raise MissingUploadFields()

    body = await file.read()
    await storage.put_object(filename, body, content_type or settings.default_content_type)
    return UploadResult(public_url=storage.public_url(filename), filename=filename)


async def process_new_video(
    request: ProcessVideoRequest,
    storage: Storage,
    transcoder: Transcoder,
    tracker: Tracker,
    settings: Settings,
) -> dict[str, Any]:
    """Presign the stored object, create a Mux asset from it, track it."""
    if not request.filename or not request.user_id:
        raise MissingProcessFields()

    signed_url = await storage.signed_read_url(
        request.filename, settings.signed_read_url_expiry_seconds,
    )
    payload = await transcoder.create_asset(signed_url)

    asset_id = asset_id_of(payload)
    if asset_id is None:
        logger.error("Mux returned no asset id for %s: %s", request.filename, payload)
        raise TranscodeAssetFailed()

    try:
        await tracker.record(
            user_id=request.user_id,
            filename=request.filename,
            b2_url=signed_url,
            asset_id=asset_id,
        )
    except SQLAlchemyError as exc:
        logger.error(
            "Tracking insert failed for %s (asset %s left untracked): %s",
            request.filename, asset_id, exc,
        )
        raise TrackingInsertFailed(_db_message(exc)) from exc

    logger.info("Asset %s created for %s", asset_id, request.filename)
    return payload


def verify_webhook_signature(
    raw_body: bytes,
    header: str | None,
    secret: str,
    *,
    now: float | None = None,
) -> bool:
    """Check a ``Mux-Signature: t=<ts>,v1=<hex>`` header."""
    if not header:
        return False
    parts = dict(
        item.split("=", 1) for item in header.split(",") if "=" in item
    )
    timestamp, signature = parts.get("t"), parts.get("v1")
    if not timestamp or not signature:
        return False
    try:
        age = (now if now is not None else time.time()) - int(timestamp)
    except ValueError:
        return False
    if abs(age) > _SIGNATURE_TOLERANCE_SECS:
        return False

    expected = hmac.new(
        secret.encode(),
        f"{timestamp}.".encode() + raw_body,
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(expected, signature)


async def handle_transcoder_webhook(
    raw_body: bytes,
    signature_header: str | None,
    tracker: Tracker,
    settings: Settings,
) -> WebhookAck:
    if settings.mux_webhook_secret and not verify_webhook_signature(
        raw_body, signature_header, settings.mux_webhook_secret,
    ):
        raise InvalidWebhookSignature()

    try:
        event = WebhookEvent.model_validate_json(raw_body)
    except ValidationError as exc:
        logger.warning("Rejected malformed Mux webhook: %s", exc)
        raise InvalidWebhookPayload() from exc

    if event.type == WEBHOOK_ASSET_READY:
        playback_id = event.data.playback_ids[0].id if event.data.playback_ids else None
        updated = await tracker.set_status(
            event.data.id, status=UploadStatus.READY, playback_id=playback_id,
        )
    elif event.type == WEBHOOK_ASSET_ERRORED:
        updated = await tracker.set_status(
            event.data.id,
            status=UploadStatus.ERRORED,
            error_message=event.error_message() or "Transcoding failed",
        )
    else:
        logger.debug("Ignoring Mux event %s", event.type)
        return WebhookAck()

    if not updated:
        logger.warning("Mux event %s for untracked asset %s", event.type, event.data.id)
    return WebhookAck(updated=updated)
