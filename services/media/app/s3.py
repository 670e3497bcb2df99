"""
Bucket access — Backblaze B2 through its S3-compatible API.

Relay flow:
  1. Client builds the object key ``{folder}/{unixMillis}-{name}`` and posts
     the file to the upload handler, which writes it with a single PutObject.
  2. Client posts the key to the processing handler, which presigns a
     short-lived GET URL for the transcoder to pull the object from.
"""
from __future__ import annotations

import logging

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings
from app.exceptions import SignedUrlFailed, StorageUploadFailed
from shared.utils.s3 import public_file_url

logger = logging.getLogger(__name__)


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        error = exc.response.get("Error", {})
        return error.get("Message") or error.get("Code") or str(exc)
    return str(exc)


class BucketStorage:
    """Thin async wrapper around one B2 bucket."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._session = aioboto3.Session(
            aws_access_key_id=settings.b2_key_id,
            aws_secret_access_key=settings.b2_application_key,
            region_name=settings.b2_region,
        )

    @property
    def bucket(self) -> str:
        return self._settings.b2_bucket_name

    def _client(self):
        return self._session.client(
            "s3", endpoint_url=self._settings.b2_s3_endpoint or None,
        )

    def public_url(self, key: str) -> str:
        return public_file_url(self._settings.b2_public_url, key)

    async def put_object(self, key: str, body: bytes, content_type: str) -> None:
        """Write the whole payload under ``key``. Raises StorageUploadFailed."""
        try:
            async with self._client() as s3:
                await s3.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
        except (BotoCoreError, ClientError) as exc:
            logger.error("B2 put_object failed for key %s: %s", key, exc)
            raise StorageUploadFailed(_error_message(exc)) from exc
        logger.info("Stored %s (%d bytes, %s)", key, len(body), content_type)

    async def signed_read_url(self, key: str, expires_in: int | None = None) -> str:
        """Return a presigned GET URL. Raises SignedUrlFailed."""
        expiry = expires_in or self._settings.signed_read_url_expiry_seconds
        try:
            async with self._client() as s3:
                url: str = await s3.generate_presigned_url(
                    "get_object",
                    Params={"Bucket": self.bucket, "Key": key},
                    ExpiresIn=expiry,
                )
        except (BotoCoreError, ClientError) as exc:
            logger.error("B2 presign failed for key %s: %s", key, exc)
            raise SignedUrlFailed(_error_message(exc)) from exc
        return url
