"""
Media service — relay HTTP exceptions.

All exceptions use preset status codes and messages so that callers never
need to specify these at the call site. Every relay response, errors
included, carries the permissive CORS headers, so they are attached here.
The shared http_exception_handler renders them as ``{"error": ...}``.
"""
from fastapi import HTTPException, status

from app.relay.constants import CORS_HEADERS


class _RelayError(HTTPException):
    def __init__(self, status_code: int, detail: str) -> None:
        super().__init__(status_code=status_code, detail=detail, headers=dict(CORS_HEADERS))


# ── Client input ─────────────────────────────────────────────────────────────

class MissingUploadFields(_RelayError):
    def __init__(self) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, "Missing file or filename")


class MissingProcessFields(_RelayError):
    def __init__(self) -> None:
        super().__init__(status.HTTP_400_BAD_REQUEST, "Missing filename or userId")


class RelayMethodNotAllowed(_RelayError):
    def __init__(self) -> None:
        super().__init__(status.HTTP_405_METHOD_NOT_ALLOWED, "Method Not Allowed")


class InvalidWebhookPayload(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid webhook payload.",
        )


class InvalidWebhookSignature(HTTPException):
    def __init__(self) -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature.",
        )


# ── Storage ──────────────────────────────────────────────────────────────────

class StorageUploadFailed(_RelayError):
    def __init__(self, message: str = "Upload failed") -> None:
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


class SignedUrlFailed(_RelayError):
    def __init__(self, message: str = "Could not sign read URL") -> None:
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


# ── Transcoding / tracking ───────────────────────────────────────────────────

class TranscodeAssetFailed(_RelayError):
    def __init__(self, message: str = "Failed to create asset") -> None:
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


class TrackingInsertFailed(_RelayError):
    def __init__(self, message: str) -> None:
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message)
