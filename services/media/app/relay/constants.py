"""
Upload relay — static constants and enum types.
"""
import enum


class UploadStatus(str, enum.Enum):
    PROCESSING = "processing"
    READY = "ready"
    ERRORED = "errored"


# Mux webhook event types that move a tracking record forward
WEBHOOK_ASSET_READY = "video.asset.ready"
WEBHOOK_ASSET_ERRORED = "video.asset.errored"

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

# Methods answered with 405 on the relay routes (POST and OPTIONS are served)
REJECTED_METHODS = ["GET", "PUT", "PATCH", "DELETE"]

UPLOAD_RATE_LIMIT = "30/minute"
PROCESS_RATE_LIMIT = "30/minute"
