"""
Upload relay — HTTP routes.

Both relay handlers are called straight from the browser: they answer the
CORS pre-flight themselves and reject anything but POST with a 405.
"""
from fastapi import APIRouter, Depends, File, Form, Header, Request, UploadFile
from fastapi.responses import JSONResponse, PlainTextResponse

from app.config import Settings
from app.exceptions import RelayMethodNotAllowed
from app.mux import MuxClient
from app.rate_limit import limiter
from app.relay import controller
from app.relay.constants import (
    CORS_HEADERS,
    PROCESS_RATE_LIMIT,
    REJECTED_METHODS,
    UPLOAD_RATE_LIMIT,
)
from app.relay.dependencies import get_settings, get_storage, get_tracker, get_transcoder
from app.relay.schemas import ProcessVideoRequest, UploadResult, WebhookAck
from app.relay.service import UploadTracker
from app.s3 import BucketStorage

router = APIRouter(prefix="/relay", tags=["relay"])

_UPLOAD_PATH = "/upload-to-bucket"
_PROCESS_PATH = "/process-new-video"


# ── Pre-flight / wrong method ────────────────────────────────────────────────

@router.options(_UPLOAD_PATH, include_in_schema=False)
@router.options(_PROCESS_PATH, include_in_schema=False)
async def preflight() -> PlainTextResponse:
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.api_route(_UPLOAD_PATH, methods=REJECTED_METHODS, include_in_schema=False)
@router.api_route(_PROCESS_PATH, methods=REJECTED_METHODS, include_in_schema=False)
async def method_not_allowed() -> None:
    raise RelayMethodNotAllowed()


# ── Relay handlers ───────────────────────────────────────────────────────────

@router.post(
    _UPLOAD_PATH,
    response_model=UploadResult,
    summary="Upload a file to the bucket",
    description=(
        "Multipart form with `file`, `filename` (the object key, built by the "
        "client as `{folder}/{unixMillis}-{name}`) and optional `contentType`. "
        "Returns the public URL of the stored object."
    ),
)
@limiter.limit(UPLOAD_RATE_LIMIT)
async def upload_to_bucket(
    request: Request,
    file: UploadFile | None = File(default=None),
    filename: str | None = Form(default=None),
    content_type: str | None = Form(default=None, alias="contentType"),
    storage: BucketStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    result = await controller.upload_to_bucket(file, filename, content_type, storage, settings)
    return JSONResponse(content=result.model_dump(by_alias=True), headers=CORS_HEADERS)


@router.post(
    _PROCESS_PATH,
    summary="Hand a stored video to the transcoder",
    description=(
        "JSON `{filename, userId}`. Presigns a 15-minute read URL, creates a "
        "Mux asset from it and records the upload as `processing`. Returns "
        "the raw Mux response."
    ),
)
@limiter.limit(PROCESS_RATE_LIMIT)
async def process_new_video(
    request: Request,
    body: ProcessVideoRequest,
    storage: BucketStorage = Depends(get_storage),
    transcoder: MuxClient = Depends(get_transcoder),
    tracker: UploadTracker = Depends(get_tracker),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    payload = await controller.process_new_video(body, storage, transcoder, tracker, settings)
    return JSONResponse(content=payload, headers=CORS_HEADERS)


# ── Transcoder webhook ───────────────────────────────────────────────────────

@router.post(
    "/webhooks/transcoder",
    response_model=WebhookAck,
    summary="Mux webhook receiver",
    description="Advances tracking records on `video.asset.ready` / `video.asset.errored`.",
)
async def transcoder_webhook(
    request: Request,
    mux_signature: str | None = Header(default=None, alias="Mux-Signature"),
    tracker: UploadTracker = Depends(get_tracker),
    settings: Settings = Depends(get_settings),
) -> WebhookAck:
    raw_body = await request.body()
    return await controller.handle_transcoder_webhook(raw_body, mux_signature, tracker, settings)
