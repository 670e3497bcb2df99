import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings
from app.database import close_db, init_db
from app.mux import MuxClient
from app.rate_limit import limiter
from app.relay.router import router as relay_router
from app.relay.service import UploadTracker
from app.s3 import BucketStorage
from shared.middleware.error_handler import (
    error_envelope_middleware,
    http_exception_handler,
    validation_exception_handler,
)
from shared.middleware.request_id import request_id_middleware

# Configure application logging so relay failures are visible
logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s: %(message)s")


# ── OpenAPI metadata ──────────────────────────────────────────────────────────

_DESCRIPTION = """
## Mediahub Upload Relay Service

Browser-facing relay between the Media page, the Backblaze B2 bucket and Mux.

* **Upload** — multipart file → single B2 PutObject → public URL.
* **Process** — presigned 15-minute read URL → Mux asset → `video_uploads` row.
* **Webhook** — Mux `video.asset.ready` / `video.asset.errored` → tracking status.

### Error shape
All errors return a flat JSON envelope:
```json
{ "error": "Human-readable message", "request_id": "..." }
```
"""

_TAGS_METADATA = [
    {
        "name": "relay",
        "description": "Upload files to the bucket and hand videos to the transcoder.",
    },
]


# ── Health schema ─────────────────────────────────────────────────────────────

class HealthResponse(BaseModel):
    status: str
    service: str


# ── App factory ───────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if getattr(app.state, "tracker", None) is None:
        app.state.tracker = UploadTracker(init_db(settings))
    yield
    await close_db()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(
        title="Mediahub Upload Relay Service",
        version="1.0.0",
        description=_DESCRIPTION,
        openapi_tags=_TAGS_METADATA,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Collaborators are built once from the explicit settings
    app.state.settings = settings
    app.state.storage = BucketStorage(settings)
    app.state.transcoder = MuxClient(settings)
    app.state.tracker = None

    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Middleware (applied in reverse-registration order: last added = outermost).
    # No CORSMiddleware: the relay routes answer their own pre-flight.
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(error_envelope_middleware)

    app.include_router(relay_router, prefix="/api/v1")

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="media")

    return app


app = create_app()
