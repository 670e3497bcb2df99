"""
Upload relay — injected collaborators.

Everything is built once in create_app() from the explicit Settings and
parked on ``app.state``; handlers never read the environment themselves.
Tests replace them on ``app.state`` or through ``app.dependency_overrides``.
"""
from fastapi import Request

from app.config import Settings
from app.mux import MuxClient
from app.relay.service import UploadTracker
from app.s3 import BucketStorage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> BucketStorage:
    return request.app.state.storage


def get_transcoder(request: Request) -> MuxClient:
    return request.app.state.transcoder


def get_tracker(request: Request) -> UploadTracker:
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise RuntimeError("Database not initialized")
    return tracker
