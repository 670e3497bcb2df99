"""
Upload tracking — pure persistence logic.

Zero FastAPI imports. The module-level functions receive a session; the
UploadTracker owns session lifecycle for the relay handlers, which have no
request-scoped transaction of their own.
"""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.relay.constants import UploadStatus
from app.relay.models import VideoUpload

logger = logging.getLogger(__name__)


async def create_upload(
    db: AsyncSession,
    *,
    user_id: str,
    filename: str,
    b2_url: str,
    asset_id: str,
) -> VideoUpload:
    """Insert a tracking record in PROCESSING state."""
    upload = VideoUpload(
        user_id=user_id,
        filename=filename,
        b2_url=b2_url,
        asset_id=asset_id,
        status=UploadStatus.PROCESSING,
    )
    db.add(upload)
    await db.flush()
    return upload


async def get_upload_by_asset_id(db: AsyncSession, asset_id: str) -> VideoUpload | None:
    result = await db.execute(select(VideoUpload).where(VideoUpload.asset_id == asset_id))
    return result.scalar_one_or_none()


async def update_upload_status(
    db: AsyncSession,
    asset_id: str,
    *,
    status: UploadStatus,
    playback_id: str | None = None,
    error_message: str | None = None,
) -> VideoUpload | None:
    upload = await get_upload_by_asset_id(db, asset_id)
    if upload is None:
        return None

    upload.status = status
    if playback_id is not None:
        upload.playback_id = playback_id
    if error_message is not None:
        upload.error_message = error_message

    await db.flush()
    return upload


class UploadTracker:
    """Commits one tracking change per call in its own session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(
        self,
        *,
        user_id: str,
        filename: str,
        b2_url: str,
        asset_id: str,
    ) -> None:
        async with self._session_factory() as session:
            try:
                await create_upload(
                    session,
                    user_id=user_id,
                    filename=filename,
                    b2_url=b2_url,
                    asset_id=asset_id,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def set_status(
        self,
        asset_id: str,
        *,
        status: UploadStatus,
        playback_id: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Advance a record. Returns False when no record has ``asset_id``."""
        async with self._session_factory() as session:
            try:
                upload = await update_upload_status(
                    session,
                    asset_id,
                    status=status,
                    playback_id=playback_id,
                    error_message=error_message,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise
        return upload is not None
