"""
VideoUpload ORM model — SQLAlchemy 2.0 async.

One row per processing call, correlating a stored bucket object with the
Mux asset created from it. Status is advanced by the Mux webhook.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum as SAEnum, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base
from app.relay.constants import UploadStatus


class VideoUpload(Base):
    __tablename__ = "video_uploads"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=func.gen_random_uuid(),
    )
    # Soft reference — users live in the auth backend
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    filename: Mapped[str] = mapped_column(String(1024), nullable=False)
    # Signed read URL the transcoder pulled from (expires after 15 min)
    b2_url: Mapped[str] = mapped_column(Text, nullable=False)

    asset_id: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    playback_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status: Mapped[UploadStatus] = mapped_column(
        SAEnum(
            UploadStatus,
            name="uploadstatus",
            values_callable=lambda e: [m.value for m in e],
            create_constraint=True,
        ),
        nullable=False,
        server_default=UploadStatus.PROCESSING.value,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True,
    )

    __table_args__ = (
        Index("ix_video_uploads_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<VideoUpload {self.filename} asset={self.asset_id} status={self.status}>"
