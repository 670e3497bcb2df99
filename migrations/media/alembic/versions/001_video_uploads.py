"""video_uploads tracking table

Revision ID: 001_video_uploads
Revises:
Create Date: 2026-10-16

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, UUID

# revision identifiers, used by Alembic.
revision: str = "001_video_uploads"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    upload_status = sa.Enum(
        "processing", "ready", "errored",
        name="uploadstatus",
    )
    upload_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "video_uploads",
        sa.Column(
            "id",
            UUID(as_uuid=True),
            primary_key=True,
            server_default=sa.text("gen_random_uuid()"),
        ),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("filename", sa.String(1024), nullable=False),
        sa.Column("b2_url", sa.Text, nullable=False),
        sa.Column("asset_id", sa.String(100), nullable=False),
        sa.Column("playback_id", sa.String(100), nullable=True),
        sa.Column(
            "status",
            ENUM("processing", "ready", "errored", name="uploadstatus", create_type=False),
            nullable=False,
            server_default="processing",
        ),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=True,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("asset_id", name="uq_video_uploads_asset_id"),
    )

    op.create_index("ix_video_uploads_user_id", "video_uploads", ["user_id"])
    op.create_index(
        "ix_video_uploads_user_created",
        "video_uploads",
        ["user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("video_uploads")
    op.execute("DROP TYPE IF EXISTS uploadstatus")
