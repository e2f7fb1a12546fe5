"""Ghost content and revision models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ghostcontent.models.base import Base
from ghostcontent.services.datetime_service import now_utc


class GhostContent(Base):
    """Current content of one file in a tracked folder.

    Deleted files keep their row as a tombstone (``content`` is NULL).
    """

    __tablename__ = "ghost_content"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    folder: Mapped[str] = mapped_column(Text, nullable=False)
    file: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    revisions: Mapped[list[GhostRevision]] = relationship(
        back_populates="content_entry", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (UniqueConstraint("folder", "file", name="uq_ghost_content_folder_file"),)


class GhostRevision(Base):
    """Append-only record of one committed mutation."""

    __tablename__ = "ghost_revisions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ghost_content.id", ondelete="CASCADE"),
        nullable=False,
    )
    revision: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=now_utc
    )
    created_by: Mapped[str] = mapped_column(Text, nullable=False)

    content_entry: Mapped[GhostContent] = relationship(back_populates="revisions")

    __table_args__ = (Index("idx_ghost_revisions_content_id", "content_id"),)
