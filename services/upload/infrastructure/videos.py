"""Video metadata repository backed by SQLAlchemy."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.exc import SQLAlchemyError

from services.upload.application.interfaces import VideoRepository
from services.upload.domain.errors import MetadataStoreFailure, VideoNotFoundError
from services.upload.domain.video import Video
from services.upload.infrastructure.db import Base

LOGGER = logging.getLogger(__name__)


class VideoRecord(Base):
    __tablename__ = "videos"

    video_id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    thumbnail_url = Column(String, nullable=True)
    video_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


def _to_domain(record: VideoRecord) -> Video:
    return Video(
        video_id=record.video_id,
        user_id=record.user_id,
        title=record.title,
        description=record.description or "",
        thumbnail_url=record.thumbnail_url,
        video_url=record.video_url,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


class SqlVideoRepository(VideoRepository):
    """Reads videos by id and persists the whole row on update.

    Updates are last-writer-wins; there is no version check.
    """

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def get(self, video_id: str) -> Video | None:
        try:
            with self._session_factory() as db:
                record = db.get(VideoRecord, video_id)
                if record is None:
                    return None
                return _to_domain(record)
        except SQLAlchemyError as exc:
            LOGGER.error("Failed to load video %s: %s", video_id, exc)
            raise MetadataStoreFailure(f"Unable to load video {video_id}") from exc

    def update(self, video: Video) -> Video:
        try:
            with self._session_factory() as db:
                record = db.get(VideoRecord, video.video_id)
                if record is None:
                    raise VideoNotFoundError(f"Video {video.video_id} not found")
                record.title = video.title
                record.description = video.description
                record.thumbnail_url = video.thumbnail_url
                record.video_url = video.video_url
                record.updated_at = datetime.now(timezone.utc)
                db.commit()
                db.refresh(record)
                saved = _to_domain(record)
        except SQLAlchemyError as exc:
            LOGGER.error("Failed to update video %s: %s", video.video_id, exc)
            raise MetadataStoreFailure(f"Unable to update video {video.video_id}") from exc
        LOGGER.info("Updated video %s", video.video_id)
        return saved
