from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable

from services.upload.application.dto import UploadVideoCommand
from services.upload.application.interfaces import (
    MediaNormalizer,
    MediaProber,
    ObjectPublisher,
    StagingArea,
    TokenProvider,
    VideoRepository,
)
from services.upload.domain.errors import (
    ClientError,
    ForbiddenError,
    VideoNotFoundError,
)
from services.upload.domain.video import Video, build_storage_key, media_subtype

LOGGER = logging.getLogger(__name__)


class UploadVideoUseCase:
    """Stages, normalizes, classifies and publishes an uploaded video.

    Every staged file lives inside a single staging scope, so nothing
    written for the request survives the call whichever step fails.
    """

    def __init__(
        self,
        *,
        repository: VideoRepository,
        staging: StagingArea,
        normalizer: MediaNormalizer,
        prober: MediaProber,
        publisher: ObjectPublisher,
        token_provider: TokenProvider,
        distribution_base_url: str,
        max_upload_bytes: int,
        accepted_media_types: Iterable[str],
    ) -> None:
        self._repository = repository
        self._staging = staging
        self._normalizer = normalizer
        self._prober = prober
        self._publisher = publisher
        self._token_provider = token_provider
        self._distribution_base_url = distribution_base_url.rstrip("/")
        self._max_upload_bytes = max_upload_bytes
        self._accepted_media_types = frozenset(t.lower() for t in accepted_media_types)

    def execute(self, command: UploadVideoCommand) -> Video:
        video = self._authorize(command)
        media_type = self._validate_payload(command)

        token = self._token_provider.generate()
        extension = media_subtype(media_type)

        with self._staging.open_scope() as scope:
            raw = scope.write(command.stream, f"{token}.{extension}")
            if raw.size > self._max_upload_bytes:
                raise ClientError("Video file size is too big")

            processed_path = scope.reserve(f"{token}.faststart.{extension}")
            self._normalizer.normalize(
                source=raw.path, destination=processed_path, media_type=media_type
            )
            scope.release(raw)

            aspect = self._prober.classify(processed_path)
            object_key = build_storage_key(aspect, token, extension)
            self._publisher.publish(
                source=processed_path, object_key=object_key, content_type=media_type
            )

            updated = replace(
                video, video_url=f"{self._distribution_base_url}/{object_key}"
            )
            saved = self._repository.update(updated)

        LOGGER.info("Published video %s as %s", video.video_id, object_key)
        return saved

    def _authorize(self, command: UploadVideoCommand) -> Video:
        if not command.video_id:
            raise ClientError("Invalid video ID")
        video = self._repository.get(command.video_id)
        if video is None:
            raise VideoNotFoundError("Video not found")
        if video.user_id != command.user_id:
            LOGGER.warning(
                "User %s attempted to upload to video %s owned by %s",
                command.user_id,
                video.video_id,
                video.user_id,
            )
            raise ForbiddenError("You do not own this video")
        return video

    def _validate_payload(self, command: UploadVideoCommand) -> str:
        if command.stream is None:
            raise ClientError("Video file is missing")
        if command.size is None or command.size < 0:
            raise ClientError("Video file size is unknown")
        if command.size > self._max_upload_bytes:
            raise ClientError("Video file size is too big")
        media_type = (command.media_type or "").strip().lower()
        if media_type not in self._accepted_media_types:
            raise ClientError(f"Unsupported media type: {command.media_type or 'none'}")
        return media_type
