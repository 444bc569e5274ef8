from __future__ import annotations

import logging
from typing import BinaryIO

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from services.upload.application.dto import UploadVideoCommand
from services.upload.application.interfaces import IdentityResolver
from services.upload.application.use_cases.upload_video import UploadVideoUseCase
from services.upload.domain.errors import (
    AuthenticationError,
    ClientError,
    ForbiddenError,
    UploadError,
    VideoNotFoundError,
)
from services.upload.domain.video import Video
from services.upload.infrastructure.auth import get_bearer_token

logger = logging.getLogger(__name__)

GENERIC_FAILURE_DETAIL = "Couldn't process video"


class VideoResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    thumbnail_url: str | None
    video_url: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, video: Video) -> "VideoResponse":
        return cls(
            id=video.video_id,
            user_id=video.user_id,
            title=video.title,
            description=video.description,
            thumbnail_url=video.thumbnail_url,
            video_url=video.video_url,
            created_at=video.created_at.isoformat().replace("+00:00", "Z"),
            updated_at=video.updated_at.isoformat().replace("+00:00", "Z"),
        )


def _measure(stream: BinaryIO) -> int:
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


def _to_http_exception(exc: UploadError) -> HTTPException:
    if isinstance(exc, ClientError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, ForbiddenError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, VideoNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    return HTTPException(status_code=500, detail=GENERIC_FAILURE_DETAIL)


def create_router(
    upload_video_use_case: UploadVideoUseCase,
    identity_resolver: IdentityResolver,
) -> APIRouter:
    router = APIRouter(prefix="/api", tags=["videos"])

    @router.post("/video_upload/{video_id}", response_model=VideoResponse)
    async def upload_video_endpoint(video_id: str, request: Request):
        # authenticate before the multipart body is read and spooled
        try:
            user_id = identity_resolver.resolve(
                get_bearer_token(request.headers.get("authorization"))
            )
        except AuthenticationError as exc:
            raise _to_http_exception(exc) from exc

        form = await request.form()
        try:
            video = form.get("video")
            if not isinstance(video, UploadFile):
                video = None
            size = None
            if video is not None:
                size = video.size if video.size is not None else _measure(video.file)
            command = UploadVideoCommand(
                video_id=video_id,
                user_id=user_id,
                stream=video.file if video is not None else None,
                size=size,
                media_type=video.content_type if video is not None else None,
            )
            logger.info("Uploading video %s for user %s", video_id, user_id)
            updated = await run_in_threadpool(upload_video_use_case.execute, command)
        except UploadError as exc:
            if isinstance(exc, (ClientError, AuthenticationError, VideoNotFoundError, ForbiddenError)):
                logger.info("Rejected upload for video %s: %s", video_id, exc)
            else:
                diagnostic = getattr(exc, "diagnostic", "")
                logger.error(
                    "Upload for video %s failed (%s): %s %s",
                    video_id,
                    type(exc).__name__,
                    exc,
                    diagnostic,
                    exc_info=exc,
                )
            raise _to_http_exception(exc) from exc
        except Exception as exc:
            logger.error("Unexpected error uploading video %s: %s", video_id, exc, exc_info=exc)
            raise HTTPException(status_code=500, detail=GENERIC_FAILURE_DETAIL) from exc
        finally:
            await form.close()
        return VideoResponse.from_domain(updated)

    return router
