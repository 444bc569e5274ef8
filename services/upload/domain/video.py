from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

PORTRAIT_RATIO = 16 / 9
LANDSCAPE_RATIO = 9 / 16
RATIO_TOLERANCE = 0.01


class AspectClass(str, Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    OTHER = "other"


@dataclass(frozen=True)
class Video:
    video_id: str
    user_id: str
    title: str
    created_at: datetime
    updated_at: datetime
    description: str = ""
    thumbnail_url: Optional[str] = None
    video_url: Optional[str] = None


def classify_aspect_ratio(width: float, height: float) -> AspectClass:
    """Classify a frame size by its height/width ratio.

    Only ratios within ``RATIO_TOLERANCE`` of 16:9 (portrait) or 9:16
    (landscape) are recognised; everything else is ``OTHER``.
    """
    ratio = height / width
    if abs(ratio - PORTRAIT_RATIO) < RATIO_TOLERANCE:
        return AspectClass.PORTRAIT
    if abs(ratio - LANDSCAPE_RATIO) < RATIO_TOLERANCE:
        return AspectClass.LANDSCAPE
    return AspectClass.OTHER


def media_subtype(media_type: str) -> str:
    essence = media_type.split(";", 1)[0].strip()
    return essence[essence.index("/") + 1 :]


def build_storage_key(aspect: AspectClass, token: str, extension: str) -> str:
    return f"{aspect.value}/{token}.{extension}"


# ffmpeg muxers that honour -movflags +faststart, keyed by media type
FASTSTART_MUXERS = {
    "video/mp4": "mp4",
    "video/quicktime": "mov",
}
