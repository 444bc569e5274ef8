from dataclasses import dataclass
from typing import BinaryIO, Optional


@dataclass(frozen=True)
class UploadVideoCommand:
    video_id: str
    user_id: str
    stream: Optional[BinaryIO]
    size: Optional[int]
    media_type: Optional[str]
