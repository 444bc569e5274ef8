from __future__ import annotations

from contextlib import AbstractContextManager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Protocol, Sequence

if TYPE_CHECKING:
    from services.upload.domain.video import AspectClass, Video


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    stdout: bytes
    stderr: bytes


@dataclass(frozen=True)
class StagedFile:
    path: Path
    size: int


class ToolRunner(Protocol):
    def run(self, args: Sequence[str], *, timeout: float | None = None) -> ToolResult: ...


class MediaNormalizer(Protocol):
    def normalize(self, *, source: Path, destination: Path, media_type: str) -> Path: ...


class MediaProber(Protocol):
    def classify(self, path: Path) -> "AspectClass": ...


class TokenProvider(Protocol):
    def generate(self) -> str: ...


class ObjectPublisher(Protocol):
    def publish(self, *, source: Path, object_key: str, content_type: str) -> None: ...


class VideoRepository(Protocol):
    def get(self, video_id: str) -> "Video" | None: ...

    def update(self, video: "Video") -> "Video": ...


class StagingScope(Protocol):
    def write(self, stream: BinaryIO, name: str) -> StagedFile: ...

    def reserve(self, name: str) -> Path: ...

    def release(self, target: Path | StagedFile) -> None: ...


class StagingArea(Protocol):
    def open_scope(self) -> AbstractContextManager[StagingScope]: ...


class IdentityResolver(Protocol):
    def resolve(self, token: str) -> str: ...
