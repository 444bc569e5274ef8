from __future__ import annotations

import logging
from pathlib import Path

from services.upload.application.interfaces import MediaNormalizer, ToolRunner
from services.upload.config import UploadConfig
from services.upload.domain.errors import ProcessingFailure
from services.upload.domain.video import FASTSTART_MUXERS
from services.upload.infrastructure.tools import SubprocessToolRunner, decode_output

LOGGER = logging.getLogger(__name__)


class FFmpegMediaNormalizer(MediaNormalizer):
    """Moves the moov atom to the front of an MP4/MOV file without re-encoding."""

    def __init__(
        self,
        runner: ToolRunner,
        *,
        ffmpeg_path: str = "ffmpeg",
        log_level: str = "error",
        timeout_seconds: float | None = None,
    ) -> None:
        self._runner = runner
        self._ffmpeg_path = ffmpeg_path
        self._log_level = log_level
        self._timeout = timeout_seconds

    def normalize(self, *, source: Path, destination: Path, media_type: str) -> Path:
        if destination.resolve() == source.resolve():
            raise ProcessingFailure(f"Refusing to rewrite {source.name} in place")
        muxer = FASTSTART_MUXERS.get(media_type.lower())
        if muxer is None:
            raise ProcessingFailure(f"No faststart muxer for {media_type}")
        destination.parent.mkdir(parents=True, exist_ok=True)
        result = self._runner.run(self._build_command(source, destination, muxer), timeout=self._timeout)
        if result.returncode != 0:
            stderr = decode_output(result.stderr).strip()
            LOGGER.error("ffmpeg faststart failed for %s: %s", source.name, stderr)
            raise ProcessingFailure(
                f"ffmpeg faststart failed for {source.name}",
                diagnostic=stderr or "unknown error",
            )
        LOGGER.info("Faststart rewrite of %s written to %s", source.name, destination.name)
        return destination

    def _build_command(self, source: Path, destination: Path, muxer: str) -> list[str]:
        return [
            self._ffmpeg_path,
            "-y",
            "-hide_banner",
            "-loglevel",
            self._log_level,
            "-i",
            source.as_posix(),
            "-c",
            "copy",
            "-movflags",
            "+faststart",
            "-f",
            muxer,
            destination.as_posix(),
        ]


def create_media_normalizer(config: UploadConfig, runner: ToolRunner | None = None) -> MediaNormalizer:
    return FFmpegMediaNormalizer(
        runner or SubprocessToolRunner(),
        ffmpeg_path=config.ffmpeg_path,
        timeout_seconds=config.process_timeout_seconds,
    )
