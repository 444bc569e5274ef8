from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from services.upload.application.interfaces import MediaProber, ToolRunner
from services.upload.config import UploadConfig
from services.upload.domain.errors import FormatFailure, ProcessingFailure
from services.upload.domain.video import AspectClass, classify_aspect_ratio
from services.upload.infrastructure.tools import SubprocessToolRunner, decode_output

LOGGER = logging.getLogger(__name__)


class FFprobeMediaProber(MediaProber):
    def __init__(
        self,
        runner: ToolRunner,
        *,
        ffprobe_path: str = "ffprobe",
        timeout_seconds: float | None = None,
    ) -> None:
        self._runner = runner
        self._ffprobe_path = ffprobe_path
        self._timeout = timeout_seconds

    def classify(self, path: Path) -> AspectClass:
        width, height = self.dimensions(path)
        aspect = classify_aspect_ratio(width, height)
        LOGGER.info("Probed %s: %sx%s -> %s", path.name, width, height, aspect.value)
        return aspect

    def dimensions(self, path: Path) -> tuple[float, float]:
        cmd = [
            self._ffprobe_path,
            "-v",
            "error",
            "-select_streams",
            "v:0",
            "-show_entries",
            "stream=width,height",
            "-of",
            "json",
            path.as_posix(),
        ]
        result = self._runner.run(cmd, timeout=self._timeout)
        if result.returncode != 0:
            stderr = decode_output(result.stderr).strip()
            LOGGER.error("ffprobe failed for %s: %s", path.name, stderr)
            raise ProcessingFailure(
                f"ffprobe failed for {path.name}", diagnostic=stderr or "unknown error"
            )
        return parse_stream_dimensions(decode_output(result.stdout))


def parse_stream_dimensions(output: str) -> tuple[float, float]:
    """Extract width and height of the first stream from ffprobe JSON."""
    try:
        payload = json.loads(output)
    except json.JSONDecodeError as exc:
        raise FormatFailure(f"ffprobe output is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise FormatFailure("ffprobe output is not a JSON object")

    streams = payload.get("streams")
    if not isinstance(streams, list) or not streams:
        raise FormatFailure("ffprobe output has no video streams")
    stream = streams[0]
    if not isinstance(stream, dict):
        raise FormatFailure("ffprobe stream entry is not an object")

    return _dimension(stream, "width"), _dimension(stream, "height")


def _dimension(stream: dict[str, Any], field: str) -> float:
    value = stream.get(field)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FormatFailure(f"ffprobe stream {field} is missing or not numeric")
    if value <= 0:
        raise FormatFailure(f"ffprobe stream {field} must be positive, got {value}")
    return value


def create_media_prober(config: UploadConfig, runner: ToolRunner | None = None) -> MediaProber:
    return FFprobeMediaProber(
        runner or SubprocessToolRunner(),
        ffprobe_path=config.ffprobe_path,
        timeout_seconds=config.process_timeout_seconds,
    )
