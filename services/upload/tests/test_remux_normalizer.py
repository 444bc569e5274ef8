from __future__ import annotations

from pathlib import Path

import pytest

from services.upload.application.interfaces import ToolResult
from services.upload.domain.errors import ProcessingFailure
from services.upload.infrastructure import remux


class RecordingRunner:
    def __init__(self, result: ToolResult, *, write_output: bool = True) -> None:
        self.result = result
        self.write_output = write_output
        self.calls: list[dict[str, object]] = []

    def run(self, args, *, timeout=None):
        self.calls.append({"cmd": list(args), "timeout": timeout})
        if self.write_output:
            # simulate ffmpeg writing the file
            Path(args[-1]).write_bytes(b"remuxed")
        return self.result


def test_ffmpeg_normalizer_writes_distinct_faststart_output(tmp_path):
    runner = RecordingRunner(ToolResult(returncode=0, stdout=b"", stderr=b""))
    normalizer = remux.FFmpegMediaNormalizer(runner, ffmpeg_path="/opt/ffmpeg", timeout_seconds=60)
    source = tmp_path / "input.mp4"
    source.write_bytes(b"data")
    destination = tmp_path / "input.faststart.mp4"

    result = normalizer.normalize(source=source, destination=destination, media_type="video/mp4")

    assert result == destination
    assert result.read_bytes() == b"remuxed"
    assert source.read_bytes() == b"data"
    cmd = runner.calls[0]["cmd"]
    assert cmd[0] == "/opt/ffmpeg"
    assert cmd[cmd.index("-i") + 1] == source.as_posix()
    assert cmd[cmd.index("-c") + 1] == "copy"
    assert cmd[cmd.index("-movflags") + 1] == "+faststart"
    assert cmd[cmd.index("-f") + 1] == "mp4"
    assert cmd[-1] == destination.as_posix()
    assert runner.calls[0]["timeout"] == 60


def test_ffmpeg_normalizer_raises_on_failure(tmp_path):
    runner = RecordingRunner(
        ToolResult(returncode=1, stdout=b"", stderr=b"moov atom not found"),
        write_output=False,
    )
    normalizer = remux.FFmpegMediaNormalizer(runner)
    source = tmp_path / "input.mp4"
    source.write_bytes(b"data")

    with pytest.raises(ProcessingFailure) as excinfo:
        normalizer.normalize(source=source, destination=tmp_path / "out.mp4", media_type="video/mp4")

    assert excinfo.value.diagnostic == "moov atom not found"


def test_ffmpeg_normalizer_refuses_in_place_rewrite(tmp_path):
    runner = RecordingRunner(ToolResult(returncode=0, stdout=b"", stderr=b""))
    normalizer = remux.FFmpegMediaNormalizer(runner)
    source = tmp_path / "input.mp4"
    source.write_bytes(b"data")

    with pytest.raises(ProcessingFailure):
        normalizer.normalize(source=source, destination=source, media_type="video/mp4")

    assert runner.calls == []
    assert source.read_bytes() == b"data"


def test_ffmpeg_normalizer_picks_muxer_from_media_type(tmp_path):
    runner = RecordingRunner(ToolResult(returncode=0, stdout=b"", stderr=b""))
    normalizer = remux.FFmpegMediaNormalizer(runner)
    source = tmp_path / "input.mov"
    source.write_bytes(b"data")

    normalizer.normalize(
        source=source, destination=tmp_path / "input.faststart.mov", media_type="Video/QuickTime"
    )

    cmd = runner.calls[0]["cmd"]
    assert cmd[cmd.index("-f") + 1] == "mov"


def test_ffmpeg_normalizer_rejects_media_type_without_faststart_muxer(tmp_path):
    runner = RecordingRunner(ToolResult(returncode=0, stdout=b"", stderr=b""))
    normalizer = remux.FFmpegMediaNormalizer(runner)
    source = tmp_path / "input.webm"
    source.write_bytes(b"data")

    with pytest.raises(ProcessingFailure, match="video/webm"):
        normalizer.normalize(source=source, destination=tmp_path / "out.webm", media_type="video/webm")

    assert runner.calls == []
