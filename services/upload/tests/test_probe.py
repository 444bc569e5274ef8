from __future__ import annotations

import json

import pytest

from services.upload.application.interfaces import ToolResult
from services.upload.domain.errors import FormatFailure, ProcessingFailure
from services.upload.domain.video import AspectClass
from services.upload.infrastructure import probe


class CannedRunner:
    def __init__(self, *, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> None:
        self.result = ToolResult(returncode=returncode, stdout=stdout, stderr=stderr)
        self.calls: list[list[str]] = []

    def run(self, args, *, timeout=None):
        self.calls.append(list(args))
        return self.result


def _streams(width, height) -> bytes:
    return json.dumps({"streams": [{"width": width, "height": height}]}).encode()


@pytest.mark.parametrize(
    "width, height, expected",
    [
        (1080, 1920, AspectClass.PORTRAIT),
        (1920, 1080, AspectClass.LANDSCAPE),
        (720, 720, AspectClass.OTHER),
    ],
)
def test_classify_from_ffprobe_output(tmp_path, width, height, expected):
    runner = CannedRunner(stdout=_streams(width, height))
    prober = probe.FFprobeMediaProber(runner)

    assert prober.classify(tmp_path / "clip.mp4") is expected


def test_ffprobe_arguments_select_first_video_stream(tmp_path):
    runner = CannedRunner(stdout=_streams(1080, 1920))
    prober = probe.FFprobeMediaProber(runner, ffprobe_path="/usr/bin/ffprobe")
    target = tmp_path / "clip.mp4"

    prober.classify(target)

    cmd = runner.calls[0]
    assert cmd[0] == "/usr/bin/ffprobe"
    assert cmd[cmd.index("-v") + 1] == "error"
    assert cmd[cmd.index("-select_streams") + 1] == "v:0"
    assert cmd[cmd.index("-show_entries") + 1] == "stream=width,height"
    assert cmd[cmd.index("-of") + 1] == "json"
    assert cmd[-1] == target.as_posix()


def test_nonzero_exit_is_processing_failure(tmp_path):
    runner = CannedRunner(returncode=1, stderr=b"Invalid data found when processing input")
    prober = probe.FFprobeMediaProber(runner)

    with pytest.raises(ProcessingFailure) as excinfo:
        prober.classify(tmp_path / "clip.mp4")

    assert "Invalid data" in excinfo.value.diagnostic


@pytest.mark.parametrize(
    "output",
    [
        "not json",
        "[]",
        "{}",
        '{"streams": []}',
        '{"streams": ["oops"]}',
        '{"streams": [{"width": 1080}]}',
        '{"streams": [{"width": "1080", "height": "1920"}]}',
        '{"streams": [{"width": true, "height": 1920}]}',
        '{"streams": [{"width": 0, "height": 1920}]}',
    ],
)
def test_malformed_output_is_format_failure(output):
    with pytest.raises(FormatFailure):
        probe.parse_stream_dimensions(output)


def test_parse_stream_dimensions_reads_first_stream():
    output = json.dumps({"streams": [{"width": 1280, "height": 720}, {"width": 1, "height": 1}]})
    assert probe.parse_stream_dimensions(output) == (1280, 720)
