import subprocess

import pytest

from services.upload.domain.errors import EnvironmentFailure, ProcessingFailure
from services.upload.infrastructure import tools


def test_run_captures_streams_and_exit_status(monkeypatch):
    recorded = {}

    def fake_run(cmd, capture_output, timeout):
        recorded["cmd"] = cmd
        recorded["timeout"] = timeout
        return subprocess.CompletedProcess(cmd, 3, stdout=b"out", stderr=b"err")

    monkeypatch.setattr(tools.subprocess, "run", fake_run)
    runner = tools.SubprocessToolRunner(default_timeout=30)

    result = runner.run(("ffprobe", "-v", "error"))

    assert recorded["cmd"] == ["ffprobe", "-v", "error"]
    assert recorded["timeout"] == 30
    assert result.returncode == 3
    assert result.stdout == b"out"
    assert result.stderr == b"err"


def test_explicit_timeout_wins(monkeypatch):
    recorded = {}

    def fake_run(cmd, capture_output, timeout):
        recorded["timeout"] = timeout
        return subprocess.CompletedProcess(cmd, 0, stdout=b"", stderr=b"")

    monkeypatch.setattr(tools.subprocess, "run", fake_run)

    tools.SubprocessToolRunner(default_timeout=30).run(["ffmpeg"], timeout=5)

    assert recorded["timeout"] == 5


def test_missing_binary_is_environment_failure(monkeypatch):
    def fake_run(cmd, capture_output, timeout):
        raise FileNotFoundError(2, "No such file or directory", cmd[0])

    monkeypatch.setattr(tools.subprocess, "run", fake_run)

    with pytest.raises(EnvironmentFailure):
        tools.SubprocessToolRunner().run(["ffmpeg", "-version"])


def test_timeout_is_processing_failure(monkeypatch):
    def fake_run(cmd, capture_output, timeout):
        raise subprocess.TimeoutExpired(cmd, timeout, stderr=b"stalled")

    monkeypatch.setattr(tools.subprocess, "run", fake_run)

    with pytest.raises(ProcessingFailure) as excinfo:
        tools.SubprocessToolRunner().run(["ffmpeg"], timeout=1)

    assert "timed out" in str(excinfo.value)
    assert excinfo.value.diagnostic == "stalled"
