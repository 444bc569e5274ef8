from __future__ import annotations

import logging
import subprocess
from typing import Sequence

from services.upload.application.interfaces import ToolResult, ToolRunner
from services.upload.domain.errors import EnvironmentFailure, ProcessingFailure

LOGGER = logging.getLogger(__name__)


class SubprocessToolRunner(ToolRunner):
    """Runs an external tool to completion and captures both output streams.

    ``subprocess.run`` kills the child when ``timeout`` elapses, so a stalled
    tool never outlives the request that spawned it.
    """

    def __init__(self, *, default_timeout: float | None = None) -> None:
        self._default_timeout = default_timeout

    def run(self, args: Sequence[str], *, timeout: float | None = None) -> ToolResult:
        timeout = timeout if timeout is not None else self._default_timeout
        tool = args[0]
        try:
            completed = subprocess.run(list(args), capture_output=True, timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            stderr = decode_output(exc.stderr)
            LOGGER.error("%s timed out after %ss", tool, timeout)
            raise ProcessingFailure(
                f"{tool} timed out after {timeout}s", diagnostic=stderr
            ) from exc
        except OSError as exc:
            LOGGER.error("Unable to spawn %s: %s", tool, exc)
            raise EnvironmentFailure(f"Unable to run {tool}: {exc}") from exc
        return ToolResult(
            returncode=completed.returncode,
            stdout=completed.stdout or b"",
            stderr=completed.stderr or b"",
        )


def decode_output(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="ignore")
