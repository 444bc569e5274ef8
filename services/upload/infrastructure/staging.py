from __future__ import annotations

import logging
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator

from services.upload.application.interfaces import StagedFile, StagingArea, StagingScope
from services.upload.domain.errors import StagingFailure

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1024 * 1024


class LocalStagingScope(StagingScope):
    """Tracks every file handed out for one request and deletes them on close."""

    def __init__(self, root: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._root = root
        self._chunk_size = chunk_size
        self._paths: list[Path] = []

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    def reserve(self, name: str) -> Path:
        path = self._path_for(name)
        self._paths.append(path)
        return path

    def write(self, stream: BinaryIO, name: str) -> StagedFile:
        path = self._path_for(name)
        try:
            with path.open("xb") as dest:
                self._paths.append(path)
                shutil.copyfileobj(stream, dest, self._chunk_size)
            size = path.stat().st_size
        except OSError as exc:
            LOGGER.error("Failed to stage %s: %s", path, exc)
            raise StagingFailure(f"Unable to stage {name}: {exc}") from exc
        LOGGER.info("Staged %s (%d bytes)", path.name, size)
        return StagedFile(path=path, size=size)

    def release(self, target: Path | StagedFile) -> None:
        path = target.path if isinstance(target, StagedFile) else target
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            LOGGER.error("Failed to release staged file %s: %s", path, exc)
            raise StagingFailure(f"Unable to release {path.name}: {exc}") from exc
        if path in self._paths:
            self._paths.remove(path)

    def _path_for(self, name: str) -> Path:
        if not name or Path(name).name != name or name in {".", ".."}:
            raise StagingFailure(f"Invalid staged file name: {name!r}")
        return self._root / name

    def close(self) -> None:
        while self._paths:
            path = self._paths.pop()
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                LOGGER.error("Failed to delete staged file %s: %s", path, exc)


class LocalStagingArea(StagingArea):
    def __init__(self, root: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._root = root
        self._chunk_size = chunk_size

    @property
    def root(self) -> Path:
        return self._root

    @contextmanager
    def open_scope(self) -> Iterator[LocalStagingScope]:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Assets root %s is unusable: %s", self._root, exc)
            raise StagingFailure(f"Assets root {self._root} is unusable: {exc}") from exc
        scope = LocalStagingScope(self._root, chunk_size=self._chunk_size)
        try:
            yield scope
        finally:
            scope.close()
