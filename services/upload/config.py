from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from services.upload.domain.video import FASTSTART_MUXERS

DEFAULT_MAX_UPLOAD_BYTES = 1 << 30


def _load_repo_env() -> None:
    """Load the nearest .env starting from this file upward."""
    current = Path(__file__).resolve()
    for candidate in [current.parent, *current.parents]:
        env_file = candidate / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


_load_repo_env()


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or value == "":
        raise ValueError(f"Environment variable {name} is required")
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    items = tuple(item.strip().lower() for item in raw.split(",") if item.strip())
    return items or default


def _media_types(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    media_types = _env_list(name, default)
    unsupported = [t for t in media_types if t not in FASTSTART_MUXERS]
    if unsupported:
        raise ValueError(
            f"Environment variable {name} lists unsupported media types: "
            f"{', '.join(unsupported)}"
        )
    return media_types


@dataclass(frozen=True)
class UploadConfig:
    max_upload_bytes: int
    accepted_media_types: tuple[str, ...]
    assets_root: Path
    storage_bucket: str
    storage_region: str
    storage_endpoint_url: str | None
    storage_access_key: str | None
    storage_secret_key: str | None
    distribution_url: str | None
    process_timeout_seconds: int
    ffmpeg_path: str
    ffprobe_path: str
    database_url: str
    jwt_secret: str
    log_level: str = "INFO"

    @property
    def distribution_base_url(self) -> str:
        if self.distribution_url:
            return self.distribution_url.rstrip("/")
        return f"https://{self.storage_bucket}.s3.{self.storage_region}.amazonaws.com"


def load_config() -> UploadConfig:
    return UploadConfig(
        max_upload_bytes=_env_int("UPLOAD_MAX_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
        accepted_media_types=_media_types("UPLOAD_ACCEPTED_MEDIA_TYPES", ("video/mp4",)),
        assets_root=Path(os.getenv("UPLOAD_ASSETS_ROOT", "./assets")),
        storage_bucket=_require_env("UPLOAD_STORAGE_BUCKET"),
        storage_region=os.getenv("UPLOAD_STORAGE_REGION", "us-east-1"),
        storage_endpoint_url=os.getenv("UPLOAD_STORAGE_ENDPOINT_URL") or None,
        storage_access_key=os.getenv("UPLOAD_STORAGE_ACCESS_KEY") or None,
        storage_secret_key=os.getenv("UPLOAD_STORAGE_SECRET_KEY") or None,
        distribution_url=os.getenv("UPLOAD_DISTRIBUTION_URL") or None,
        process_timeout_seconds=_env_int("UPLOAD_PROCESS_TIMEOUT_SECONDS", 300),
        ffmpeg_path=os.getenv("UPLOAD_FFMPEG_PATH", "ffmpeg"),
        ffprobe_path=os.getenv("UPLOAD_FFPROBE_PATH", "ffprobe"),
        database_url=os.getenv("UPLOAD_DATABASE_URL", "sqlite:///./tubely.db"),
        jwt_secret=_require_env("UPLOAD_JWT_SECRET"),
        log_level=os.getenv("UPLOAD_LOG_LEVEL", "INFO").upper(),
    )
