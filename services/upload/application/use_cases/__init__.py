"""Use cases for the upload service."""

from .upload_video import UploadVideoUseCase

__all__ = [
    "UploadVideoUseCase",
]
