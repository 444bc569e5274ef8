from __future__ import annotations


class UploadError(Exception):
    """Base class for every failure surfaced by the upload pipeline."""


class ClientError(UploadError):
    """The request or its payload is malformed, oversized or mistyped."""


class AuthenticationError(UploadError):
    """The caller could not be identified from the request credentials."""


class AuthorizationError(UploadError):
    """The target video is missing or not owned by the caller."""


class VideoNotFoundError(AuthorizationError):
    pass


class ForbiddenError(AuthorizationError):
    pass


class ProcessingFailure(UploadError):
    """An external media tool exited non-zero or timed out."""

    def __init__(self, message: str, *, diagnostic: str = "") -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


class FormatFailure(UploadError):
    """An external media tool produced output of an unexpected shape."""


class EnvironmentFailure(UploadError):
    """An external media tool is missing or could not be spawned."""


class StorageFailure(UploadError):
    """The object store rejected or failed to receive an upload."""


class StagingFailure(UploadError):
    """Local staging of request bytes failed."""


class MetadataStoreFailure(UploadError):
    """The video metadata store could not be read or written."""
