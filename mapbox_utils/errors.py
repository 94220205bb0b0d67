"""Error types raised by the upload workflow."""
from typing import Any, Optional


class UploaderError(RuntimeError):
    """Base class for every failure the upload workflow reports."""


class LocalIOError(UploaderError):
    """Raised when the source file cannot be read."""


class RemoteServiceError(UploaderError):
    """Raised when the Uploads API answers with an unexpected status or body."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        status_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text


class StorageError(UploaderError):
    """Raised when writing the object to S3 fails."""


class ProcessingError(UploaderError):
    """
    A processing job reported an error.

    Never raised by the poller: the workflow builds one to describe a
    failed job so callers can tell it apart from transport failures.
    """

    def __init__(self, message: str, job: Any = None):
        super().__init__(message)
        self.job = job


class PollTimeoutError(UploaderError):
    """Raised when polling exceeds the configured attempt or time cap."""
