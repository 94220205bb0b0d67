"""
mapbox_utils - Upload files to Mapbox as tilesets.

Stages a file in the S3 bucket handed out by the Mapbox Uploads API,
starts tileset processing and optionally waits for it to finish.

Usage:
    from mapbox_utils import UploadOrchestrator, UploadConfig

    async with UploadOrchestrator(UploadConfig()) as orchestrator:
        result = await orchestrator.upload(
            "roads.geojson", "Roads", "roads", "my-user", token, wait=True
        )
    if not result.success:
        print(type(result.error).__name__, result.error)
"""
__version__ = "0.1.0"

from .errors import (
    LocalIOError,
    PollTimeoutError,
    ProcessingError,
    RemoteServiceError,
    StorageError,
    UploaderError,
)
from .models import (
    ProcessingJob,
    UploadConfig,
    UploadCredentials,
    UploadRequest,
    UploadResult,
    UploadStatus,
)
from .orchestrator import UploadOrchestrator

__all__ = [
    # Main
    "UploadOrchestrator",
    # Models
    "ProcessingJob",
    "UploadConfig",
    "UploadCredentials",
    "UploadRequest",
    "UploadResult",
    "UploadStatus",
    # Errors
    "UploaderError",
    "LocalIOError",
    "RemoteServiceError",
    "StorageError",
    "ProcessingError",
    "PollTimeoutError",
]
