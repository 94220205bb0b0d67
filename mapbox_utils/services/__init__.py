"""Services for mapbox_utils package."""
from .api_client import HTTPAPIClient
from .storage import S3StorageService
from .uploads_api import UploadsAPI

__all__ = [
    "HTTPAPIClient",
    "S3StorageService",
    "UploadsAPI",
]
