"""
Protocols (Interfaces) for Dependency Inversion.

Small, focused interfaces so the workflow can run against fakes in tests.
"""
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from .models import ProcessingJob, UploadCredentials


@runtime_checkable
class IAPIClient(Protocol):
    """Interface for raw API calls."""

    async def post(
        self,
        endpoint: str,
        expected_status: int,
        json: Optional[Dict] = None,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """POST request, returning the decoded JSON body."""
        ...

    async def get(
        self,
        endpoint: str,
        expected_status: int,
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """GET request, returning the decoded JSON body."""
        ...


@runtime_checkable
class IUploadsAPI(Protocol):
    """Interface for the Uploads API operations."""

    async def fetch_credentials(self, username: str, token: str) -> UploadCredentials:
        ...

    async def start_processing(
        self,
        username: str,
        slug: str,
        name: str,
        bucket: str,
        key: str,
        token: str,
    ) -> ProcessingJob:
        ...

    async def get_status(self, username: str, upload_id: str, token: str) -> ProcessingJob:
        ...


@runtime_checkable
class IObjectStorage(Protocol):
    """Interface for object storage writes."""

    async def put_object(self, credentials: UploadCredentials, data: bytes) -> None:
        """Store bytes at the credentials' bucket/key."""
        ...
