"""
Uploads API - Single Responsibility: talk to the Mapbox Uploads API.

Implements Repository Pattern over the three upload endpoints.
"""
from typing import Dict

from ..errors import RemoteServiceError
from ..models import ProcessingJob, UploadCredentials, UploadRequest
from ..protocols import IAPIClient


NO_CACHE_HEADERS = {
    "Content-Type": "application/json",
    "Cache-Control": "no-cache",
}


def credentials_endpoint(username: str) -> str:
    return f"/uploads/v1/{username}/credentials"


def uploads_endpoint(username: str) -> str:
    return f"/uploads/v1/{username}"


def upload_status_endpoint(username: str, upload_id: str) -> str:
    return f"/uploads/v1/{username}/{upload_id}"


def _token_params(token: str) -> Dict[str, str]:
    return {"access_token": token}


def _restate(exc: RemoteServiceError, prefix: str, expected_status: int) -> RemoteServiceError:
    if exc.status_code is None or exc.status_code == expected_status:
        return RemoteServiceError(
            f"{prefix}: {exc}", status_code=exc.status_code, status_text=exc.status_text
        )
    return RemoteServiceError(
        f"{prefix}, status: {exc.status_code}: {exc.status_text}.",
        status_code=exc.status_code,
        status_text=exc.status_text,
    )


class UploadsAPI:
    """
    Repository for the Uploads API.

    Every call is authenticated with the `access_token` query parameter.
    """

    def __init__(self, api_client: IAPIClient):
        """
        Initialize repository.

        Args:
            api_client: HTTP client for API calls
        """
        self._api = api_client

    async def fetch_credentials(self, username: str, token: str) -> UploadCredentials:
        """
        Request temporary S3 credentials for staging a file.

        Args:
            username: Mapbox account name
            token: Access token with uploads scope

        Returns:
            Credentials and the bucket/key to upload to
        """
        try:
            data = await self._api.post(
                credentials_endpoint(username),
                expected_status=200,
                params=_token_params(token),
            )
        except RemoteServiceError as exc:
            raise _restate(exc, "Could not fetch upload credentials", 200) from exc
        return UploadCredentials.from_dict(data)

    async def start_processing(
        self,
        username: str,
        slug: str,
        name: str,
        bucket: str,
        key: str,
        token: str,
    ) -> ProcessingJob:
        """
        Ask the API to turn the staged object into the tileset `username.slug`.

        Returns:
            Initial job snapshot; its id is used for status queries
        """
        request = UploadRequest.build(username, slug, name, bucket, key)
        try:
            data = await self._api.post(
                uploads_endpoint(username),
                expected_status=201,
                json=request.to_dict(),
                params=_token_params(token),
                headers=NO_CACHE_HEADERS,
            )
        except RemoteServiceError as exc:
            raise _restate(exc, "Could not start upload processing", 201) from exc
        return ProcessingJob.from_dict(data)

    async def get_status(self, username: str, upload_id: str, token: str) -> ProcessingJob:
        """Fetch the current state of a processing job."""
        try:
            data = await self._api.get(
                upload_status_endpoint(username, upload_id),
                expected_status=200,
                params=_token_params(token),
                headers=NO_CACHE_HEADERS,
            )
        except RemoteServiceError as exc:
            raise _restate(exc, "Could not fetch processing status", 200) from exc
        return ProcessingJob.from_dict(data, require_progress=True)
