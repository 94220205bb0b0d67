"""
Storage Service - Single Responsibility: stage files in S3.

Writes the whole payload in one put_object call using the temporary
credentials handed out by the Uploads API.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import StorageError
from ..models import DEFAULT_REGION, UploadCredentials

logger = logging.getLogger(__name__)


class S3StorageService:
    """
    Service for writing objects to S3 with temporary credentials.

    Implements IObjectStorage protocol.
    """

    def __init__(self, region: str = DEFAULT_REGION, client_factory: Optional[Callable[..., Any]] = None):
        """
        Initialize storage service.

        Args:
            region: Fixed S3 region of the staging bucket
            client_factory: Builds the S3 client; defaults to boto3.client
        """
        self._region = region
        self._client_factory = client_factory or boto3.client

    def _build_client(self, credentials: UploadCredentials):
        return self._client_factory(
            "s3",
            region_name=self._region,
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            aws_session_token=credentials.session_token,
        )

    async def put_object(self, credentials: UploadCredentials, data: bytes) -> None:
        """
        Upload bytes to credentials.bucket/credentials.key.

        Raises:
            StorageError: on any S3 failure, with the original message
        """
        logger.debug(
            "Putting %d bytes to s3://%s/%s", len(data), credentials.bucket, credentials.key
        )
        try:
            client = self._build_client(credentials)
            await asyncio.to_thread(
                client.put_object,
                Body=data,
                Bucket=credentials.bucket,
                Key=credentials.key,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(str(exc)) from exc
