"""Use cases for the upload-and-process workflow."""
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from mapbox_utils.errors import LocalIOError, PollTimeoutError
from mapbox_utils.models import ProcessingJob, UploadConfig, UploadCredentials

logger = logging.getLogger(__name__)

ProgressHook = Callable[[ProcessingJob], Awaitable[None]]


class ReadSourceFileUseCase:
    """Read the whole source file into memory."""

    async def execute(self, path: Path) -> bytes:
        file_path = Path(path)
        try:
            return await asyncio.to_thread(file_path.read_bytes)
        except OSError as exc:
            reason = exc.strerror or str(exc)
            raise LocalIOError(f"Could not read {file_path}: {reason}") from exc


class FetchCredentialsUseCase:
    """Obtain temporary staging credentials."""

    async def execute(self, api: Any, username: str, token: str) -> UploadCredentials:
        return await api.fetch_credentials(username, token)


class UploadToStorageUseCase:
    """Write the payload to the bucket/key named in the credentials."""

    async def execute(self, storage: Any, credentials: UploadCredentials, data: bytes) -> None:
        await storage.put_object(credentials, data)


class StartProcessingUseCase:
    """Register the staged object for tileset processing."""

    async def execute(
        self,
        api: Any,
        username: str,
        slug: str,
        name: str,
        credentials: UploadCredentials,
        token: str,
    ) -> ProcessingJob:
        return await api.start_processing(
            username, slug, name, credentials.bucket, credentials.key, token
        )


class PollProcessingUseCase:
    """
    Poll a processing job until it succeeds or reports an error.

    A job error ends polling and is returned, not raised. Between
    non-terminal polls the use case sleeps `config.poll_interval` seconds.
    Polling is unbounded unless `config.max_polls` or `config.max_wait`
    is set, in which case exceeding either raises PollTimeoutError.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._sleep = sleep
        self._clock = clock

    async def execute(
        self,
        api: Any,
        username: str,
        upload_id: str,
        token: str,
        config: UploadConfig,
        on_progress: Optional[ProgressHook] = None,
    ) -> ProcessingJob:
        started = self._clock()
        polls = 0

        while True:
            job = await api.get_status(username, upload_id, token)
            polls += 1
            logger.debug(
                "Poll %d for upload %s: progress=%s complete=%s error=%s",
                polls,
                upload_id,
                job.progress,
                job.complete,
                job.error,
            )

            if job.failed:
                return job
            if on_progress:
                await on_progress(job)
            if job.succeeded:
                return job

            if config.max_polls is not None and polls >= config.max_polls:
                raise PollTimeoutError(
                    f"Upload {upload_id} still processing after {polls} status checks."
                )
            delay = config.poll_interval
            if config.max_wait is not None:
                elapsed = self._clock() - started
                if elapsed >= config.max_wait:
                    raise PollTimeoutError(
                        f"Upload {upload_id} still processing after {elapsed:.0f}s."
                    )
                delay = min(delay, config.max_wait - elapsed)

            await self._sleep(delay)
