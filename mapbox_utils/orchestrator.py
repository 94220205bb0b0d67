"""Orchestrator - runs the upload workflow end to end."""
import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .errors import ProcessingError, UploaderError
from .models import ProcessingJob, UploadConfig, UploadResult, tileset_id
from .protocols import IObjectStorage, IUploadsAPI
from .services.api_client import HTTPAPIClient
from .services.storage import S3StorageService
from .services.uploads_api import UploadsAPI
from .use_cases import (
    FetchCredentialsUseCase,
    PollProcessingUseCase,
    ReadSourceFileUseCase,
    StartProcessingUseCase,
    UploadToStorageUseCase,
)
from .utils.events import (
    STEP_COMPLETE,
    STEP_FAIL,
    STEP_PROGRESS,
    STEP_START,
    EventEmitter,
    StepEvent,
)
from .utils.formatting import human_size

logger = logging.getLogger(__name__)


class UploadOrchestrator:
    """
    Stages a file in S3 and registers it for tileset processing.

    Services are injected or built in __aenter__. Step status changes are
    published on `events` (step_start, step_progress, step_complete,
    step_fail) with a StepEvent payload.

    Usage:
        async with UploadOrchestrator(UploadConfig()) as orchestrator:
            result = await orchestrator.upload(path, "Roads", "roads", "me", token, wait=True)
            return result.exit_code
    """

    def __init__(
        self,
        config: Optional[UploadConfig] = None,
        uploads_api: Optional[IUploadsAPI] = None,
        storage: Optional[IObjectStorage] = None,
        poller: Optional[PollProcessingUseCase] = None,
    ):
        """
        Initialize orchestrator with dependencies.

        Args:
            config: Upload configuration
            uploads_api: Pre-built Uploads API repository (built from config if omitted)
            storage: Object storage service (S3 in config.region if omitted)
            poller: Status polling use case
        """
        self._config = config or UploadConfig()
        self._uploads_api = uploads_api
        self._storage = storage or S3StorageService(region=self._config.region)
        self._api_client: Optional[HTTPAPIClient] = None

        self._read_file = ReadSourceFileUseCase()
        self._fetch_credentials = FetchCredentialsUseCase()
        self._upload_to_storage = UploadToStorageUseCase()
        self._start_processing = StartProcessingUseCase()
        self._poll = poller or PollProcessingUseCase()

        self.events = EventEmitter()

    async def __aenter__(self):
        """Open the HTTP client unless an Uploads API was injected."""
        if self._uploads_api is None:
            self._api_client = HTTPAPIClient(self._config.api_url, timeout=self._config.timeout)
            await self._api_client.__aenter__()
            self._uploads_api = UploadsAPI(self._api_client)
        return self

    async def __aexit__(self, *args):
        """Cleanup resources."""
        if self._api_client:
            await self._api_client.__aexit__(*args)
            self._api_client = None
            self._uploads_api = None

    def on(self, event_name: str, callback: Callable) -> None:
        self.events.on(event_name, callback)

    async def _emit(self, event_name: str, step: str, message: str) -> None:
        await self.events.emit(event_name, StepEvent(step, message))

    async def upload(
        self,
        source: Union[str, Path],
        name: str,
        slug: str,
        username: str,
        token: str,
        wait: bool = False,
    ) -> UploadResult:
        """
        Upload `source` and start processing it into tileset `username.slug`.

        Every workflow failure is returned as a failed UploadResult whose
        `error` is the UploaderError subclass describing the cause.
        """
        if self._uploads_api is None:
            raise RuntimeError("UploadOrchestrator not initialized. Use 'async with' context.")

        tileset = tileset_id(username, slug)
        step = "read"
        try:
            await self._emit(STEP_START, step, "Reading file into memory...")
            data = await self._read_file.execute(Path(source))
            await self._emit(STEP_COMPLETE, step, "Read file.")

            step = "credentials"
            await self._emit(STEP_START, step, f"Preparing to upload {source} ({human_size(len(data))}).")
            credentials = await self._fetch_credentials.execute(self._uploads_api, username, token)
            await self._emit(
                STEP_COMPLETE, step, f"Fetched credentials for upload from MapBox ({credentials.key})."
            )

            step = "storage"
            await self._emit(STEP_START, step, "Uploading file to S3.")
            await self._upload_to_storage.execute(self._storage, credentials, data)
            await self._emit(STEP_COMPLETE, step, "Uploaded file to S3.")

            step = "start"
            await self._emit(STEP_START, step, f"Starting processing {name} ({credentials.key}) at MapBox.")
            job = await self._start_processing.execute(
                self._uploads_api, username, slug, name, credentials, token
            )
            job_tileset = job.tileset or tileset
            await self._emit(STEP_COMPLETE, step, f"Started processing {name} ({job_tileset}) at MapBox.")
            logger.info("Started upload %s for tileset %s", job.id, job_tileset)

            if not wait:
                await self._emit(
                    STEP_COMPLETE,
                    "skip_poll",
                    "Not waiting on process to finish. Check MapBox Studio for the progress.",
                )
                return UploadResult.ok(tileset, job)

            step = "poll"
            await self._emit(STEP_START, step, "Progress at MapBox: 0%")
            final = await self._poll.execute(
                self._uploads_api,
                username,
                job.id,
                token,
                self._config,
                on_progress=self._report_progress,
            )
        except UploaderError as exc:
            logger.error("Upload of %s failed during %s: %s", source, step, exc)
            await self._emit(STEP_FAIL, step, str(exc))
            return UploadResult.fail(exc, tileset)

        if final.failed:
            message = f"Error occurred while processing {name} ({job_tileset}): {final.error}."
            logger.error(message)
            await self._emit(STEP_FAIL, step, message)
            return UploadResult.fail(ProcessingError(message, final), tileset, final)

        await self._emit(
            STEP_COMPLETE,
            step,
            f"Done processing upload {name} ({job_tileset}). Check MapBox Studio for the resulting tileset.",
        )
        return UploadResult.ok(tileset, final)

    async def _report_progress(self, job: ProcessingJob) -> None:
        await self._emit(STEP_PROGRESS, "poll", f"Progress at MapBox: {job.percent}%")
