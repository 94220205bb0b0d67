"""
Models for the mapbox_utils package.

Immutable dataclasses; each workflow stage produces a snapshot
consumed by the next one.
"""
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import RemoteServiceError, UploaderError


DEFAULT_API_URL = "https://api.mapbox.com"
DEFAULT_REGION = "us-east-1"
DEFAULT_POLL_INTERVAL = 1.0

OBJECT_URL_TEMPLATE = "http://{bucket}.s3.amazonaws.com/{key}"


def _require_str(data: Dict[str, Any], field: str, entity: str) -> str:
    value = data.get(field)
    if not isinstance(value, str):
        raise RemoteServiceError(
            f"Malformed {entity} response: field '{field}' missing or not a string."
        )
    return value


def _optional_str(data: Dict[str, Any], field: str) -> Optional[str]:
    value = data.get(field)
    return None if value is None else str(value)


class UploadStatus(Enum):
    """Outcome of an upload workflow."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadCredentials:
    """Temporary S3 credentials and the destination handed out by the API."""
    bucket: str
    key: str
    access_key_id: str
    secret_access_key: str
    session_token: str
    url: str

    @classmethod
    def from_dict(cls, data: Any) -> "UploadCredentials":
        if not isinstance(data, dict):
            raise RemoteServiceError("Malformed credentials response: expected a JSON object.")
        return cls(
            bucket=_require_str(data, "bucket", "credentials"),
            key=_require_str(data, "key", "credentials"),
            access_key_id=_require_str(data, "accessKeyId", "credentials"),
            secret_access_key=_require_str(data, "secretAccessKey", "credentials"),
            session_token=_require_str(data, "sessionToken", "credentials"),
            url=_require_str(data, "url", "credentials"),
        )

    @property
    def object_url(self) -> str:
        return object_url(self.bucket, self.key)


def object_url(bucket: str, key: str) -> str:
    """Public URL the Uploads API reads the staged object from."""
    return OBJECT_URL_TEMPLATE.format(bucket=bucket, key=key)


def tileset_id(username: str, slug: str) -> str:
    return f"{username}.{slug}"


@dataclass(frozen=True)
class UploadRequest:
    """Body of the request that starts tileset processing."""
    url: str
    tileset: str
    name: str

    @classmethod
    def build(cls, username: str, slug: str, name: str, bucket: str, key: str) -> "UploadRequest":
        return cls(url=object_url(bucket, key), tileset=tileset_id(username, slug), name=name)

    def to_dict(self) -> Dict[str, str]:
        return {"url": self.url, "tileset": self.tileset, "name": self.name}


@dataclass(frozen=True)
class ProcessingJob:
    """Server-side state of a processing job, refreshed on each poll."""
    id: str
    tileset: Optional[str] = None
    name: Optional[str] = None
    complete: bool = False
    error: Optional[str] = None
    progress: float = 0.0
    owner: Optional[str] = None
    created: Optional[str] = None
    modified: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, require_progress: bool = False) -> "ProcessingJob":
        """
        Build a job snapshot from an API body.

        Status responses must carry `progress`; without it the job could
        never be seen as finished.
        """
        if not isinstance(data, dict):
            raise RemoteServiceError("Malformed upload response: expected a JSON object.")

        progress = data.get("progress")
        if progress is None and require_progress:
            raise RemoteServiceError("Malformed upload response: field 'progress' missing.")
        if progress is None:
            progress = 0.0
        elif isinstance(progress, bool) or not isinstance(progress, (int, float)):
            raise RemoteServiceError(
                f"Malformed upload response: progress is not a number ({progress!r})."
            )

        return cls(
            id=_require_str(data, "id", "upload"),
            tileset=_optional_str(data, "tileset"),
            name=_optional_str(data, "name"),
            complete=bool(data.get("complete", False)),
            error=_optional_str(data, "error"),
            progress=float(progress),
            owner=_optional_str(data, "owner"),
            created=_optional_str(data, "created"),
            modified=_optional_str(data, "modified"),
        )

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def succeeded(self) -> bool:
        return not self.failed and (self.complete or self.progress >= 1)

    @property
    def terminal(self) -> bool:
        return self.failed or self.succeeded

    @property
    def percent(self) -> int:
        return round(self.progress * 100)


@dataclass(frozen=True)
class UploadResult:
    """Immutable result of an upload workflow."""
    status: UploadStatus
    tileset: Optional[str] = None
    upload_id: Optional[str] = None
    job: Optional[ProcessingJob] = None
    error: Optional[UploaderError] = None

    @property
    def success(self) -> bool:
        return self.status == UploadStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.success else -1

    @classmethod
    def ok(cls, tileset: str, job: ProcessingJob):
        return cls(status=UploadStatus.SUCCESS, tileset=tileset, upload_id=job.id, job=job)

    @classmethod
    def fail(
        cls,
        error: UploaderError,
        tileset: Optional[str] = None,
        job: Optional[ProcessingJob] = None,
    ):
        return cls(
            status=UploadStatus.FAILED,
            tileset=tileset,
            upload_id=job.id if job else None,
            job=job,
            error=error,
        )


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return float(value)


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass(frozen=True)
class UploadConfig:
    """Immutable configuration for the upload workflow."""
    api_url: str = DEFAULT_API_URL
    region: str = DEFAULT_REGION
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_polls: Optional[int] = None  # None polls until the job is terminal
    max_wait: Optional[float] = None  # seconds
    timeout: float = 60.0

    @classmethod
    def from_env(cls) -> "UploadConfig":
        """Build a config from MAPBOX_* environment variables."""
        max_polls = _env_int("MAPBOX_MAX_POLLS")
        poll_interval = _env_float("MAPBOX_POLL_INTERVAL")
        timeout = _env_float("MAPBOX_HTTP_TIMEOUT")
        return cls(
            api_url=os.getenv("MAPBOX_API_URL") or DEFAULT_API_URL,
            region=os.getenv("MAPBOX_UPLOAD_REGION") or DEFAULT_REGION,
            poll_interval=DEFAULT_POLL_INTERVAL if poll_interval is None else poll_interval,
            max_polls=max_polls,
            max_wait=_env_float("MAPBOX_MAX_WAIT"),
            timeout=60.0 if timeout is None else timeout,
        )
