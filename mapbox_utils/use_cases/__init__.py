"""Application use cases for the upload workflow."""

from .upload import (
    FetchCredentialsUseCase,
    PollProcessingUseCase,
    ReadSourceFileUseCase,
    StartProcessingUseCase,
    UploadToStorageUseCase,
)

__all__ = [
    "FetchCredentialsUseCase",
    "PollProcessingUseCase",
    "ReadSourceFileUseCase",
    "StartProcessingUseCase",
    "UploadToStorageUseCase",
]
