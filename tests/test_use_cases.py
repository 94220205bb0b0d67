"""Tests for upload workflow use cases."""
from unittest.mock import AsyncMock

import pytest

from mapbox_utils.errors import LocalIOError, PollTimeoutError
from mapbox_utils.models import ProcessingJob, UploadConfig
from mapbox_utils.use_cases import PollProcessingUseCase, ReadSourceFileUseCase


def _jobs(*snapshots):
    return [ProcessingJob(id="job-1", **snapshot) for snapshot in snapshots]


class TestReadSourceFile:
    @pytest.mark.asyncio
    async def test_reads_bytes(self, tmp_path):
        source = tmp_path / "roads.geojson"
        source.write_bytes(b'{"type": "FeatureCollection"}')

        data = await ReadSourceFileUseCase().execute(source)

        assert data == b'{"type": "FeatureCollection"}'

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(LocalIOError, match="missing.geojson"):
            await ReadSourceFileUseCase().execute(tmp_path / "missing.geojson")

    @pytest.mark.asyncio
    async def test_directory_is_not_readable(self, tmp_path):
        with pytest.raises(LocalIOError):
            await ReadSourceFileUseCase().execute(tmp_path)


class TestPollProcessing:
    @pytest.mark.asyncio
    async def test_polls_until_complete(self):
        api = AsyncMock()
        api.get_status.side_effect = _jobs({"progress": 0.2}, {"progress": 0.6}, {"progress": 1.0})
        sleep = AsyncMock()
        on_progress = AsyncMock()

        job = await PollProcessingUseCase(sleep=sleep).execute(
            api, "me", "job-1", "tok", UploadConfig(), on_progress=on_progress
        )

        assert job.succeeded is True
        assert api.get_status.await_count == 3
        api.get_status.assert_awaited_with("me", "job-1", "tok")
        assert sleep.await_count == 2
        sleep.assert_awaited_with(1.0)
        assert [call.args[0].progress for call in on_progress.await_args_list] == [0.2, 0.6, 1.0]

    @pytest.mark.asyncio
    async def test_error_stops_immediately(self):
        api = AsyncMock()
        api.get_status.side_effect = _jobs({"progress": 0.3}, {"error": "bad file"}, {"progress": 1.0})
        sleep = AsyncMock()

        job = await PollProcessingUseCase(sleep=sleep).execute(api, "me", "job-1", "tok", UploadConfig())

        assert job.failed is True
        assert job.error == "bad file"
        assert api.get_status.await_count == 2
        assert sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_complete_flag_ends_polling(self):
        api = AsyncMock()
        api.get_status.side_effect = _jobs({"progress": 0.999, "complete": True})
        sleep = AsyncMock()

        job = await PollProcessingUseCase(sleep=sleep).execute(api, "me", "job-1", "tok", UploadConfig())

        assert job.succeeded is True
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_configured_interval(self):
        api = AsyncMock()
        api.get_status.side_effect = _jobs({"progress": 0.5}, {"progress": 1.0})
        sleep = AsyncMock()

        await PollProcessingUseCase(sleep=sleep).execute(
            api, "me", "job-1", "tok", UploadConfig(poll_interval=0.25)
        )

        sleep.assert_awaited_once_with(0.25)

    @pytest.mark.asyncio
    async def test_max_polls_cap(self):
        api = AsyncMock()
        api.get_status.return_value = ProcessingJob(id="job-1", progress=0.5)
        sleep = AsyncMock()

        with pytest.raises(PollTimeoutError, match="3 status checks"):
            await PollProcessingUseCase(sleep=sleep).execute(
                api, "me", "job-1", "tok", UploadConfig(max_polls=3)
            )

        assert api.get_status.await_count == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_max_wait_cap(self):
        api = AsyncMock()
        api.get_status.return_value = ProcessingJob(id="job-1", progress=0.5)
        ticks = iter([0.0, 1.0, 2.0, 3.0])

        with pytest.raises(PollTimeoutError):
            await PollProcessingUseCase(sleep=AsyncMock(), clock=lambda: next(ticks)).execute(
                api, "me", "job-1", "tok", UploadConfig(max_wait=2.0)
            )

        assert api.get_status.await_count == 2


@pytest.mark.asyncio
async def test_sleep_never_overruns_max_wait():
    api = AsyncMock()
    api.get_status.return_value = ProcessingJob(id="job-1", progress=0.5)
    sleep = AsyncMock()
    ticks = iter([0.0, 2.0, 3.0])

    with pytest.raises(PollTimeoutError):
        await PollProcessingUseCase(sleep=sleep, clock=lambda: next(ticks)).execute(
            api, "me", "job-1", "tok", UploadConfig(max_wait=2.5)
        )

    sleep.assert_awaited_once_with(0.5)
    assert api.get_status.await_count == 2
