"""Tests for mapbox-utils CLI helpers."""
import logging
import os
from unittest.mock import AsyncMock

import httpx
import pytest

from mapbox_utils import cli
from mapbox_utils.cli import (
    CLIError,
    _build_config,
    _build_parser,
    _load_env_file,
    _setup_logging,
    run_cli,
)
from mapbox_utils.cli_progress import StepProgressDisplay
from mapbox_utils.models import ProcessingJob, UploadResult
from mapbox_utils.errors import StorageError
from mapbox_utils.services.api_client import HTTPAPIClient
from mapbox_utils.services.uploads_api import UploadsAPI
from mapbox_utils.utils.events import StepEvent


UPLOAD_ARGS = ["upload", "roads.geojson", "Roads", "roads", "me", "tok"]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "MAPBOX_API_URL",
        "MAPBOX_UPLOAD_REGION",
        "MAPBOX_POLL_INTERVAL",
        "MAPBOX_MAX_POLLS",
        "MAPBOX_MAX_WAIT",
        "MAPBOX_HTTP_TIMEOUT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
    logging.disable(logging.NOTSET)


def test_parser_upload_arguments():
    args = _build_parser().parse_args(UPLOAD_ARGS + ["--wait"])
    assert args.command == "upload"
    assert str(args.source) == "roads.geojson"
    assert args.name == "Roads"
    assert args.slug == "roads"
    assert args.username == "me"
    assert args.token == "tok"
    assert args.wait is True


def test_parser_wait_defaults_to_false():
    args = _build_parser().parse_args(UPLOAD_ARGS)
    assert args.wait is False


def test_build_config_overrides_env(monkeypatch):
    monkeypatch.setenv("MAPBOX_API_URL", "http://from-env")
    monkeypatch.setenv("MAPBOX_MAX_POLLS", "5")
    args = _build_parser().parse_args(UPLOAD_ARGS + ["--poll-interval", "2", "--max-wait", "30"])

    config = _build_config(args)

    assert config.api_url == "http://from-env"
    assert config.max_polls == 5
    assert config.poll_interval == 2.0
    assert config.max_wait == 30.0


def test_build_config_rejects_zero_max_polls():
    args = _build_parser().parse_args(UPLOAD_ARGS + ["--max-polls", "0"])
    with pytest.raises(CLIError):
        _build_config(args)


def test_load_env_file(tmp_path, monkeypatch):
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "# staging",
                "MAPBOX_API_URL=http://localhost:3312",
                "MAPBOX_UPLOAD_REGION='us-east-1'",
                "export MAPBOX_MAX_WAIT=600",
            ]
        ),
        encoding="utf-8",
    )

    _load_env_file(env_path)

    assert os.environ["MAPBOX_API_URL"] == "http://localhost:3312"
    assert os.environ["MAPBOX_UPLOAD_REGION"] == "us-east-1"
    assert os.environ["MAPBOX_MAX_WAIT"] == "600"


def test_load_env_file_keeps_existing(tmp_path, monkeypatch):
    monkeypatch.setenv("MAPBOX_API_URL", "http://already-set")
    env_path = tmp_path / ".env"
    env_path.write_text("MAPBOX_API_URL=http://from-file\n", encoding="utf-8")

    _load_env_file(env_path)

    assert os.environ["MAPBOX_API_URL"] == "http://already-set"


def test_load_env_file_missing(tmp_path):
    with pytest.raises(CLIError, match="not found"):
        _load_env_file(tmp_path / "nope.env")


def test_setup_logging_defaults_to_silent():
    mode = _setup_logging(debug=False, silent=False, log_level=None)
    assert mode == "silent"


def test_setup_logging_debug_mode():
    mode = _setup_logging(debug=True, silent=False, log_level=None)
    assert mode == "DEBUG"
    assert logging.getLogger().isEnabledFor(logging.DEBUG) is True


def test_run_cli_without_command_prints_help(capsys, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    assert run_cli([]) == 0
    assert "usage: mapbox-utils" in capsys.readouterr().out


def test_run_cli_returns_workflow_exit_code(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    run_upload = AsyncMock(return_value=-1)
    monkeypatch.setattr(cli, "_run_upload", run_upload)

    assert run_cli(UPLOAD_ARGS + ["-w"]) == -1
    args, config = run_upload.await_args.args
    assert args.wait is True
    assert config.poll_interval == 1.0


def test_run_cli_unexpected_error_is_failure(monkeypatch, tmp_path, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "_run_upload", AsyncMock(side_effect=ValueError("boom")))

    assert run_cli(UPLOAD_ARGS) == -1
    assert "boom" in capsys.readouterr().err


def test_result_exit_codes():
    assert UploadResult.ok("me.roads", ProcessingJob(id="job-1")).exit_code == 0
    assert UploadResult.fail(StorageError("denied")).exit_code == -1


def test_step_display_records_finished_lines():
    display = StepProgressDisplay()
    display.on_step_start(StepEvent("read", "Reading file into memory..."))
    display.on_step_complete(StepEvent("read", "Read file."))
    display.on_step_start(StepEvent("storage", "Uploading file to S3."))
    display.on_step_fail(StepEvent("storage", "Access Denied"))
    display.close()

    assert display.lines == ["✔ Read file.", "✖ Access Denied"]


def test_build_config_rejects_fractional_max_polls_env(monkeypatch):
    monkeypatch.setenv("MAPBOX_MAX_POLLS", "2.5")
    args = _build_parser().parse_args(UPLOAD_ARGS)
    with pytest.raises(CLIError):
        _build_config(args)


@pytest.mark.asyncio
async def test_info_logging_does_not_print_access_token(capfd):
    _setup_logging(debug=False, silent=False, log_level="INFO")
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"id": "job-1", "progress": 0.5, "error": None})
    )

    async with HTTPAPIClient("https://api.example.com", transport=transport) as client:
        await UploadsAPI(client).get_status("me", "job-1", "sk.SECRET")

    captured = capfd.readouterr()
    assert "sk.SECRET" not in captured.out + captured.err
    assert logging.getLogger("httpx").getEffectiveLevel() == logging.WARNING
