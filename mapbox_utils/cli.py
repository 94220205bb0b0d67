"""Command line interface for mapbox_utils package."""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.logging import RichHandler

from . import __version__
from .cli_progress import StepProgressDisplay, render_configuration_summary
from .models import UploadConfig


FAILURE_EXIT_CODE = -1

logger = logging.getLogger(__name__)


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug, --log-level or LOG_LEVEL
    is provided. Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    env_level = os.getenv("LOG_LEVEL")
    if silent or (not debug and not log_level and not env_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, (log_level or env_level or "INFO").upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # request URLs carry the access_token query parameter
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _build_config(args: argparse.Namespace) -> UploadConfig:
    try:
        config = UploadConfig.from_env()
    except ValueError as exc:
        raise CLIError(f"invalid MAPBOX_* environment value: {exc}") from exc

    overrides = {}
    if args.api_url:
        overrides["api_url"] = args.api_url
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval
    if args.max_polls is not None:
        overrides["max_polls"] = args.max_polls
    if args.max_wait is not None:
        overrides["max_wait"] = args.max_wait

    config = dataclasses.replace(config, **overrides)
    if config.poll_interval < 0:
        raise CLIError("--poll-interval must not be negative")
    if config.max_polls is not None and config.max_polls < 1:
        raise CLIError("--max-polls must be at least 1")
    return config


async def _run_upload(args: argparse.Namespace, config: UploadConfig) -> int:
    from .orchestrator import UploadOrchestrator

    display = StepProgressDisplay()
    try:
        async with UploadOrchestrator(config) as orchestrator:
            display.attach(orchestrator)
            result = await orchestrator.upload(
                args.source,
                args.name,
                args.slug,
                args.username,
                args.token,
                wait=args.wait,
            )
    finally:
        display.close()
    return result.exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapbox-utils",
        description="Utilities for working with the Mapbox Uploads API.",
    )
    parser.add_argument("--env-file", type=Path, default=None, help="Load environment variables from this .env file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Disable logs")
    parser.add_argument("--log-level", default=None, help="Explicit log level (DEBUG/INFO/WARNING/ERROR)")
    parser.add_argument("--version", action="version", version=f"mapbox-utils {__version__}")

    subparsers = parser.add_subparsers(dest="command")
    upload = subparsers.add_parser(
        "upload",
        help="Upload a file to MapBox through staging on S3.",
        description="Upload a file to MapBox through staging on S3.",
    )
    upload.add_argument("source", type=Path, help="File to upload (path).")
    upload.add_argument("name", help="Name of the file in MapBox.")
    upload.add_argument("slug", help="Slug name of the file in MapBox, overwrites if already present.")
    upload.add_argument("username", help="Your MapBox username.")
    upload.add_argument("token", help="Your MapBox token used for uploading.")
    upload.add_argument("-w", "--wait", action="store_true", default=False, help="await process to finish")
    upload.add_argument(
        "--api-url",
        default=None,
        help="Uploads API base URL (default from MAPBOX_API_URL or https://api.mapbox.com)",
    )
    upload.add_argument("--poll-interval", type=float, default=None, help="Seconds between status checks (default: 1)")
    upload.add_argument("--max-polls", type=int, default=None, help="Give up after this many status checks")
    upload.add_argument("--max-wait", type=float, default=None, help="Give up after waiting this many seconds")
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return FAILURE_EXIT_CODE

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = _build_config(args)
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return FAILURE_EXIT_CODE

    if args.debug:
        render_configuration_summary(
            {
                "Source": str(args.source),
                "Tileset": f"{args.username}.{args.slug}",
                "Name": args.name,
                "API": config.api_url,
                "Region": config.region,
                "Wait": "yes" if args.wait else "no",
                "Max Polls": config.max_polls or "unbounded",
                "Max Wait": f"{config.max_wait}s" if config.max_wait else "unbounded",
                "Env File": str(used_env_file) if used_env_file else "-",
                "Logging": effective_log_mode,
            }
        )

    try:
        return asyncio.run(_run_upload(args, config))
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130
    except Exception as exc:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"ERROR: {exc}", file=sys.stderr)
        return FAILURE_EXIT_CODE


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
