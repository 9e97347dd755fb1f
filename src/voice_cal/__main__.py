"""Entry point for ``python -m voice_cal``.

Provides a console front end for the event assistant.  Uses stdlib
:mod:`argparse` for argument parsing.

Usage:
    voice-cal "lunch with Sam tomorrow at noon"   -- one request, then exit
    voice-cal                                      -- interactive session

Exit codes:
    0 -- Completed (including cancelled or nothing to add).
    1 -- An error occurred (configuration error, backend failure).
    2 -- Argument parsing error (handled by argparse).
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys

from voice_cal import __version__
from voice_cal.backend.transport import BackendTransport
from voice_cal.config import ConfigError, Settings, load_settings, parse_timeout
from voice_cal.console import (
    ConsoleChoicePrompter,
    ConsoleSession,
    ConsoleSpeechOutput,
    ConsoleTimeRangePicker,
    ConsoleTranscriptSource,
)
from voice_cal.log import setup_logging
from voice_cal.resolution import ResolutionController

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="voice-cal",
        description=(
            "Turn a natural-language request into a calendar event, "
            "resolving scheduling conflicts along the way."
        ),
    )
    parser.add_argument(
        "text",
        nargs="?",
        default=None,
        help=(
            "Request to process once (e.g. \"lunch with Sam tomorrow at noon\"). "
            "Omit to start an interactive session."
        ),
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Override the backend URL (defaults to BACKEND_BASE_URL from config).",
    )
    parser.add_argument(
        "--timeout",
        type=str,
        default=None,
        help="Seconds to wait for each backend call; 0 waits forever.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _resolve_settings(args: argparse.Namespace) -> Settings:
    """Load settings and apply command-line overrides.

    ``--base-url`` makes ``BACKEND_BASE_URL`` optional.

    Raises:
        ConfigError: If no backend URL is available or a value is invalid.
    """
    settings = load_settings(base_url=args.base_url)

    overrides: dict[str, object] = {}
    if args.timeout is not None:
        overrides["request_timeout"] = parse_timeout(args.timeout)
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return dataclasses.replace(settings, **overrides)  # type: ignore[arg-type]


async def run_session(settings: Settings, text: str | None) -> int:
    """Wire the console collaborators to a controller and run.

    Args:
        settings: Resolved application settings.
        text: A single request to process, or ``None`` for interactive mode.

    Returns:
        The process exit code.
    """
    async with BackendTransport(
        settings.backend_base_url, timeout=settings.request_timeout
    ) as transport:
        controller = ResolutionController.from_transport(
            transport,
            speech=ConsoleSpeechOutput(),
            picker=ConsoleTimeRangePicker(),
            prompter=ConsoleChoicePrompter(),
        )
        session = ConsoleSession(controller, source=ConsoleTranscriptSource())
        logger.info("Using backend %s", transport.base_url)
        if text is not None:
            return await session.run_once(text)
        return await session.run_interactive()


def main(argv: list[str] | None = None) -> int:
    """Run the voice-cal CLI.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``
            when ``None`` (the normal case).

    Returns:
        Exit code: ``0`` on success, ``1`` on error.
    """
    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    try:
        settings = _resolve_settings(args)
        setup_logging(settings.log_level)
    except (ConfigError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        return asyncio.run(run_session(settings, args.text))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
