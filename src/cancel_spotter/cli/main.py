# src/cancel_spotter/cli/main.py

"""
CLI entrypoint.

Initializes logging, then runs one of:
- scan:    one-shot scan of an HTML page (optionally writes the highlighted page)
- console: interactive console with the detector runtime attached to an event loop
- howto:   step-by-step cancellation instructions for a site
- env:     documented environment variables
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from ..cli.bootstrap import create_initial_state, create_llm_client
from ..cli.commands import describe_element
from ..config import ENV_VARS, get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import InstructionsError
from ..core.instructions import get_cancellation_instructions
from ..llm.client import friendly_llm_error_message
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cancel-spotter",
        description="Find and highlight subscription cancellation buttons on web pages.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_scan = sub.add_parser("scan", help="Scan an HTML page once and report cancel buttons.")
    p_scan.add_argument("page", type=Path, help="HTML file to scan.")
    p_scan.add_argument("--url", default=None, help="URL the page was saved from.")
    p_scan.add_argument("--out", type=Path, default=None, help="Write the highlighted page here.")
    p_scan.add_argument("--json", action="store_true", help="Print the result as JSON.")
    p_scan.add_argument(
        "--disabled",
        action="store_true",
        help="Run with highlighting disabled (reports 0, writes the page unchanged).",
    )

    p_console = sub.add_parser("console", help="Interactive console over a page.")
    p_console.add_argument("page", type=Path, help="HTML file to load.")
    p_console.add_argument("--url", default=None, help="URL the page was saved from.")

    p_howto = sub.add_parser("howto", help="Ask for step-by-step cancellation instructions.")
    p_howto.add_argument("site", help="Site name or URL, e.g. netflix.com.")

    sub.add_parser("env", help="List supported environment variables.")
    return parser


def _load_state(args: argparse.Namespace, settings, **kwargs):
    try:
        return create_initial_state(args.page, url=args.url, settings=settings, **kwargs)
    except OSError as e:
        print(f"Error: cannot read page {args.page}: {e}", file=sys.stderr)
        return None


def _cmd_scan(args: argparse.Namespace, settings) -> int:
    state = _load_state(args, settings, enabled=not args.disabled)
    if state is None:
        return EXIT_USAGE
    result = state.detector.scan()

    if args.json:
        payload = {
            "page": str(args.page),
            "url": args.url,
            "count": result.count,
            "elements": [describe_element(el) for el in result.elements],
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(f"Cancel buttons found: {result.count}")
        for i, el in enumerate(result.elements, start=1):
            print(f"{i}. {describe_element(el)}")

    if args.out is not None:
        try:
            args.out.parent.mkdir(parents=True, exist_ok=True)
            args.out.write_text(state.document.to_html(), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write %s: %s", args.out, e)
            return EXIT_ERROR
        logger.info("Highlighted page written to %s", args.out)
    return EXIT_OK


def _cmd_console(args: argparse.Namespace, settings) -> int:
    state = _load_state(args, settings)
    if state is None:
        return EXIT_USAGE
    try:
        asyncio.run(run_console_loop(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    logger.info("Bye.")
    return EXIT_OK


def _cmd_howto(args: argparse.Namespace, settings) -> int:
    llm = create_llm_client(settings)
    try:
        print(get_cancellation_instructions(llm, args.site))
    except InstructionsError as e:
        print(f"Error: {friendly_llm_error_message(e)}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


def _cmd_env(args: argparse.Namespace, settings) -> int:
    width = max(len(k) for k in ENV_VARS)
    for name, help_text in ENV_VARS.items():
        print(f"{name.ljust(width)}  {help_text}")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    page = getattr(args, "page", None)
    if page is not None and not page.is_file():
        print(f"Error: page not found: {page}", file=sys.stderr)
        return EXIT_USAGE

    handlers = {
        "scan": _cmd_scan,
        "console": _cmd_console,
        "howto": _cmd_howto,
        "env": _cmd_env,
    }
    return handlers[args.command](args, settings)


if __name__ == "__main__":
    sys.exit(main())
