# src/cancel_spotter/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.bootstrap import attach_runtime
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

PROMPT = ">>> "


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


async def _read_line(prompt: str) -> str | None:
    # input() blocks, so it runs in a worker thread; the loop keeps serving timers/rescans.
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


async def run_console_loop(state: AppState) -> None:
    """
    Interactive console over one page.

    The detector runtime is attached to this loop: the first scan fires after the settle delay,
    and page mutations made by commands (/add, /remove) trigger rescans.
    """
    runtime = attach_runtime(state)
    logger.info("Console connector started (page=%s).", state.page_url or "local file")
    _print_ts("[CONSOLE] Page loaded. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations (e.g. LLM calls)
        _print_ts(text)

    try:
        while True:
            try:
                line = await _read_line(PROMPT)
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                break

            if line is None:
                logger.info("Console EOF received, exiting.")
                break

            user_input = line.strip()
            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            try:
                if command_registry.is_blocking(user_input):
                    # LLM calls take seconds; page commands stay on the loop thread with the runtime.
                    response = await asyncio.to_thread(command_registry.handle, state, user_input, emit)
                else:
                    response = command_registry.handle(state, user_input, emit=emit)
            except Exception:
                logger.exception("Command handler crashed.")
                response = "Internal error while handling a command."

            if response is None:
                response = "Commands start with '/'. Use /help to list available commands."

            _print_ts(response)

            # Let mutation-triggered rescans run before the next prompt.
            await asyncio.sleep(0)
    finally:
        runtime.stop()
        logger.info("Console connector finished.")
