# src/cancel_spotter/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from pathlib import Path
from typing import cast

from ..core.errors import InstructionsError
from ..core.instructions import get_cancellation_instructions
from ..core.ports import Element
from ..core.sites import site_from_url
from ..core.state import AppState
from ..detector.matching import label_text
from ..llm.client import friendly_llm_error_message

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /highlight, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}
        self._blocking: set[CommandHandler] = set()

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
        *,
        blocking: bool = False,
    ) -> None:
        """blocking=True marks handlers that wait on the network and must not run on the event loop."""
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler
        if blocking:
            self._blocking.add(handler)

    def is_blocking(self, line: str) -> bool:
        if not line.startswith("/"):
            return False
        parts = line[1:].split()
        if not parts:
            return False
        handler = self._handlers.get(parts[0].lower())
        return handler is not None and handler in self._blocking

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def describe_element(element: Element, limit: int = 60) -> str:
    """One-line summary: <tag> "visible text" [label attributes]."""
    try:
        tag = element.tag_name
        text = " ".join(element.text_content().split())
        label = " ".join(label_text(element).split())
    except Exception:
        return "<unavailable element>"

    if len(text) > limit:
        text = text[: limit - 3] + "..."
    out = f"<{tag}>"
    if text:
        out += f' "{text}"'
    if label:
        out += f" [{label}]"
    return out


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    det = state.detector
    runtime = state.runtime
    keywords = ", ".join(det.keywords)
    debounce = getattr(runtime, "debounce_seconds", 0.0) if runtime is not None else 0.0
    return (
        "Status:\n"
        f"  Page: {state.page_url or '(local file)'}\n"
        f"  Highlighting: {'ON' if det.enabled else 'OFF'} ({det.state.value})\n"
        f"  Cancel buttons: {det.get_count()}\n"
        f"  Debounce: {'off' if not debounce else f'{debounce:.2f}s'}\n"
        f"  Keywords: {keywords}"
    )


def cmd_highlight(state: AppState, args: list[str]) -> str:
    """
    /highlight        -> show status
    /highlight on     -> enable and rescan
    /highlight off    -> remove highlights
    """
    det = state.detector
    if not args:
        return f"Highlighting is currently {'ON' if det.enabled else 'OFF'}. Use /highlight on or /highlight off."

    arg = args[0].lower()

    if arg in ("on", "1", "true", "yes"):
        count = det.set_enabled(True)
        return f"Highlighting ON. Cancel buttons found: {count}."

    if arg in ("off", "0", "false", "no"):
        det.set_enabled(False)
        return "Highlighting OFF. All highlights removed."

    return "Usage: /highlight on or /highlight off."


def cmd_count(state: AppState, args: list[str]) -> str:
    return f"Cancel buttons: {state.detector.get_count()}"


def cmd_list(state: AppState, args: list[str]) -> str:
    elements = state.detector.highlighted
    if not elements:
        return "No cancel buttons highlighted."
    lines = [f"Highlighted cancel buttons ({len(elements)}):"]
    for i, el in enumerate(elements, start=1):
        lines.append(f"{i}. {describe_element(el)}")
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add <html> -> append an HTML fragment to <body> (a page mutation)."""
    if not args:
        return "Usage: /add <html fragment>"
    html = " ".join(args)
    added = state.document.append_html(html)
    return f"Added {len(added)} element(s) to the page."


def cmd_remove(state: AppState, args: list[str]) -> str:
    """/remove N -> remove the N-th highlighted element from the page (see /list)."""
    elements = state.detector.highlighted
    if not args:
        return "Usage: /remove N (see /list)"
    try:
        idx = int(args[0])
    except ValueError:
        return "Usage: /remove N (see /list)"
    if idx < 1 or idx > len(elements):
        return f"No highlighted element #{idx}."

    target = elements[idx - 1]
    summary = describe_element(target)
    state.document.remove(target)  # type: ignore[arg-type]
    return f"Removed {summary}."


def cmd_save(state: AppState, args: list[str]) -> str:
    """/save <path> -> write the page (with current highlights) as HTML."""
    if not args:
        return "Usage: /save <path>"
    path = Path(" ".join(args)).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(state.document.to_html(), encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to save page to %s: %s", path, e)
        return f"Could not save page: {e}"
    return f"Saved page to {path}."


def cmd_howto(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/howto [site] -> step-by-step cancellation instructions (defaults to the page's site)."""
    target = " ".join(args).strip() or (state.page_url or "")
    if not target:
        return "No website known for this page. Use /howto <site>."

    if emit:
        with contextlib.suppress(Exception):
            emit(f"Asking for cancellation instructions for {site_from_url(target)}...")

    try:
        return get_cancellation_instructions(state.llm, target)
    except InstructionsError as e:
        logger.debug("Instructions failed", exc_info=True)
        return f"Error: {friendly_llm_error_message(e)}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show page, highlighting state, count and keywords.")
registry.register("highlight", cmd_highlight, help_text="Toggle highlighting: /highlight on | /highlight off.")
registry.register("count", cmd_count, help_text="Show how many cancel buttons are highlighted.")
registry.register("list", cmd_list, help_text="List highlighted cancel buttons.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Append an HTML fragment to the page: /add <html>.")
registry.register("remove", cmd_remove, help_text="Remove a highlighted element from the page: /remove N.")
registry.register("save", cmd_save, help_text="Save the highlighted page: /save <path>.")
registry.register("howto", cmd_howto, help_text="Cancellation instructions: /howto [site].", blocking=True)
