# tests/test_commands.py

from __future__ import annotations

from pathlib import Path

from cancel_spotter.cli.commands import CommandRegistry, describe_element, registry

from .fakes import FailingLLMClient


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/BEE y", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_help_lists_commands(state) -> None:
    text = registry.handle(state, "/help") or ""
    for name in ("/highlight", "/count", "/list", "/howto"):
        assert name in text


def test_highlight_toggle_and_count(state) -> None:
    state.detector.scan()
    assert registry.handle(state, "/count") == "Cancel buttons: 2"

    assert "OFF" in (registry.handle(state, "/highlight off") or "")
    assert registry.handle(state, "/count") == "Cancel buttons: 0"
    assert "currently OFF" in (registry.handle(state, "/highlight") or "")

    assert registry.handle(state, "/highlight on") == "Highlighting ON. Cancel buttons found: 2."
    assert "Usage" in (registry.handle(state, "/highlight maybe") or "")
    assert state.count_updates == [2, 0, 2]


def test_status_reports_state(state) -> None:
    state.detector.scan()
    text = registry.handle(state, "/status") or ""
    assert "https://www.example.com/account" in text
    assert "Highlighting: ON (idle)" in text
    assert "Cancel buttons: 2" in text
    assert "end membership" in text


def test_list_and_remove(state) -> None:
    assert registry.handle(state, "/list") == "No cancel buttons highlighted."
    state.detector.scan()

    listing = registry.handle(state, "/list") or ""
    assert '1. <a> "Stop" [cancel]' in listing
    assert '2. <button> "Unsubscribe Now"' in listing

    assert "No highlighted element #5" in (registry.handle(state, "/remove 5") or "")
    assert "Usage" in (registry.handle(state, "/remove x") or "")
    assert registry.handle(state, "/remove 1") == 'Removed <a> "Stop" [cancel].'
    assert state.document.select_one("a") is None

    # No runtime attached: the count only changes on the next scan.
    assert state.detector.get_count() == 2
    assert state.detector.scan().count == 1


def test_add_fragment(state) -> None:
    assert registry.handle(state, "/add <button>Delete account</button>") == "Added 1 element(s) to the page."
    assert state.detector.scan().count == 3
    assert "Usage" in (registry.handle(state, "/add") or "")


def test_save_writes_highlighted_page(state, tmp_path: Path) -> None:
    state.detector.scan()
    out = tmp_path / "out" / "page.html"

    assert registry.handle(state, f"/save {out}") == f"Saved page to {out}."
    html = out.read_text(encoding="utf-8")
    assert "outline: 3px solid #EA4335;" in html


def test_howto_uses_page_site_by_default(state, llm) -> None:
    notes: list[str] = []
    text = registry.handle(state, "/howto", emit=notes.append) or ""

    assert text.startswith("1. Open settings.")
    assert notes == ["Asking for cancellation instructions for example.com..."]
    messages, system_prompt = llm.calls[0]
    assert "cancel a subscription for example.com" in messages[0]["content"]
    assert "cancelling subscriptions" in system_prompt


def test_howto_explicit_site_and_errors(state, llm) -> None:
    registry.handle(state, "/howto https://www.netflix.com/account")
    assert "for netflix.com." in llm.calls[0][0][0]["content"]

    state.llm = FailingLLMClient()
    text = registry.handle(state, "/howto hulu.com") or ""
    assert text.startswith("Error: Cancellation instructions are not configured")

    state.page_url = None
    assert "No website known" in (registry.handle(state, "/howto") or "")


def test_describe_element_truncates(make_doc) -> None:
    doc = make_doc(f'<button id="x">{"Cancel " * 20}</button>')
    text = describe_element(doc.select_one("button"), limit=20)
    assert text == '<button> "Cancel Cancel Can..." [x]'


def test_only_network_commands_are_blocking() -> None:
    assert registry.is_blocking("/howto netflix.com")
    assert registry.is_blocking("/HOWTO")
    assert not registry.is_blocking("/count")
    assert not registry.is_blocking("/nope")
    assert not registry.is_blocking("howto")
    assert not registry.is_blocking("/")
