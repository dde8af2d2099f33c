# tests/test_cli.py

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path

import pytest

from cancel_spotter.cli import main as cli_main
from cancel_spotter.connectors import console_connector

from .fakes import FakeLLMClient


@pytest.fixture()
def cli(monkeypatch: pytest.MonkeyPatch, settings):
    """main() wired to test settings, no log files, deterministic LLM."""
    llm = FakeLLMClient("1. Open Account.\n2. Cancel membership.")
    monkeypatch.setattr(cli_main, "get_settings", lambda: settings)
    monkeypatch.setattr(cli_main, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(cli_main, "create_llm_client", lambda s: llm)
    return llm


def test_scan_prints_count_and_elements(cli, page_file: Path, capsys) -> None:
    assert cli_main.main(["scan", str(page_file)]) == 0

    out = capsys.readouterr().out
    assert "Cancel buttons found: 2" in out
    assert '1. <a> "Stop" [cancel]' in out
    assert '2. <button> "Unsubscribe Now"' in out


def test_scan_json_and_out_file(cli, page_file: Path, tmp_path: Path, capsys) -> None:
    out_file = tmp_path / "highlighted.html"

    assert cli_main.main(["scan", str(page_file), "--json", "--out", str(out_file), "--url", "https://x.com"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["count"] == 2
    assert payload["url"] == "https://x.com"
    html = out_file.read_text(encoding="utf-8")
    assert html.count("outline: 3px solid #EA4335;") == 2
    assert "position: relative;" in html


def test_scan_disabled_reports_zero_and_leaves_page_alone(cli, page_file: Path, tmp_path: Path, capsys) -> None:
    out_file = tmp_path / "same.html"

    assert cli_main.main(["scan", str(page_file), "--disabled", "--out", str(out_file)]) == 0

    assert "Cancel buttons found: 0" in capsys.readouterr().out
    assert "outline" not in out_file.read_text(encoding="utf-8")


def test_missing_page_is_usage_error(cli, tmp_path: Path, capsys) -> None:
    assert cli_main.main(["scan", str(tmp_path / "nope.html")]) == 2
    assert "page not found" in capsys.readouterr().err


def test_howto_prints_instructions(cli, capsys) -> None:
    assert cli_main.main(["howto", "https://www.netflix.com/"]) == 0

    assert "2. Cancel membership." in capsys.readouterr().out
    assert "for netflix.com." in cli.calls[0][0][0]["content"]


def test_howto_empty_answer_is_error(cli, capsys) -> None:
    cli.next_text = ""
    assert cli_main.main(["howto", "netflix.com"]) == 1
    assert "empty answer" in capsys.readouterr().err


def test_env_lists_variables(cli, capsys) -> None:
    assert cli_main.main(["env"]) == 0
    out = capsys.readouterr().out
    assert "CANCEL_SPOTTER_KEYWORDS" in out
    assert "CANCEL_SPOTTER_OPENAI_API_KEY" in out


def test_console_loop_runs_commands_and_rescans(state, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    lines = iter(["/add <button>Delete account</button>", "hello", "", "/count", "/exit"])

    async def fake_read_line(prompt: str) -> str | None:
        # Give the settle timer and mutation rescans a chance to run.
        await asyncio.sleep(0.03)
        return next(lines, None)

    monkeypatch.setattr(console_connector, "_read_line", fake_read_line)

    asyncio.run(console_connector.run_console_loop(state))

    out = capsys.readouterr().out
    assert "Added 1 element(s) to the page." in out
    assert "Commands start with '/'" in out
    assert "Cancel buttons: 3" in out
    assert state.runtime is not None
    assert not state.runtime.running
    assert state.count_updates[-1] == 3


def test_console_howto_does_not_stall_the_runtime(state, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    seen: list[list[int]] = []

    class SlowLLM:
        def stream_chat(self, messages, system_prompt):
            time.sleep(0.1)
            seen.append(list(state.count_updates))
            yield "1. Cancel."

    state.llm = SlowLLM()
    lines = iter(["/howto", "/exit"])

    async def fake_read_line(prompt: str) -> str | None:
        return next(lines, None)

    monkeypatch.setattr(console_connector, "_read_line", fake_read_line)

    asyncio.run(console_connector.run_console_loop(state))

    # The settle-delay scan ran on the loop while the LLM call was in flight.
    assert seen == [[2]]
    assert "1. Cancel." in capsys.readouterr().out
