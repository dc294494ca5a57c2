from __future__ import annotations

import logging

import pytest

from smoothdown.core.diagnostics import (
    LoggingEmitter,
    NullEmitter,
    ensure_emitter,
    format_event_message,
)
from smoothdown.ui.cli.diagnostics import CliEmitter
from smoothdown.ui.cli.state import set_cli_state


def test_null_emitter_is_noop(caplog: pytest.LogCaptureFixture) -> None:
    emitter = NullEmitter()
    with caplog.at_level(logging.WARNING):
        emitter.warning("nothing to see")
        emitter.error("still quiet")
    assert not caplog.records
    emitter.event("ignored", {"value": 1})


def test_logging_emitter_logs_messages(caplog: pytest.LogCaptureFixture) -> None:
    emitter = LoggingEmitter()
    with caplog.at_level(logging.INFO, logger="smoothdown"):
        emitter.error("boom")
        emitter.event("converted", {"output": "/w/doc.pdf", "format": "pdf"})
    messages = [record.message for record in caplog.records]
    assert "boom" in messages
    assert "Wrote /w/doc.pdf (pdf)" in messages


def test_default_emitter_logs() -> None:
    assert isinstance(ensure_emitter(None), LoggingEmitter)
    quiet = NullEmitter()
    assert ensure_emitter(quiet) is quiet


def test_event_messages() -> None:
    assert (
        format_event_message(
            "metadata_extracted", {"source": "/w/doc.md", "fields": ["engine", "template"]}
        )
        == "Read metadata header of /w/doc.md (engine, template)"
    )
    assert format_event_message("scratch_kept", {"path": "/tmp/x.md"}) == (
        "Kept pandoc input at /tmp/x.md"
    )
    assert format_event_message("unknown", {}) is None


def test_cli_emitter_bridges_state(capsys: pytest.CaptureFixture[str]) -> None:
    state = set_cli_state(verbosity=1, debug=False)
    emitter = CliEmitter(state=state)

    emitter.warning("Heads up", exc=None)
    emitter.error("Boom", exc=None)
    emitter.event("converted", {"output": "/w/doc.pdf", "format": "pdf"})

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "Heads up" in captured.err
    assert "Boom" in captured.err
    assert "Wrote /w/doc.pdf" in captured.err
    assert state.consume_events("converted") == [{"output": "/w/doc.pdf", "format": "pdf"}]


def test_cli_emitter_is_quiet_by_default(capsys: pytest.CaptureFixture[str]) -> None:
    state = set_cli_state(verbosity=0, debug=False)
    CliEmitter(state=state).event("converted", {"output": "/w/doc.pdf"})

    assert capsys.readouterr().err == ""
    assert state.consume_events("converted") == [{"output": "/w/doc.pdf"}]
