from __future__ import annotations

from pathlib import Path
import subprocess
from typing import Any

import pytest

from smoothdown.adapters import process as process_module
from smoothdown.adapters.process import ToolInvocation, ensure_absolute, run_tool
from smoothdown.core.exceptions import (
    RelativePathError,
    ToolCallError,
    ToolExecutionError,
    ToolFailureKind,
    ToolNotFoundError,
    ToolOutputDecodeError,
    ToolTimeoutError,
)


def _invocation(executable: str = "pandoc", **kwargs: Any) -> ToolInvocation:
    return ToolInvocation(
        tool="pandoc",
        executable=executable,
        default_executable="pandoc",
        env_var="PANDOC_CMD",
        args=["/tmp/in.md"],
        input_path=Path("/tmp/in.md"),
        **kwargs,
    )


def _patch_run(monkeypatch: pytest.MonkeyPatch, result: Any) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(argv: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        calls.append({"argv": argv, **kwargs})
        if isinstance(result, BaseException):
            raise result
        return result

    monkeypatch.setattr(process_module.subprocess, "run", fake_run)
    return calls


def test_successful_run_returns_decoded_output(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _patch_run(
        monkeypatch, subprocess.CompletedProcess(["pandoc"], 0, "{}".encode(), b"")
    )

    run = run_tool(_invocation(), timeout=3)

    assert run.stdout == "{}"
    assert run.command == ["pandoc", "/tmp/in.md"]
    assert calls[0]["check"] is False
    assert calls[0]["capture_output"] is True
    assert calls[0]["timeout"] == 3


def test_missing_default_executable_names_the_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_run(monkeypatch, FileNotFoundError("pandoc"))

    with pytest.raises(ToolNotFoundError) as excinfo:
        run_tool(_invocation())

    error = excinfo.value
    assert error.kind is ToolFailureKind.NOT_FOUND
    assert 'couldn\'t find "pandoc" on your system' in str(error)
    assert "PANDOC_CMD" in str(error)
    assert error.input_path == Path("/tmp/in.md")


def test_missing_custom_executable(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_run(monkeypatch, FileNotFoundError("pandoc-3"))

    with pytest.raises(ToolNotFoundError) as excinfo:
        run_tool(_invocation("pandoc-3"))

    assert 'executable name "pandoc-3"' in str(excinfo.value)
    assert excinfo.value.executable == "pandoc-3"


def test_nonzero_exit_carries_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_run(
        monkeypatch,
        subprocess.CompletedProcess(["pandoc"], 64, b"", b"Unknown option --nope"),
    )

    with pytest.raises(ToolExecutionError) as excinfo:
        run_tool(_invocation(output_path=Path("/tmp/out.pdf")))

    error = excinfo.value
    assert error.kind is ToolFailureKind.EXECUTION_FAILED
    assert error.returncode == 64
    assert error.stderr == "Unknown option --nope"
    assert "/tmp/in.md" in str(error) and "/tmp/out.pdf" in str(error)


def test_extraction_failure_has_its_own_message(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_run(monkeypatch, subprocess.CompletedProcess(["pandoc"], 1, b"", b"bad yaml"))

    with pytest.raises(ToolExecutionError) as excinfo:
        run_tool(_invocation(extraction=True))

    assert "metadata header" in str(excinfo.value)
    assert excinfo.value.extraction is True


def test_other_os_errors_are_call_failures(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_run(monkeypatch, PermissionError("denied"))

    with pytest.raises(ToolCallError) as excinfo:
        run_tool(_invocation())

    assert excinfo.value.kind is ToolFailureKind.CALL_FAILED
    assert isinstance(excinfo.value.reason, PermissionError)


def test_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_run(monkeypatch, subprocess.TimeoutExpired(["pandoc"], 2))

    with pytest.raises(ToolTimeoutError) as excinfo:
        run_tool(_invocation(), timeout=2)

    assert excinfo.value.timeout == 2
    assert "2 seconds" in str(excinfo.value)


def test_undecodable_stdout(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_run(monkeypatch, subprocess.CompletedProcess(["pandoc"], 0, b"\xff\xfe\xfa", b""))

    with pytest.raises(ToolOutputDecodeError):
        run_tool(_invocation())


def test_relative_paths_are_rejected() -> None:
    with pytest.raises(RelativePathError) as excinfo:
        ensure_absolute(Path("doc.md"), "input")
    assert "relative input path" in str(excinfo.value)
