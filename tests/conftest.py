from __future__ import annotations

from collections.abc import Iterator
import json
import logging
from pathlib import Path
import subprocess
from typing import Any

import pytest

from smoothdown.adapters import process as process_module
from smoothdown.ui.cli import state as cli_state_module


class FakeTools:
    """Stand-in for ``subprocess.run`` emulating pandoc and LibreOffice."""

    def __init__(self) -> None:
        self.header: dict[str, Any] | str = {}
        self.calls: list[list[str]] = []
        self.templates: list[str] = []
        self.inputs: list[str] = []
        self.returncode = 0
        self.stderr = b""
        self.raise_exc: BaseException | None = None
        self.fail_conversions = False

    @property
    def conversions(self) -> list[list[str]]:
        return [call for call in self.calls if "-o" in call]

    @property
    def office_calls(self) -> list[list[str]]:
        return [call for call in self.calls if "--headless" in call]

    def __call__(self, argv: list[str], **kwargs: Any) -> subprocess.CompletedProcess[bytes]:
        self.calls.append(list(argv))
        if self.raise_exc is not None:
            raise self.raise_exc
        if self.returncode != 0:
            return subprocess.CompletedProcess(argv, self.returncode, b"", self.stderr)

        if "--headless" in argv:
            outdir = Path(argv[argv.index("--outdir") + 1])
            source = Path(argv[-1])
            (outdir / f"{source.stem}.pdf").write_bytes(b"%PDF-1.7")
            return subprocess.CompletedProcess(argv, 0, b"", b"")

        if "-o" in argv:
            source = Path(argv[1])
            self.inputs.append(source.read_text(encoding="utf-8"))
            if self.fail_conversions:
                return subprocess.CompletedProcess(argv, 43, b"", self.stderr)
            Path(argv[argv.index("-o") + 1]).write_bytes(b"converted")
            return subprocess.CompletedProcess(argv, 0, b"", b"")

        template = Path(argv[argv.index("--template") + 1])
        self.templates.append(template.read_text(encoding="utf-8"))
        header = self.header if isinstance(self.header, str) else json.dumps(self.header)
        return subprocess.CompletedProcess(argv, 0, header.encode("utf-8"), b"")


@pytest.fixture
def fake_tools(monkeypatch: pytest.MonkeyPatch) -> FakeTools:
    tools = FakeTools()
    monkeypatch.setattr(process_module.subprocess, "run", tools)
    return tools


@pytest.fixture
def document(tmp_path: Path) -> Path:
    path = tmp_path / "doc.md"
    path.write_text("---\ntitle: Test\n---\n\n# Hello\n\n![figure](img/a.png)\n", encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Iterator[None]:
    package_logger = logging.getLogger("smoothdown")
    handlers = list(package_logger.handlers)
    level = package_logger.level
    yield
    package_logger.handlers[:] = handlers
    package_logger.setLevel(level)


@pytest.fixture(autouse=True)
def _reset_cli_state() -> Iterator[None]:
    token = cli_state_module._STATE_VAR.set(None)
    yield
    cli_state_module._STATE_VAR.reset(token)


@pytest.fixture(autouse=True)
def _plain_console(monkeypatch: pytest.MonkeyPatch) -> None:
    for variable in ("FORCE_COLOR", "TTY_COMPATIBLE", "TTY_INTERACTIVE"):
        monkeypatch.delenv(variable, raising=False)
    monkeypatch.setenv("COLUMNS", "200")
