"""Execution of external tools and classification of their failures."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
from pathlib import Path
import subprocess

from smoothdown.core.exceptions import (
    RelativePathError,
    ToolCallError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolOutputDecodeError,
    ToolTimeoutError,
)


logger = logging.getLogger(__name__)

__all__ = ["ToolInvocation", "ToolRun", "ensure_absolute", "run_tool"]


@dataclass(slots=True)
class ToolInvocation:
    """Executable command plus the context used to report failures."""

    tool: str
    executable: str
    default_executable: str
    env_var: str
    args: list[str] = field(default_factory=list)
    input_path: Path | None = None
    output_path: Path | None = None
    template_path: Path | None = None
    extraction: bool = False

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def report(self) -> dict[str, object]:
        return {
            "tool": self.tool,
            "executable": self.executable,
            "command": self.argv,
            "input_path": self.input_path,
            "output_path": self.output_path,
            "template_path": self.template_path,
        }


@dataclass(slots=True)
class ToolRun:
    """Outcome of a successful tool invocation."""

    command: list[str]
    stdout: str
    stderr: str


def ensure_absolute(path: Path, purpose: str) -> Path:
    """Reject relative paths before they reach an external process."""
    if not path.is_absolute():
        raise RelativePathError(path, purpose)
    return path


def _decode(data: bytes | None) -> str | None:
    if not data:
        return ""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return None


def run_tool(
    invocation: ToolInvocation,
    *,
    cwd: Path | None = None,
    timeout: float | None = None,
) -> ToolRun:
    """Run ``invocation`` to completion and raise a typed error on failure."""
    argv = invocation.argv
    context = invocation.report()
    del context["tool"], context["executable"]
    logger.debug("running %s: %s", invocation.tool, " ".join(argv))
    try:
        process = subprocess.run(
            argv,
            check=False,
            capture_output=True,
            cwd=cwd,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(
            tool=invocation.tool,
            executable=invocation.executable,
            default=invocation.default_executable,
            env_var=invocation.env_var,
            **context,
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolTimeoutError(
            tool=invocation.tool,
            executable=invocation.executable,
            timeout=float(timeout or 0),
            **context,
        ) from exc
    except OSError as exc:
        raise ToolCallError(
            tool=invocation.tool,
            executable=invocation.executable,
            reason=exc,
            **context,
        ) from exc

    stderr = _decode(process.stderr)
    if stderr is None:
        stderr = process.stderr.decode("utf-8", errors="replace")

    if process.returncode != 0:
        raise ToolExecutionError(
            tool=invocation.tool,
            executable=invocation.executable,
            returncode=process.returncode,
            stderr=stderr,
            extraction=invocation.extraction,
            **context,
        )

    stdout = _decode(process.stdout)
    if stdout is None:
        raise ToolOutputDecodeError(
            tool=invocation.tool,
            executable=invocation.executable,
            **context,
        )
    if stderr.strip():
        logger.debug("%s reported: %s", invocation.tool, stderr.strip())
    return ToolRun(command=argv, stdout=stdout, stderr=stderr)
