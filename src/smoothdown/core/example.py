"""Bundled example document showing every supported header field."""

from __future__ import annotations

from importlib import resources
import os
from pathlib import Path

from .exceptions import ExampleWriteError
from .paths import normalize_path


__all__ = ["example", "example_text", "save_example"]


def example_text() -> str:
    """Return the example markdown document."""
    return resources.files(__package__).joinpath("example.md").read_text(encoding="utf-8")


def save_example(path: str | os.PathLike[str]) -> Path:
    """Write the example document to ``path`` and return the normalised location."""
    target = normalize_path(path)
    try:
        target.write_text(example_text(), encoding="utf-8")
    except OSError as exc:
        raise ExampleWriteError(target, exc) from exc
    return target


def example(path: str | os.PathLike[str] | None = None) -> str | None:
    """Return the example when ``path`` is ``None``; otherwise save it there."""
    if path is None:
        return example_text()
    save_example(path)
    return None
