"""The markdown document being converted."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import os
from pathlib import Path

from .exceptions import InputFileNotFoundError, SourceReadError
from .formats import OutputFormat
from .paths import normalize_path


__all__ = ["Document", "default_output_path"]


def default_output_path(source: Path, output_format: OutputFormat) -> Path:
    """Return ``source`` with its suffix replaced by the format extension."""
    return source.with_suffix(output_format.extension)


@dataclass(frozen=True, slots=True)
class Document:
    """Absolute source and output locations for one conversion."""

    source: Path
    output: Path
    output_format: OutputFormat = OutputFormat.PDF

    @classmethod
    def locate(
        cls,
        path: str | os.PathLike[str],
        output: str | os.PathLike[str] | None = None,
        output_format: OutputFormat = OutputFormat.PDF,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> Document:
        """Normalise user-supplied paths and check that the source exists."""
        given = os.fspath(path)
        source = normalize_path(given, environ=environ)
        if not source.exists():
            raise InputFileNotFoundError(given, source)
        if output is None:
            target = default_output_path(source, output_format)
        else:
            target = normalize_path(output, environ=environ)
        return cls(source=source, output=target, output_format=output_format)

    @property
    def parent(self) -> Path:
        return self.source.parent

    def read(self) -> str:
        try:
            return self.source.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceReadError(self.source, exc) from exc
