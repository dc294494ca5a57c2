"""Pandoc invocation helpers.

Every public method only accepts absolute paths so that the working directory
of the calling process can never change what pandoc reads or writes.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from smoothdown.core.config import (
    DEFAULT_CITEPROC_FILTER,
    DEFAULT_PANDOC_CMD,
    PANDOC_ENV,
    Settings,
)
from smoothdown.core.formats import FormatStrategy

from .process import ToolInvocation, ToolRun, ensure_absolute, run_tool


if TYPE_CHECKING:
    from smoothdown.core.metadata import Metadata


__all__ = ["Pandoc", "build_conversion_args"]


def build_conversion_args(
    input_path: Path,
    metadata: Metadata,
    output_path: Path,
    strategy: FormatStrategy,
    *,
    resource_path: Path | None = None,
    citeproc_filter: str | None = None,
) -> list[str]:
    """Return the pandoc argument vector for a conversion (without the executable)."""
    args = [str(ensure_absolute(input_path, "input"))]
    if strategy.uses_pdf_engine:
        args.extend(["--pdf-engine", metadata.engine])
    args.append("--wrap=preserve")
    if metadata.template is not None:
        args.extend(["--template", str(ensure_absolute(metadata.template, "template"))])
    if strategy.uses_reference_doc and metadata.reference is not None:
        args.extend(["--reference-doc", str(ensure_absolute(metadata.reference, "reference"))])
    args.extend(metadata.converter_options)
    if metadata.bibliography is not None:
        if citeproc_filter:
            args.extend(["--filter", citeproc_filter])
        else:
            args.append("--citeproc")
        args.extend(
            ["--bibliography", str(ensure_absolute(metadata.bibliography, "bibliography"))]
        )
    if metadata.citation_style is not None:
        args.extend(["--csl", str(ensure_absolute(metadata.citation_style, "citation style"))])
    if resource_path is not None:
        args.extend(["--resource-path", str(ensure_absolute(resource_path, "resource"))])
    args.extend(["-o", str(ensure_absolute(output_path, "output"))])
    return args


@dataclass(slots=True)
class Pandoc:
    """Wrapper around the pandoc executable configured for this process."""

    executable: str = DEFAULT_PANDOC_CMD
    citeproc_filter: str | None = DEFAULT_CITEPROC_FILTER
    timeout: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> Pandoc:
        return cls(
            executable=settings.pandoc,
            citeproc_filter=settings.citeproc_filter,
            timeout=settings.timeout,
        )

    def _invocation(self, args: list[str], **context: object) -> ToolInvocation:
        return ToolInvocation(
            tool="pandoc",
            executable=self.executable,
            default_executable=DEFAULT_PANDOC_CMD,
            env_var=PANDOC_ENV,
            args=args,
            **context,  # type: ignore[arg-type]
        )

    def metadata_json(self, input_path: Path, template_path: Path) -> str:
        """Render ``input_path`` with ``template_path`` and return standard output.

        Used with a ``$meta-json$`` template to read the front matter header.
        """
        ensure_absolute(input_path, "input")
        ensure_absolute(template_path, "template")
        invocation = self._invocation(
            ["--template", str(template_path), str(input_path)],
            input_path=input_path,
            template_path=template_path,
            extraction=True,
        )
        return run_tool(invocation, timeout=self.timeout).stdout

    def convert(
        self,
        input_path: Path,
        metadata: Metadata,
        output_path: Path,
        strategy: FormatStrategy,
        *,
        resource_path: Path | None = None,
    ) -> ToolRun:
        """Convert ``input_path`` into ``output_path`` following ``strategy``."""
        args = build_conversion_args(
            input_path,
            metadata,
            output_path,
            strategy,
            resource_path=resource_path,
            citeproc_filter=self.citeproc_filter,
        )
        invocation = self._invocation(
            args,
            input_path=input_path,
            output_path=output_path,
            template_path=metadata.template,
        )
        return run_tool(invocation, timeout=self.timeout)
