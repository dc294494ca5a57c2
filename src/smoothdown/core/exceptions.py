"""Custom exception hierarchy for the document preparation pipeline."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any


__all__ = [
    "BibliographyNotFoundError",
    "CitationStyleNotFoundError",
    "ConversionStage",
    "ExampleWriteError",
    "ExternalToolError",
    "FilterError",
    "HomeDirectoryError",
    "IncompatibleReferenceError",
    "InputFileNotFoundError",
    "MetadataError",
    "MetadataParseError",
    "MissingFileError",
    "PathLookupError",
    "PathResolutionError",
    "ReferenceNotFoundError",
    "RelativePathError",
    "ScratchWriteError",
    "SmoothError",
    "SourceReadError",
    "TemplateNotFoundError",
    "TemplateScratchExistsError",
    "TemplateScratchRemoveError",
    "TemplateScratchWriteError",
    "ToolCallError",
    "ToolExecutionError",
    "ToolFailureKind",
    "ToolNotFoundError",
    "ToolOutputDecodeError",
    "ToolTimeoutError",
    "WorkingDirectoryError",
    "exception_hint",
    "exception_messages",
]


class ConversionStage(str, Enum):
    """Pipeline stage a failure is attributed to."""

    LOCATE = "locate"
    METADATA = "metadata"
    PREPARE = "prepare"
    SCRATCH = "scratch"
    CONVERT = "convert"

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]


_STAGE_LABELS = {
    ConversionStage.LOCATE: "locating input",
    ConversionStage.METADATA: "reading metadata",
    ConversionStage.PREPARE: "preparing content",
    ConversionStage.SCRATCH: "writing pandoc input",
    ConversionStage.CONVERT: "converting",
}


class SmoothError(RuntimeError):
    """Base exception for every failure surfaced by smoothdown."""

    stage: ConversionStage | None = None


class PathResolutionError(SmoothError):
    """Raised when a user-supplied path cannot be turned into an absolute path."""


class PathLookupError(PathResolutionError):
    """Raised when a path references an undefined environment variable."""

    def __init__(self, raw: str, variable: str | None = None) -> None:
        self.raw = raw
        self.variable = variable
        super().__init__(f"some environment variables not found in path {raw}")


class HomeDirectoryError(PathResolutionError):
    """Raised when a leading tilde cannot be expanded to a home directory."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__(f"home directory couldn't be determined for path {raw}")


class WorkingDirectoryError(PathResolutionError):
    """Raised when the current working directory cannot be determined."""

    def __init__(self) -> None:
        super().__init__("working directory couldn't be determined")


class MissingFileError(SmoothError):
    """Raised when a file declared by the user or the header does not exist."""

    label = "file"

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"couldn't find {self.label} under {path}")


class InputFileNotFoundError(MissingFileError):
    """The markdown input does not exist."""

    label = "input file"

    def __init__(self, given: str, path: Path) -> None:
        self.given = given
        self.path = path
        if given == str(path):
            message = f'input file "{given}" couldn\'t be found'
        else:
            message = f'input file "{given}" couldn\'t be found under normalized path "{path}"'
        SmoothError.__init__(self, message)


class TemplateNotFoundError(MissingFileError):
    label = "template file"


class ReferenceNotFoundError(MissingFileError):
    label = "reference file"


class BibliographyNotFoundError(MissingFileError):
    label = "bibliography file"


class CitationStyleNotFoundError(MissingFileError):
    label = "citation style file"


class IncompatibleReferenceError(SmoothError):
    """Raised when a reference document does not match the requested output format."""

    def __init__(self, path: Path, output_format: str, accepted: tuple[str, ...]) -> None:
        self.path = path
        self.output_format = output_format
        self.accepted = accepted
        expected = ", ".join(accepted) if accepted else "none"
        super().__init__(
            f"reference file {path} can't be used for {output_format} output "
            f"(expected one of: {expected})"
        )


class MetadataError(SmoothError):
    """Base class for failures while extracting the front matter header."""


class MetadataParseError(MetadataError):
    """Raised when the header emitted by pandoc is not a valid metadata object."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"couldn't parse frontmatter metadata header of document {detail}")


class TemplateScratchExistsError(MetadataError):
    """Raised when the metadata scratch template is already present."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(
            f'pandoc template for extracting the metadata as JSON already present under "{path}" '
            "please remove this file manually before proceeding"
        )


class TemplateScratchWriteError(MetadataError):
    def __init__(self, path: Path, reason: OSError) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"couldn't write temporary metadata-as-JSON template to {path} {reason}")


class TemplateScratchRemoveError(MetadataError):
    def __init__(self, path: Path, reason: OSError) -> None:
        self.path = path
        self.reason = reason
        super().__init__(
            f"couldn't remove temporary metadata-as-JSON template under {path} {reason}"
        )


class SourceReadError(SmoothError):
    def __init__(self, path: Path, reason: OSError | UnicodeDecodeError) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"couldn't read the content of the given markdown file {path} {reason}")


class ScratchWriteError(SmoothError):
    def __init__(self, path: Path | None, reason: OSError) -> None:
        self.path = path
        self.reason = reason
        target = path if path is not None else "temporary file"
        super().__init__(f"couldn't write to file {target} {reason}")


class ExampleWriteError(SmoothError):
    def __init__(self, path: Path, reason: OSError) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"couldn't save example file to {path} {reason}")


class FilterError(SmoothError):
    """Raised when a content filter cannot process the document."""

    def __init__(self, name: str, description: str) -> None:
        self.name = name
        self.description = description
        super().__init__(f"{name} filter error: {description}")


class ToolFailureKind(str, Enum):
    """Classification of an external tool failure."""

    NOT_FOUND = "not-found"
    EXECUTION_FAILED = "execution-failed"
    CALL_FAILED = "call-failed"
    TIMEOUT = "timeout"
    DECODE_FAILED = "decode-failed"


class ExternalToolError(SmoothError):
    """Structured report of a failed pandoc or LibreOffice invocation."""

    kind: ToolFailureKind = ToolFailureKind.CALL_FAILED

    def __init__(
        self,
        message: str,
        *,
        tool: str,
        executable: str,
        command: list[str] | None = None,
        input_path: Path | None = None,
        output_path: Path | None = None,
        template_path: Path | None = None,
    ) -> None:
        self.tool = tool
        self.executable = executable
        self.command = list(command or [])
        self.input_path = input_path
        self.output_path = output_path
        self.template_path = template_path
        super().__init__(message)


class ToolNotFoundError(ExternalToolError):
    kind = ToolFailureKind.NOT_FOUND

    def __init__(
        self,
        *,
        tool: str,
        executable: str,
        default: str,
        env_var: str,
        **kwargs: Any,
    ) -> None:
        self.env_var = env_var
        if executable == default:
            message = (
                f'couldn\'t find "{executable}" on your system, use the env "{env_var}" '
                "to define a non default executable name"
            )
        else:
            message = (
                f'couldn\'t find {tool} with the executable name "{executable}" '
                f'use env "{env_var}" to specify otherwise'
            )
        super().__init__(message, tool=tool, executable=executable, **kwargs)


class ToolExecutionError(ExternalToolError):
    kind = ToolFailureKind.EXECUTION_FAILED

    def __init__(
        self,
        *,
        tool: str,
        executable: str,
        returncode: int,
        stderr: str,
        extraction: bool = False,
        **kwargs: Any,
    ) -> None:
        self.returncode = returncode
        self.stderr = stderr
        self.extraction = extraction
        detail = stderr.strip() or f"exit status {returncode}"
        input_path = kwargs.get("input_path")
        output_path = kwargs.get("output_path")
        if extraction:
            message = f"{tool} failed while reading the metadata header of {input_path}: {detail}"
        elif input_path is not None and output_path is not None:
            message = f"{tool} couldn't convert {input_path} to {output_path}: {detail}"
        else:
            message = f"{tool} failed with {detail}"
        super().__init__(message, tool=tool, executable=executable, **kwargs)


class ToolCallError(ExternalToolError):
    kind = ToolFailureKind.CALL_FAILED

    def __init__(self, *, tool: str, executable: str, reason: OSError, **kwargs: Any) -> None:
        self.reason = reason
        super().__init__(
            f"couldn't call {tool} {reason}", tool=tool, executable=executable, **kwargs
        )


class ToolTimeoutError(ExternalToolError):
    kind = ToolFailureKind.TIMEOUT

    def __init__(self, *, tool: str, executable: str, timeout: float, **kwargs: Any) -> None:
        self.timeout = timeout
        super().__init__(
            f"{tool} didn't finish within {timeout:g} seconds",
            tool=tool,
            executable=executable,
            **kwargs,
        )


class ToolOutputDecodeError(ExternalToolError):
    kind = ToolFailureKind.DECODE_FAILED

    def __init__(self, *, tool: str, executable: str, **kwargs: Any) -> None:
        super().__init__(
            f"couldn't convert standard output (stdout) from {tool}",
            tool=tool,
            executable=executable,
            **kwargs,
        )


class RelativePathError(SmoothError):
    """Internal error: an adapter received a relative path."""

    def __init__(self, path: Path, purpose: str) -> None:
        self.path = path
        self.purpose = purpose
        super().__init__(
            f"internal error, pandoc module was called with an relative {purpose} path {path}, "
            "only absolute paths allowed"
        )


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None
