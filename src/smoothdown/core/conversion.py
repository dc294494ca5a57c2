"""Conversion orchestration: locate, read metadata, filter, write scratch, convert."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import shutil
import tempfile

from smoothdown.adapters.libreoffice import LibreOffice
from smoothdown.adapters.pandoc import Pandoc

from .config import Settings
from .diagnostics import DiagnosticEmitter, ensure_emitter
from .documents import Document
from .exceptions import (
    ConversionStage,
    ScratchWriteError,
    SmoothError,
    ToolExecutionError,
)
from .filters import build_filter_chain
from .formats import OutputFormat, strategy_for
from .metadata import Metadata, extract_metadata


logger = logging.getLogger(__name__)

__all__ = [
    "ConversionRequest",
    "ConversionResult",
    "ConversionService",
    "PreparedDocument",
    "convert",
    "stage",
]


@dataclass(slots=True)
class ConversionRequest:
    """Description of a single conversion run."""

    input: str | os.PathLike[str]
    output: str | os.PathLike[str] | None = None
    output_format: OutputFormat = OutputFormat.PDF
    keep_temp: bool = False
    office_pdf: bool = False
    environ: Mapping[str, str] | None = None


@dataclass(slots=True)
class PreparedDocument:
    """A document whose content went through the filter chain."""

    document: Document
    metadata: Metadata
    content: str
    filters: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ConversionResult:
    """Outcome of a successful conversion."""

    output_path: Path
    output_format: OutputFormat
    command: list[str]
    scratch_path: Path | None = None


@contextmanager
def stage(current: ConversionStage) -> Iterator[None]:
    """Attribute any :class:`SmoothError` raised in the block to ``current``."""
    try:
        yield
    except SmoothError as exc:
        if exc.stage is None:
            exc.stage = current
            exc.add_note(f"stage: {current.label}")
        raise


class ConversionService:
    """Run the preparation pipeline and hand the result over to pandoc."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        emitter: DiagnosticEmitter | None = None,
        pandoc: Pandoc | None = None,
        libreoffice: LibreOffice | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.emitter = ensure_emitter(emitter)
        self.pandoc = pandoc or Pandoc.from_settings(self.settings)
        self.libreoffice = libreoffice or LibreOffice.from_settings(self.settings)

    def prepare(self, request: ConversionRequest) -> PreparedDocument:
        """Locate the document, read its metadata and run the filter chain."""
        with stage(ConversionStage.LOCATE):
            document = Document.locate(
                request.input,
                request.output,
                request.output_format,
                environ=request.environ,
            )

        with stage(ConversionStage.METADATA):
            metadata = extract_metadata(
                document.source,
                document.parent,
                document.output_format,
                pandoc=self.pandoc,
                office_pdf=request.office_pdf,
            )
        self.emitter.event(
            "metadata_extracted",
            {"source": str(document.source), "fields": metadata.declared_fields()},
        )

        with stage(ConversionStage.PREPARE):
            raw = document.read()
            chain = build_filter_chain(document, metadata, self.settings, emitter=self.emitter)
            content = chain.apply(raw)

        return PreparedDocument(
            document=document,
            metadata=metadata,
            content=content,
            filters=chain.names,
        )

    def convert(self, request: ConversionRequest) -> ConversionResult:
        """Convert the requested document, returning where the output was written."""
        prepared = self.prepare(request)
        document = prepared.document

        with stage(ConversionStage.SCRATCH):
            scratch_path = _write_scratch(prepared.content)

        try:
            with stage(ConversionStage.CONVERT):
                if request.office_pdf and document.output_format is OutputFormat.PDF:
                    command = self._convert_through_office(scratch_path, prepared)
                else:
                    run = self.pandoc.convert(
                        scratch_path,
                        prepared.metadata,
                        document.output,
                        strategy_for(document.output_format),
                        resource_path=document.parent,
                    )
                    command = run.command
        finally:
            if request.keep_temp:
                logger.info("pandoc input kept at %s", scratch_path)
                self.emitter.event("scratch_kept", {"path": str(scratch_path)})
            else:
                _remove_scratch(scratch_path)

        self.emitter.event(
            "converted",
            {"output": str(document.output), "format": document.output_format.value},
        )
        return ConversionResult(
            output_path=document.output,
            output_format=document.output_format,
            command=command,
            scratch_path=scratch_path if request.keep_temp else None,
        )

    def _convert_through_office(self, scratch_path: Path, prepared: PreparedDocument) -> list[str]:
        document = prepared.document
        with tempfile.TemporaryDirectory(prefix="smoothdown-office-") as tmpdir:
            workdir = Path(tmpdir)
            office_path = workdir / f"{document.output.stem}.odt"
            self.pandoc.convert(
                scratch_path,
                prepared.metadata,
                office_path,
                strategy_for(OutputFormat.PDF, office_pdf=True),
                resource_path=document.parent,
            )
            pdf_path, run = self.libreoffice.convert_to_pdf(office_path, workdir)
            if not pdf_path.exists():
                raise ToolExecutionError(
                    tool="libreoffice",
                    executable=self.libreoffice.executable,
                    returncode=0,
                    stderr=run.stderr or f"no PDF was written to {workdir}",
                    command=run.command,
                    input_path=office_path,
                    output_path=pdf_path,
                )
            try:
                shutil.move(pdf_path, document.output)
            except OSError as exc:
                raise ScratchWriteError(document.output, exc) from exc
        return run.command


def _write_scratch(content: str) -> Path:
    try:
        handle = tempfile.NamedTemporaryFile(
            mode="w",
            suffix=".md",
            prefix="smoothdown-",
            encoding="utf-8",
            delete=False,
        )
    except OSError as exc:
        raise ScratchWriteError(None, exc) from exc
    path = Path(handle.name)
    try:
        with handle:
            handle.write(content)
    except OSError as exc:
        _remove_scratch(path)
        raise ScratchWriteError(path, exc) from exc
    return path


def _remove_scratch(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("couldn't remove temporary pandoc input %s: %s", path, exc)


def convert(
    path: str | os.PathLike[str],
    output: str | os.PathLike[str] | None = None,
    *,
    output_format: OutputFormat = OutputFormat.PDF,
    keep_temp: bool = False,
    office_pdf: bool = False,
    settings: Settings | None = None,
    emitter: DiagnosticEmitter | None = None,
) -> ConversionResult:
    """Convert the markdown file at ``path`` with settings read from the environment."""
    service = ConversionService(settings or Settings.from_env(), emitter=emitter)
    request = ConversionRequest(
        input=path,
        output=output,
        output_format=output_format,
        keep_temp=keep_temp,
        office_pdf=office_pdf,
    )
    return service.convert(request)
