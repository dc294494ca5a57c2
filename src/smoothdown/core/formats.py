"""Output formats and the conversion strategy attached to each of them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


__all__ = [
    "FORMAT_STRATEGIES",
    "FormatStrategy",
    "OutputFormat",
    "strategy_for",
]


class OutputFormat(str, Enum):
    """Publishing formats supported by the converter."""

    PDF = "pdf"
    ODT = "odt"
    DOCX = "docx"
    PPTX = "pptx"

    @property
    def extension(self) -> str:
        return FORMAT_STRATEGIES[self].extension

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class FormatStrategy:
    """How pandoc has to be driven to produce a given format.

    ``reference_extensions`` lists the suffixes a reference document may have
    for this format; an empty tuple means any reference is accepted (and
    ignored) by the strategy.
    """

    output_format: OutputFormat
    extension: str
    reference_extensions: tuple[str, ...] = ()
    uses_pdf_engine: bool = False
    uses_reference_doc: bool = False

    def accepts_reference(self, path: Path) -> bool:
        if not self.reference_extensions:
            return True
        return path.suffix.lower() in self.reference_extensions


FORMAT_STRATEGIES: dict[OutputFormat, FormatStrategy] = {
    OutputFormat.PDF: FormatStrategy(
        output_format=OutputFormat.PDF,
        extension=".pdf",
        uses_pdf_engine=True,
    ),
    OutputFormat.ODT: FormatStrategy(
        output_format=OutputFormat.ODT,
        extension=".odt",
        reference_extensions=(".odt", ".fodt"),
        uses_reference_doc=True,
    ),
    OutputFormat.DOCX: FormatStrategy(
        output_format=OutputFormat.DOCX,
        extension=".docx",
        reference_extensions=(".docx", ".docm"),
        uses_reference_doc=True,
    ),
    OutputFormat.PPTX: FormatStrategy(
        output_format=OutputFormat.PPTX,
        extension=".pptx",
        reference_extensions=(".pptx", ".potx"),
        uses_reference_doc=True,
    ),
}


def strategy_for(output_format: OutputFormat, *, office_pdf: bool = False) -> FormatStrategy:
    """Return the strategy used to validate and build arguments for ``output_format``.

    PDF produced through LibreOffice is rendered as ODT first, so it shares the
    ODT rules for reference documents.
    """
    if office_pdf and output_format is OutputFormat.PDF:
        return FORMAT_STRATEGIES[OutputFormat.ODT]
    return FORMAT_STRATEGIES[output_format]
