"""Primary public API for smoothdown."""

from __future__ import annotations

from smoothdown.core.config import Settings, UnresolvedPathPolicy
from smoothdown.core.conversion import (
    ConversionRequest,
    ConversionResult,
    ConversionService,
    PreparedDocument,
    convert,
)
from smoothdown.core.documents import Document
from smoothdown.core.example import example
from smoothdown.core.exceptions import ConversionStage, SmoothError
from smoothdown.core.formats import OutputFormat
from smoothdown.core.metadata import Metadata, extract_metadata
from smoothdown.core.paths import normalize_path
from smoothdown.version import get_version


__version__ = get_version()

__all__ = [
    "ConversionRequest",
    "ConversionResult",
    "ConversionService",
    "ConversionStage",
    "Document",
    "Metadata",
    "OutputFormat",
    "PreparedDocument",
    "Settings",
    "SmoothError",
    "UnresolvedPathPolicy",
    "__version__",
    "convert",
    "example",
    "extract_metadata",
    "normalize_path",
]
