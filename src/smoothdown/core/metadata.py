"""Extraction and validation of the document front matter header.

The header is never parsed here. Pandoc renders the document with a one-line
template that emits its metadata as JSON, and the result is validated into an
immutable :class:`Metadata` record.
"""

from __future__ import annotations

from collections.abc import Callable
import json
import logging
from pathlib import Path
import shutil
import tempfile
from typing import TYPE_CHECKING, Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import (
    BibliographyNotFoundError,
    CitationStyleNotFoundError,
    IncompatibleReferenceError,
    MetadataParseError,
    MissingFileError,
    ReferenceNotFoundError,
    TemplateNotFoundError,
    TemplateScratchExistsError,
    TemplateScratchRemoveError,
    TemplateScratchWriteError,
)
from .formats import FormatStrategy, OutputFormat, strategy_for
from .paths import normalize_path


if TYPE_CHECKING:
    from smoothdown.adapters.pandoc import Pandoc


logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_ENGINE",
    "METADATA_TEMPLATE",
    "METADATA_TEMPLATE_NAME",
    "FrontMatter",
    "Metadata",
    "build_metadata",
    "extract_metadata",
    "parse_front_matter",
    "read_header_json",
]

DEFAULT_ENGINE = "xelatex"

# File name of the scratch template inside its per-invocation directory.
METADATA_TEMPLATE_NAME = "metadata.pandoc-tpl"

METADATA_TEMPLATE = "$meta-json$"


class FrontMatter(BaseModel):
    """Raw header fields as emitted by pandoc's ``$meta-json$``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    template: str | None = None
    reference: str | None = None
    engine: str | None = None
    pandoc_options: list[str] | None = None
    do_tera: bool = Field(
        default=False,
        validation_alias=AliasChoices("do_tera", "do_template", "apply_templating"),
    )
    tera_context: dict[str, Any] | None = Field(
        default=None,
        validation_alias=AliasChoices("tera_context", "template_context"),
    )
    break_description: bool = False
    bibliography: str | None = None
    csl: str | None = None

    @field_validator("template", "reference", "engine", "bibliography", "csl", mode="before")
    @classmethod
    def _coerce_string(cls, value: Any) -> str | None:
        if value is None:
            return None
        if isinstance(value, (dict, list)):
            raise ValueError("expected a single value.")
        stripped = str(value).strip()
        return stripped or None

    @field_validator("pandoc_options", mode="before")
    @classmethod
    def _split_options(cls, value: Any) -> list[str] | None:
        if value is None:
            return None
        if isinstance(value, str):
            return value.split()
        if isinstance(value, list):
            tokens: list[str] = []
            for item in value:
                if isinstance(item, (dict, list)):
                    raise ValueError("pandoc options must be strings.")
                tokens.extend(str(item).split())
            return tokens
        raise ValueError("pandoc options must be a string.")

    @field_validator("do_tera", "break_description", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> Any:
        # pandoc renders YAML scalars it does not recognise as strings.
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in {"true", "yes", "on", "1"}:
                return True
            if lowered in {"false", "no", "off", "0", ""}:
                return False
        if value is None:
            return False
        return value


class Metadata(BaseModel):
    """Validated configuration declared by a document header."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    template: Path | None = None
    reference: Path | None = None
    engine: str = DEFAULT_ENGINE
    converter_options: tuple[str, ...] = ()
    apply_templating: bool = False
    template_context: dict[str, Any] = Field(default_factory=dict)
    break_description: bool = False
    bibliography: Path | None = None
    citation_style: Path | None = None

    def declared_fields(self) -> list[str]:
        """Return the names of the fields that differ from their defaults."""
        defaults = Metadata()
        return [
            name
            for name in type(self).model_fields
            if getattr(self, name) != getattr(defaults, name)
        ]


def parse_front_matter(raw: str) -> FrontMatter:
    """Parse the JSON text produced by the metadata template."""
    text = raw.strip()
    if not text:
        return FrontMatter()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MetadataParseError(str(exc)) from exc
    if not isinstance(payload, dict):
        raise MetadataParseError(f"expected a JSON object, got {type(payload).__name__}")
    try:
        return FrontMatter.model_validate(payload)
    except ValidationError as exc:
        raise MetadataParseError(str(exc)) from exc


def _existing_path(
    raw: str | None,
    base_dir: Path,
    error: Callable[[Path], MissingFileError],
) -> Path | None:
    if raw is None:
        return None
    path = normalize_path(raw, base_dir)
    if not path.exists():
        raise error(path)
    return path


def build_metadata(
    header: FrontMatter,
    base_dir: Path,
    output_format: OutputFormat,
    *,
    office_pdf: bool = False,
) -> Metadata:
    """Normalise, existence-check and format-check every field of ``header``."""
    strategy: FormatStrategy = strategy_for(output_format, office_pdf=office_pdf)

    template = _existing_path(header.template, base_dir, TemplateNotFoundError)
    reference = _existing_path(header.reference, base_dir, ReferenceNotFoundError)
    if reference is not None and not strategy.accepts_reference(reference):
        raise IncompatibleReferenceError(
            reference, output_format.value, strategy.reference_extensions
        )
    bibliography = _existing_path(header.bibliography, base_dir, BibliographyNotFoundError)
    citation_style = _existing_path(header.csl, base_dir, CitationStyleNotFoundError)

    return Metadata(
        template=template,
        reference=reference,
        engine=header.engine or DEFAULT_ENGINE,
        converter_options=tuple(header.pandoc_options or ()),
        apply_templating=header.do_tera,
        template_context=dict(header.tera_context or {}),
        break_description=header.break_description,
        bibliography=bibliography,
        citation_style=citation_style,
    )


def _write_scratch_template(path: Path) -> None:
    try:
        with path.open("x", encoding="utf-8") as handle:
            handle.write(METADATA_TEMPLATE)
    except FileExistsError as exc:
        raise TemplateScratchExistsError(path) from exc
    except OSError as exc:
        raise TemplateScratchWriteError(path, exc) from exc


def _remove_scratch(scratch_dir: Path, template_path: Path, *, strict: bool) -> None:
    try:
        shutil.rmtree(scratch_dir)
    except OSError as exc:
        if strict:
            raise TemplateScratchRemoveError(template_path, exc) from exc
        logger.warning("couldn't remove metadata scratch template %s: %s", template_path, exc)


def read_header_json(source: Path, pandoc: Pandoc, *, scratch_root: Path | None = None) -> str:
    """Return the header of ``source`` as JSON text.

    The scratch template lives in its own temporary directory, removed on every
    exit path except when a file of the same name was already there.
    """
    scratch_dir = Path(tempfile.mkdtemp(prefix="smoothdown-meta-", dir=scratch_root))
    template_path = scratch_dir / METADATA_TEMPLATE_NAME
    try:
        _write_scratch_template(template_path)
    except TemplateScratchWriteError:
        _remove_scratch(scratch_dir, template_path, strict=False)
        raise
    try:
        raw = pandoc.metadata_json(source, template_path)
    except BaseException:
        _remove_scratch(scratch_dir, template_path, strict=False)
        raise
    _remove_scratch(scratch_dir, template_path, strict=True)
    return raw


def extract_metadata(
    source: Path,
    parent_dir: Path,
    output_format: OutputFormat,
    *,
    pandoc: Pandoc,
    office_pdf: bool = False,
    scratch_root: Path | None = None,
) -> Metadata:
    """Read, parse and validate the front matter of ``source``."""
    raw = read_header_json(source, pandoc, scratch_root=scratch_root)
    header = parse_front_matter(raw)
    return build_metadata(header, parent_dir, output_format, office_pdf=office_pdf)
