from __future__ import annotations

from pathlib import Path

import pytest

from smoothdown.adapters.pandoc import Pandoc
from smoothdown.core import metadata as metadata_module
from smoothdown.core.exceptions import (
    BibliographyNotFoundError,
    CitationStyleNotFoundError,
    IncompatibleReferenceError,
    MetadataParseError,
    ReferenceNotFoundError,
    TemplateNotFoundError,
    TemplateScratchExistsError,
    TemplateScratchRemoveError,
    ToolExecutionError,
)
from smoothdown.core.formats import OutputFormat
from smoothdown.core.metadata import (
    METADATA_TEMPLATE,
    Metadata,
    build_metadata,
    extract_metadata,
    parse_front_matter,
    read_header_json,
)


def _scratch_dirs(root: Path) -> list[Path]:
    return sorted(root.glob("smoothdown-meta-*"))


def test_empty_header_gives_defaults(tmp_path: Path) -> None:
    metadata = build_metadata(parse_front_matter(""), tmp_path, OutputFormat.PDF)
    assert metadata == Metadata()
    assert metadata.engine == "xelatex"
    assert metadata.converter_options == ()
    assert metadata.apply_templating is False
    assert metadata.template_context == {}


def test_header_fields_are_parsed(tmp_path: Path) -> None:
    (tmp_path / "letter.latex").write_text("$body$", encoding="utf-8")
    (tmp_path / "refs.json").write_text("[]", encoding="utf-8")
    (tmp_path / "style.csl").write_text("<style/>", encoding="utf-8")
    header = parse_front_matter(
        """
        {
          "title": "ignored",
          "template": "letter.latex",
          "engine": "lualatex",
          "pandoc_options": "--toc   --number-sections",
          "do_tera": "true",
          "tera_context": {"recipient": "Ada", "items": [1, 2]},
          "break_description": true,
          "bibliography": "refs.json",
          "csl": "style.csl"
        }
        """
    )

    metadata = build_metadata(header, tmp_path, OutputFormat.PDF)

    assert metadata.template == tmp_path / "letter.latex"
    assert metadata.engine == "lualatex"
    assert metadata.converter_options == ("--toc", "--number-sections")
    assert metadata.apply_templating is True
    assert metadata.template_context == {"recipient": "Ada", "items": [1, 2]}
    assert metadata.break_description is True
    assert metadata.bibliography == tmp_path / "refs.json"
    assert metadata.citation_style == tmp_path / "style.csl"
    assert "template" in metadata.declared_fields()
    assert "reference" not in metadata.declared_fields()


def test_templating_aliases() -> None:
    header = parse_front_matter('{"apply_templating": true, "template_context": {"a": 1}}')
    assert header.do_tera is True
    assert header.tera_context == {"a": 1}


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"pandoc_options": {"a": 1}}'])
def test_malformed_header(raw: str) -> None:
    with pytest.raises(MetadataParseError) as excinfo:
        parse_front_matter(raw)
    assert "couldn't parse frontmatter metadata header" in str(excinfo.value)


@pytest.mark.parametrize(
    ("key", "error"),
    [
        ("template", TemplateNotFoundError),
        ("reference", ReferenceNotFoundError),
        ("bibliography", BibliographyNotFoundError),
        ("csl", CitationStyleNotFoundError),
    ],
)
def test_missing_declared_files(tmp_path: Path, key: str, error: type[Exception]) -> None:
    header = parse_front_matter(f'{{"{key}": "missing.file"}}')
    with pytest.raises(error) as excinfo:
        build_metadata(header, tmp_path, OutputFormat.ODT)
    assert excinfo.value.path == tmp_path / "missing.file"  # type: ignore[attr-defined]


def test_reference_must_match_output_format(tmp_path: Path) -> None:
    (tmp_path / "style.docx").write_bytes(b"docx")
    header = parse_front_matter('{"reference": "style.docx"}')

    with pytest.raises(IncompatibleReferenceError) as excinfo:
        build_metadata(header, tmp_path, OutputFormat.ODT)
    assert excinfo.value.accepted == (".odt", ".fodt")

    metadata = build_metadata(header, tmp_path, OutputFormat.DOCX)
    assert metadata.reference == tmp_path / "style.docx"


def test_office_pdf_requires_odt_reference(tmp_path: Path) -> None:
    (tmp_path / "style.docx").write_bytes(b"docx")
    header = parse_front_matter('{"reference": "style.docx"}')

    assert build_metadata(header, tmp_path, OutputFormat.PDF).reference is not None
    with pytest.raises(IncompatibleReferenceError):
        build_metadata(header, tmp_path, OutputFormat.PDF, office_pdf=True)


def test_paths_expand_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    shared = tmp_path / "shared"
    shared.mkdir()
    (shared / "tpl.latex").write_text("$body$", encoding="utf-8")
    monkeypatch.setenv("SHARED", str(shared))

    header = parse_front_matter('{"template": "$SHARED/tpl.latex"}')

    assert build_metadata(header, tmp_path, OutputFormat.PDF).template == shared / "tpl.latex"


def test_extraction_uses_scratch_template(fake_tools, document: Path, tmp_path: Path) -> None:
    fake_tools.header = {"engine": "pdflatex", "pandoc_options": "--toc"}
    scratch_root = tmp_path / "scratch"
    scratch_root.mkdir()

    metadata = extract_metadata(
        document,
        document.parent,
        OutputFormat.PDF,
        pandoc=Pandoc(),
        scratch_root=scratch_root,
    )

    assert metadata.engine == "pdflatex"
    assert metadata.converter_options == ("--toc",)
    assert fake_tools.templates == [METADATA_TEMPLATE]
    assert _scratch_dirs(scratch_root) == []


def test_scratch_is_removed_when_pandoc_fails(
    fake_tools, document: Path, tmp_path: Path
) -> None:
    fake_tools.returncode = 1
    fake_tools.stderr = b"YAML parse exception"

    with pytest.raises(ToolExecutionError) as excinfo:
        read_header_json(document, Pandoc(), scratch_root=tmp_path)

    assert excinfo.value.extraction is True
    assert _scratch_dirs(tmp_path) == []


def test_existing_scratch_template_is_reported_and_kept(
    fake_tools, document: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    real_write = metadata_module._write_scratch_template

    def _write_twice(path: Path) -> None:
        real_write(path)
        real_write(path)

    monkeypatch.setattr(metadata_module, "_write_scratch_template", _write_twice)

    with pytest.raises(TemplateScratchExistsError) as excinfo:
        read_header_json(document, Pandoc(), scratch_root=tmp_path)

    assert "please remove this file manually" in str(excinfo.value)
    assert excinfo.value.path.exists()
    assert fake_tools.calls == []


def test_removal_failure_after_success_is_raised(
    fake_tools, document: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _refuse(path: Path) -> None:
        raise PermissionError("read-only")

    monkeypatch.setattr(metadata_module.shutil, "rmtree", _refuse)

    with pytest.raises(TemplateScratchRemoveError):
        read_header_json(document, Pandoc(), scratch_root=tmp_path)


def test_removal_failure_does_not_mask_earlier_error(
    fake_tools, document: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fake_tools.returncode = 2

    def _refuse(path: Path) -> None:
        raise PermissionError("read-only")

    monkeypatch.setattr(metadata_module.shutil, "rmtree", _refuse)

    with pytest.raises(ToolExecutionError):
        read_header_json(document, Pandoc(), scratch_root=tmp_path)
