from __future__ import annotations

from pathlib import Path

import pytest

from smoothdown.core.documents import Document, default_output_path
from smoothdown.core.exceptions import InputFileNotFoundError, SourceReadError
from smoothdown.core.formats import OutputFormat


@pytest.mark.parametrize(
    ("output_format", "name"),
    [
        (OutputFormat.PDF, "doc.pdf"),
        (OutputFormat.ODT, "doc.odt"),
        (OutputFormat.DOCX, "doc.docx"),
        (OutputFormat.PPTX, "doc.pptx"),
    ],
)
def test_default_output_replaces_suffix(output_format: OutputFormat, name: str) -> None:
    assert default_output_path(Path("/w/doc.md"), output_format) == Path("/w") / name


def test_locate_resolves_relative_input(
    document: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(document.parent)

    located = Document.locate("doc.md", output_format=OutputFormat.ODT)

    assert located.source.is_absolute()
    assert located.source.name == "doc.md"
    assert located.output == located.source.with_suffix(".odt")
    assert located.parent == located.source.parent


def test_explicit_output_is_normalised(document: Path) -> None:
    located = Document.locate(document, "$OUT/result.pdf", environ={"OUT": "/srv/build"})
    assert located.output == Path("/srv/build/result.pdf")


def test_missing_input_reports_both_paths(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)

    with pytest.raises(InputFileNotFoundError) as excinfo:
        Document.locate("missing.md")

    message = str(excinfo.value)
    assert 'input file "missing.md"' in message
    assert "normalized path" in message
    assert excinfo.value.path.name == "missing.md"


def test_missing_absolute_input_has_short_message(tmp_path: Path) -> None:
    target = tmp_path / "missing.md"
    with pytest.raises(InputFileNotFoundError) as excinfo:
        Document.locate(target)
    assert "normalized path" not in str(excinfo.value)


def test_unreadable_source(tmp_path: Path) -> None:
    source = tmp_path / "binary.md"
    source.write_bytes(b"\xff\xfe\x00broken")
    with pytest.raises(SourceReadError):
        Document(source, source.with_suffix(".pdf")).read()
