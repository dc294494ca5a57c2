"""Template directive expansion with Jinja."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
)

from smoothdown.core.exceptions import FilterError


__all__ = ["DocumentLoader", "TemplateFilter", "build_environment"]


class DocumentLoader(FileSystemLoader):
    """Load includes relative to the document directory, or from absolute paths."""

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, Callable[[], bool] | None]:
        candidate = Path(template)
        if not candidate.is_absolute():
            return super().get_source(environment, template)
        if not candidate.is_file():
            raise TemplateNotFound(template)
        source = candidate.read_text(encoding=self.encoding)
        mtime = candidate.stat().st_mtime

        def _uptodate() -> bool:
            try:
                return candidate.stat().st_mtime == mtime
            except OSError:
                return False

        return source, str(candidate), _uptodate


def build_environment(base_dir: Path) -> Environment:
    """Return a Jinja environment able to include files next to the document."""
    return Environment(
        loader=DocumentLoader([str(base_dir)]),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def _describe(exc: TemplateError) -> str:
    if isinstance(exc, TemplateNotFound):
        return f"included file {exc.name} not found"
    if isinstance(exc, TemplateSyntaxError):
        return f"syntax error on line {exc.lineno}: {exc.message}"
    return str(exc) or type(exc).__name__


class TemplateFilter:
    """Render the whole document body as a template."""

    name = "template"

    def __init__(self, base_dir: Path, context: Mapping[str, Any] | None = None) -> None:
        self.base_dir = base_dir
        self.context = dict(context or {})

    def apply(self, content: str) -> str:
        environment = build_environment(self.base_dir)
        try:
            return environment.from_string(content).render(self.context)
        except TemplateError as exc:
            raise FilterError(self.name, _describe(exc)) from exc
