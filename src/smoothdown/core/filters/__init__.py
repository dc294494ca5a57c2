"""Content filters applied to the markdown source before pandoc sees it."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from smoothdown.core.config import Settings
from smoothdown.core.diagnostics import DiagnosticEmitter
from smoothdown.core.exceptions import FilterError

from .expand_paths import (
    ExpandPathsFilter,
    FilterOn,
    MatchZones,
    PathFailure,
    Replacement,
    rewrite_spans,
)
from .template import DocumentLoader, TemplateFilter, build_environment


if TYPE_CHECKING:
    from smoothdown.core.documents import Document
    from smoothdown.core.metadata import Metadata


logger = logging.getLogger(__name__)

__all__ = [
    "DocumentLoader",
    "ExpandPathsFilter",
    "Filter",
    "FilterChain",
    "FilterError",
    "FilterOn",
    "MatchZones",
    "PathFailure",
    "Replacement",
    "TemplateFilter",
    "build_environment",
    "build_filter_chain",
    "rewrite_spans",
]


@runtime_checkable
class Filter(Protocol):
    """A rewriting pass over the whole document body."""

    name: str

    def apply(self, content: str) -> str: ...


class FilterChain:
    """Ordered filters, each consuming the output of the previous one."""

    def __init__(self, filters: Iterable[Filter] = ()) -> None:
        self._filters: list[Filter] = list(filters)

    @property
    def filters(self) -> Sequence[Filter]:
        return tuple(self._filters)

    @property
    def names(self) -> list[str]:
        return [item.name for item in self._filters]

    def append(self, item: Filter) -> None:
        self._filters.append(item)

    def apply(self, content: str) -> str:
        """Run every filter in order; the first :class:`FilterError` aborts the chain."""
        result = content
        for item in self._filters:
            logger.debug("applying %s filter", item.name)
            result = item.apply(result)
        return result

    def __len__(self) -> int:
        return len(self._filters)


def build_filter_chain(
    document: Document,
    metadata: Metadata,
    settings: Settings | None = None,
    *,
    emitter: DiagnosticEmitter | None = None,
) -> FilterChain:
    """Compose the default pipeline for ``document``.

    With templating enabled, include paths are expanded before the template
    engine runs so that it can load them; embedded links are always expanded
    last so that links produced by templates are covered too.
    """
    settings = settings or Settings()
    base_dir = document.source.parent
    chain = FilterChain()
    if metadata.apply_templating:
        chain.append(
            ExpandPathsFilter(
                base_dir,
                [FilterOn.TEMPLATE_INCLUDES],
                policy=settings.unresolved_paths,
                marker=settings.unresolved_marker,
                emitter=emitter,
            )
        )
        chain.append(TemplateFilter(base_dir, metadata.template_context))
    chain.append(
        ExpandPathsFilter(
            base_dir,
            [FilterOn.EMBEDDED_LINKS],
            policy=settings.unresolved_paths,
            marker=settings.unresolved_marker,
            emitter=emitter,
        )
    )
    return chain
