"""Rewrite relative resource references into absolute, shell-expanded paths."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
import re

from smoothdown.core.config import UnresolvedPathPolicy
from smoothdown.core.diagnostics import DiagnosticEmitter, ensure_emitter
from smoothdown.core.exceptions import FilterError, PathResolutionError
from smoothdown.core.paths import normalize_path


__all__ = [
    "ExpandPathsFilter",
    "FilterOn",
    "MatchZones",
    "PathFailure",
    "Replacement",
    "rewrite_spans",
]

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


class FilterOn(Enum):
    """Document elements whose paths can be expanded."""

    TEMPLATE_INCLUDES = "template-includes"
    EMBEDDED_LINKS = "embedded-links"

    @property
    def pattern(self) -> re.Pattern[str]:
        return _PATTERNS[self]

    def format_path(self, path: Path, *, bracketed: bool = False) -> str:
        text = str(path)
        if bracketed:
            return text
        if self is FilterOn.EMBEDDED_LINKS and any(char.isspace() for char in text):
            return f"<{text}>"
        return text


_PATTERNS: dict[FilterOn, re.Pattern[str]] = {
    FilterOn.TEMPLATE_INCLUDES: re.compile(
        r"""(?P<prefix>\{%-?\s*include\s+["'])(?P<path>[^"']*)(?P<suffix>["'][^%]*?-?%\})"""
    ),
    FilterOn.EMBEDDED_LINKS: re.compile(
        r"""(?P<prefix>!\[[^\]]*\]\((?P<open><)?)"""
        r"""(?P<path>(?(open)[^>\n]+|[^)\s]+))"""
        r"""(?P<suffix>(?(open)>)(?:\s+(?:"[^"]*"|'[^']*'))?\))"""
    ),
}


@dataclass(frozen=True, slots=True)
class MatchZones:
    """The three zones of a matched span."""

    prefix: str
    path: str
    suffix: str


@dataclass(frozen=True, slots=True)
class PathFailure:
    """Signal returned by a replacer for a path it could not rewrite."""

    path: str
    reason: str


Replacement = str | PathFailure


def rewrite_spans(
    content: str,
    pattern: re.Pattern[str],
    replacer: Callable[[MatchZones], Replacement],
    *,
    on_failure: Callable[[PathFailure], str],
) -> tuple[str, list[PathFailure]]:
    """Replace the path zone of every match of ``pattern``.

    Text outside the path zone is copied verbatim. Failed spans get the text
    returned by ``on_failure`` in place of their path and are collected so the
    caller can report them together.
    """
    failures: list[PathFailure] = []

    def _substitute(match: re.Match[str]) -> str:
        zones = MatchZones(match.group("prefix"), match.group("path"), match.group("suffix"))
        outcome = replacer(zones)
        if isinstance(outcome, PathFailure):
            failures.append(outcome)
            outcome = on_failure(outcome)
        return f"{zones.prefix}{outcome}{zones.suffix}"

    return pattern.sub(_substitute, content), failures


def _is_external(path: str) -> bool:
    return path.startswith("#") or bool(_SCHEME_PATTERN.match(path))


class ExpandPathsFilter:
    """Expand paths found in the configured document elements."""

    name = "expand_paths"

    def __init__(
        self,
        base_dir: Path,
        targets: Iterable[FilterOn],
        *,
        policy: UnresolvedPathPolicy = UnresolvedPathPolicy.MARK,
        marker: str = "ERROR",
        emitter: DiagnosticEmitter | None = None,
    ) -> None:
        self.base_dir = base_dir
        self.targets = list(targets)
        self.policy = policy
        self.marker = marker
        self._emitter = ensure_emitter(emitter)

    def _replacer(self, target: FilterOn) -> Callable[[MatchZones], Replacement]:
        def _expand(zones: MatchZones) -> Replacement:
            if not zones.path or _is_external(zones.path):
                return zones.path
            try:
                return target.format_path(
                    normalize_path(zones.path, self.base_dir),
                    bracketed=zones.prefix.endswith("<"),
                )
            except PathResolutionError as exc:
                return PathFailure(zones.path, str(exc))

        return _expand

    def _failure_text(self, failure: PathFailure) -> str:
        if self.policy is UnresolvedPathPolicy.KEEP:
            return failure.path
        return self.marker

    def apply(self, content: str) -> str:
        result = content
        failures: list[PathFailure] = []
        for target in self.targets:
            result, found = rewrite_spans(
                result,
                target.pattern,
                self._replacer(target),
                on_failure=self._failure_text,
            )
            failures.extend(found)
        if failures:
            self._report(failures)
        return result

    def _report(self, failures: list[PathFailure]) -> None:
        listing = "; ".join(f"{item.path} ({item.reason})" for item in failures)
        summary = f"{len(failures)} path reference(s) couldn't be expanded: {listing}"
        if self.policy is UnresolvedPathPolicy.FAIL:
            raise FilterError(self.name, summary)
        self._emitter.warning(summary)
