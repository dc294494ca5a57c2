"""Shell-style normalisation of user-supplied paths.

Paths found on the command line or inside a document header may use a leading
tilde for the home directory and ``$NAME`` / ``${NAME}`` references to
environment variables. :func:`normalize_path` expands both and anchors relative
results onto a base directory. It never checks whether the result exists;
callers raise their own field-specific errors for that.
"""

from __future__ import annotations

from collections.abc import Mapping
import os
from pathlib import Path
import re

from .exceptions import HomeDirectoryError, PathLookupError, WorkingDirectoryError


__all__ = ["expand_user", "expand_variables", "normalize_path", "shell_expand"]

_VARIABLE_PATTERN = re.compile(r"\$(?:\{(?P<braced>[A-Za-z0-9_]+)\}|(?P<bare>[A-Za-z0-9_]+))")


def expand_user(raw: str) -> str:
    """Replace a leading ``~`` with the home directory of the current user."""
    if raw == "~" or raw.startswith("~/"):
        try:
            home = Path.home()
        except (RuntimeError, KeyError) as exc:
            raise HomeDirectoryError(raw) from exc
        return str(home) + raw[1:]
    return raw


def expand_variables(raw: str, environ: Mapping[str, str] | None = None) -> str:
    """Substitute ``$NAME`` and ``${NAME}`` tokens, failing on undefined names."""
    env = os.environ if environ is None else environ

    def _substitute(match: re.Match[str]) -> str:
        name = match.group("braced") or match.group("bare")
        try:
            return env[name]
        except KeyError:
            raise PathLookupError(raw, name) from None

    return _VARIABLE_PATTERN.sub(_substitute, raw)


def shell_expand(raw: str, environ: Mapping[str, str] | None = None) -> str:
    """Apply tilde and environment variable expansion like a POSIX shell would."""
    return expand_variables(expand_user(raw), environ)


def normalize_path(
    raw: str | os.PathLike[str],
    base: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Path:
    """Return the absolute path for ``raw``.

    Relative results are joined onto ``base`` when given, otherwise onto the
    current working directory. ``..`` segments are kept as written.
    """
    expanded = Path(shell_expand(os.fspath(raw), environ))
    if expanded.is_absolute():
        return expanded
    if base is not None:
        return base / expanded
    try:
        cwd = Path.cwd()
    except OSError as exc:
        raise WorkingDirectoryError() from exc
    return cwd / expanded
