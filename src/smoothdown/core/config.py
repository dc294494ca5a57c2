"""Runtime settings resolved from the environment.

Settings

`pandoc` (`str`)
: Executable used for metadata extraction and conversion. Read from
  ``PANDOC_CMD``; defaults to ``pandoc``.

`libreoffice` (`str`)
: Executable used by the office PDF route. Read from ``LIBREOFFICE_CMD``;
  defaults to ``soffice``.

`citeproc_filter` (`str | None`)
: Name of the pandoc filter handling citations when a bibliography is
  declared. Read from ``SMOOTHDOWN_CITEPROC``. The value ``builtin`` selects
  pandoc's own ``--citeproc`` switch (stored as ``None``).

`timeout` (`float | None`)
: Seconds after which an external process is abandoned. Read from
  ``SMOOTHDOWN_TIMEOUT``; unset means wait forever.

`unresolved_paths` (`UnresolvedPathPolicy`)
: What the path expansion filter does with references it cannot normalise.
  Read from ``SMOOTHDOWN_UNRESOLVED_PATHS``: ``mark`` (default), ``keep`` or
  ``fail``.

`unresolved_marker` (`str`)
: Text substituted for unresolved references under the ``mark`` policy.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
import os

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import SmoothError


__all__ = [
    "CITEPROC_ENV",
    "DEFAULT_CITEPROC_FILTER",
    "DEFAULT_LIBREOFFICE_CMD",
    "DEFAULT_PANDOC_CMD",
    "LIBREOFFICE_ENV",
    "PANDOC_ENV",
    "Settings",
    "SettingsError",
    "UnresolvedPathPolicy",
]

DEFAULT_PANDOC_CMD = "pandoc"
PANDOC_ENV = "PANDOC_CMD"
DEFAULT_LIBREOFFICE_CMD = "soffice"
LIBREOFFICE_ENV = "LIBREOFFICE_CMD"
DEFAULT_CITEPROC_FILTER = "pandoc-citeproc"
CITEPROC_ENV = "SMOOTHDOWN_CITEPROC"
TIMEOUT_ENV = "SMOOTHDOWN_TIMEOUT"
UNRESOLVED_PATHS_ENV = "SMOOTHDOWN_UNRESOLVED_PATHS"

_BUILTIN_CITEPROC = "builtin"


class SettingsError(SmoothError):
    """Raised when an environment variable holds an unusable value."""


class UnresolvedPathPolicy(str, Enum):
    """Behaviour of the path expansion filter for references it cannot resolve."""

    MARK = "mark"
    KEEP = "keep"
    FAIL = "fail"


class Settings(BaseModel):
    """Settings shared by every conversion of a process."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    pandoc: str = DEFAULT_PANDOC_CMD
    libreoffice: str = DEFAULT_LIBREOFFICE_CMD
    citeproc_filter: str | None = DEFAULT_CITEPROC_FILTER
    timeout: float | None = Field(default=None, gt=0)
    unresolved_paths: UnresolvedPathPolicy = UnresolvedPathPolicy.MARK
    unresolved_marker: str = "ERROR"

    @field_validator("pandoc", "libreoffice", mode="before")
    @classmethod
    def _strip_executable(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValueError("executable name cannot be empty.")
            return stripped
        return value

    @field_validator("citeproc_filter", mode="before")
    @classmethod
    def _coerce_citeproc(cls, value: object) -> object:
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped or stripped.lower() == _BUILTIN_CITEPROC:
                return None
            return stripped
        return value

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        payload: dict[str, object] = {}
        for key, variable in (
            ("pandoc", PANDOC_ENV),
            ("libreoffice", LIBREOFFICE_ENV),
            ("citeproc_filter", CITEPROC_ENV),
            ("timeout", TIMEOUT_ENV),
            ("unresolved_paths", UNRESOLVED_PATHS_ENV),
        ):
            value = env.get(variable)
            if value is not None and (key == "citeproc_filter" or value.strip()):
                payload[key] = value.strip()
        if "unresolved_paths" in payload:
            payload["unresolved_paths"] = str(payload["unresolved_paths"]).lower()
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise SettingsError(f"invalid environment configuration: {exc}") from exc
