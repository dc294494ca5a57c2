"""CLI command implementations exposed via ``smoothdown.ui.cli``."""

from __future__ import annotations

from .convert import convert
from .example import example


__all__ = ["convert", "example"]
