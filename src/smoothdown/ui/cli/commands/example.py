"""Implementation of the ``smoothdown example`` command."""

from __future__ import annotations

import typer

from smoothdown.core.example import example_text, save_example
from smoothdown.core.exceptions import SmoothError

from .._options import ExampleOutputOption
from ..state import emit_error, get_cli_state


def example(output: ExampleOutputOption = None) -> None:
    """Print an example document showing every header field, or save it."""
    if output is None:
        typer.echo(example_text(), nl=False)
        return
    try:
        target = save_example(output)
    except SmoothError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc
    get_cli_state().err_console.print(f"example saved to {target}")


__all__ = ["example"]
