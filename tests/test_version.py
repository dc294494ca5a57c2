from typer.testing import CliRunner

import smoothdown
from smoothdown.ui.cli import app
from smoothdown.version import get_version


def test_get_version_matches_public_api() -> None:
    assert get_version() == smoothdown.__version__
    assert isinstance(smoothdown.__version__, str)


def test_cli_version_flag() -> None:
    runner = CliRunner()
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0, result.stdout
    assert result.stdout.strip() == f"smoothdown {get_version()}"
