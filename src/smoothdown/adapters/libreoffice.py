"""LibreOffice batch conversion of office documents into PDF."""

from __future__ import annotations

from dataclasses import dataclass, field
import getpass
from pathlib import Path
import tempfile

from smoothdown.core.config import DEFAULT_LIBREOFFICE_CMD, LIBREOFFICE_ENV, Settings

from .process import ToolInvocation, ToolRun, ensure_absolute, run_tool


__all__ = ["PDF_EXPORT_FILTER", "LibreOffice", "default_profile_dir"]

PDF_EXPORT_FILTER = "pdf:writer_pdf_Export"


def default_profile_dir() -> Path:
    """Return the fixed user profile directory used for headless conversions."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "smoothdown"
    return Path(tempfile.gettempdir()) / f"LibreOffice_Conversion_{user}"


@dataclass(slots=True)
class LibreOffice:
    """Wrapper around the LibreOffice executable configured for this process."""

    executable: str = DEFAULT_LIBREOFFICE_CMD
    profile_dir: Path = field(default_factory=default_profile_dir)
    timeout: float | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> LibreOffice:
        return cls(executable=settings.libreoffice, timeout=settings.timeout)

    def build_args(self, input_path: Path, outdir: Path) -> list[str]:
        return [
            "--headless",
            "--convert-to",
            PDF_EXPORT_FILTER,
            f"-env:UserInstallation={ensure_absolute(self.profile_dir, 'profile').as_uri()}",
            "--outdir",
            str(ensure_absolute(outdir, "output directory")),
            str(ensure_absolute(input_path, "input")),
        ]

    def convert_to_pdf(self, input_path: Path, outdir: Path) -> tuple[Path, ToolRun]:
        """Convert an office document and return the path of the produced PDF."""
        pdf_path = outdir / f"{input_path.stem}.pdf"
        invocation = ToolInvocation(
            tool="libreoffice",
            executable=self.executable,
            default_executable=DEFAULT_LIBREOFFICE_CMD,
            env_var=LIBREOFFICE_ENV,
            args=self.build_args(input_path, outdir),
            input_path=input_path,
            output_path=pdf_path,
        )
        run = run_tool(invocation, timeout=self.timeout)
        return pdf_path, run
