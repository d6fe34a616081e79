# tabload/extractors/xls_converter.py
"""
Legacy XLS to XLSX conversion through a headless LibreOffice
"""

import platform
import subprocess
from pathlib import Path
from typing import Optional

from tabload.utils.logger import get_logger
from tabload.utils.exceptions import ConversionError


class LegacySpreadsheetConverter:
    """
    Converts binary XLS workbooks to XLSX

    Only supported on Linux, where LibreOffice is invoked as
    ``libreoffice --headless --convert-to xlsx --outdir <dir> <file>``.
    The output lands next to the input unless ``output_dir`` is given.
    """

    def __init__(self, executable: str = "libreoffice", timeout_seconds: int = 600):
        self.executable = executable
        self.timeout_seconds = timeout_seconds
        self.logger = get_logger(__name__)

    @staticmethod
    def is_supported() -> bool:
        return platform.system() == "Linux"

    def convert(self, source: Path, output_dir: Optional[Path] = None) -> Path:
        """
        Convert ``source`` and return the path of the XLSX file

        Raises:
            ConversionError: On an unsupported platform, a missing or failing
                converter, or when no output file appears
        """
        source = Path(source)
        output_dir = Path(output_dir) if output_dir else source.parent

        if not self.is_supported():
            raise ConversionError(
                f"XLS conversion is only supported on Linux, not {platform.system()}",
                error_code="UNSUPPORTED_PLATFORM",
                context={'source': str(source)}
            )

        if not source.exists():
            raise ConversionError(f"XLS file does not exist: {source}", context={'source': str(source)})

        command = [
            self.executable, "--headless", "--convert-to", "xlsx",
            "--outdir", str(output_dir), str(source)
        ]
        self.logger.info(f"Converting {source} to xlsx")

        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ConversionError(
                f"could not run {self.executable}: {str(e)}",
                context={'source': str(source)},
                cause=e
            ) from e

        if completed.returncode != 0:
            raise ConversionError(
                f"{self.executable} exited with status {completed.returncode}",
                context={'source': str(source), 'stderr': completed.stderr.strip()}
            )

        target = output_dir / f"{source.stem}.xlsx"
        if not target.exists():
            raise ConversionError(
                f"conversion produced no file at {target}",
                context={'source': str(source), 'stdout': completed.stdout.strip()}
            )

        self.logger.info(f"Converted {source.name} -> {target}")
        return target
