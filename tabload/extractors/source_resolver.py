# tabload/extractors/source_resolver.py
"""
Turns a SourceSpec into a ready Row Reader
"""

import io
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from tabload.config.settings import settings
from tabload.extractors.http_fetcher import HttpFetcher
from tabload.extractors.xls_converter import LegacySpreadsheetConverter
from tabload.models.source_spec import SourceFormat, SourceSpec
from tabload.readers.base import RowReader
from tabload.readers.delimited_reader import DelimitedRowReader
from tabload.readers.spreadsheet_reader import SpreadsheetRowReader
from tabload.utils.logger import get_logger
from tabload.utils.exceptions import (
    ConfigurationError,
    ConversionError,
    NotFoundError,
    SourceAccessError,
)

Materialized = Union[bytes, Path]


class SourceResolver:
    """
    Opens sources for reading, once or several times

    Remote bodies and converted workbooks are materialized on the first
    resolve and cached by identifier, so a later resolve of the same spec
    starts again from the first byte without another fetch or conversion.
    """

    def __init__(
        self,
        work_dir: Optional[Path] = None,
        fetcher: Optional[HttpFetcher] = None,
        converter: Optional[LegacySpreadsheetConverter] = None
    ):
        self.work_dir = Path(work_dir) if work_dir else settings.pipeline.work_dir
        self.work_dir.mkdir(parents=True, exist_ok=True)
        self.fetcher = fetcher or HttpFetcher(settings.http)
        self.converter = converter or LegacySpreadsheetConverter()
        self.logger = get_logger(__name__)
        self._cache: Dict[str, Materialized] = {}
        self._temp_files: List[Path] = []

    def resolve(self, spec: SourceSpec) -> RowReader:
        """
        Build a fresh Row Reader positioned at the start of the source

        Raises:
            FetchError: If a remote source cannot be retrieved
            NotFoundError: If a local source cannot be opened
            ConversionError: If an XLS source cannot be converted
        """
        if spec.source_format.is_spreadsheet:
            return self._spreadsheet_reader(spec)
        return DelimitedRowReader(
            self._open_stream(spec),
            separator=spec.separator,
            quote=spec.quote,
            skip=spec.skip,
            source_name=spec.identifier
        )

    def _open_stream(self, spec: SourceSpec):
        if spec.is_remote:
            return io.BytesIO(self._fetched(spec.identifier))
        try:
            return open(spec.identifier, 'rb')
        except OSError as e:
            raise NotFoundError(
                f"cannot open source {spec.identifier}: {str(e)}",
                context={'source': spec.identifier},
                cause=e
            ) from e

    def _fetched(self, url: str) -> bytes:
        if url not in self._cache:
            self._cache[url] = self.fetcher.fetch(url)
        else:
            self.logger.debug(f"Reusing fetched body for {url}")
        return self._cache[url]

    def _spreadsheet_reader(self, spec: SourceSpec) -> SpreadsheetRowReader:
        if spec.source_format is SourceFormat.XLS:
            target: Materialized = self._converted(spec)
        elif spec.is_remote:
            target = self._fetched(spec.identifier)
        else:
            target = Path(spec.identifier)
            if not target.is_file():
                raise NotFoundError(
                    f"source file does not exist: {spec.identifier}",
                    context={'source': spec.identifier}
                )

        handle = io.BytesIO(target) if isinstance(target, bytes) else target
        try:
            workbook = load_workbook(handle, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            raise SourceAccessError(
                f"cannot read workbook {spec.identifier}: {str(e)}",
                context={'source': spec.identifier},
                cause=e
            ) from e

        try:
            return SpreadsheetRowReader(
                workbook,
                sheet=spec.sheet,
                cell_range=spec.cell_range,
                skip=spec.skip,
                source_name=spec.identifier
            )
        except ConfigurationError:
            workbook.close()
            raise

    def _converted(self, spec: SourceSpec) -> Path:
        cached = self._cache.get(spec.identifier)
        if cached is not None:
            return cached

        if not self.converter.is_supported():
            raise ConversionError(
                "XLS sources can only be converted on Linux",
                error_code="UNSUPPORTED_PLATFORM",
                context={'source': spec.identifier}
            )

        if spec.is_remote:
            local = self.fetcher.download_to(spec.identifier, self.work_dir, suffix=".xls")
            self._temp_files.append(local)
        else:
            local = Path(spec.identifier)
            if not local.is_file():
                raise NotFoundError(
                    f"source file does not exist: {spec.identifier}",
                    context={'source': spec.identifier}
                )

        converted = self.converter.convert(local, output_dir=self.work_dir)
        self._temp_files.append(converted)
        self._cache[spec.identifier] = converted
        return converted

    def cleanup(self) -> int:
        """
        Remove temporary files this resolver created and forget cached sources

        Returns:
            Number of files removed
        """
        removed = 0
        for path in self._temp_files:
            if path.exists():
                path.unlink()
                removed += 1
                self.logger.info(f"Cleaned up temporary file: {path}")
        self._temp_files.clear()
        self._cache.clear()
        return removed

    def close(self) -> None:
        self.fetcher.close()
