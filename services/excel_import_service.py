"""
Excel Import Service - Framework-agnostic spreadsheet import.

This module reads uploaded spreadsheet bytes (.xlsx, .xls or .csv),
normalizes the first sheet into company records and stores them through
the storage contract.
"""

import csv
import io
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import openpyxl
import xlrd

from services.storage_service import StorageBase
from services.validation_service import CompanyRecordValidator

logger = logging.getLogger(__name__)

# Default configuration (can be overridden)
DEFAULT_ALLOWED_EXTENSIONS = ('.xlsx', '.xls', '.csv')
CSV_DELIMITERS = ',;\t|'


class CompanyImportError(Exception):
    """Base class for import failures."""


class UnsupportedFileTypeError(CompanyImportError):
    """Raised when the file extension is not an accepted spreadsheet type."""


class ImportFileError(CompanyImportError):
    """Raised when the uploaded bytes cannot be parsed (corrupt or unreadable file)."""


class NoValidRecordsError(CompanyImportError):
    """Raised when no row of the file yields a valid company."""


class SpreadsheetReader:
    """Reads the first sheet of a spreadsheet into a list of rows."""

    def read(self, content: bytes, extension: str) -> List[List[Any]]:
        """
        Parse spreadsheet bytes.

        Args:
            content: Raw file bytes
            extension: Lowercase file extension including the dot

        Returns:
            Rows of cell values; the first row holds the headers

        Raises:
            ImportFileError: If the bytes are empty or cannot be parsed
        """
        if not content:
            raise ImportFileError("File is empty")

        readers = {
            '.xlsx': self._read_xlsx,
            '.xls': self._read_xls,
            '.csv': self._read_csv,
        }

        try:
            rows = readers[extension](content)
        except ImportFileError:
            raise
        except Exception as e:
            logger.error(f"Failed to parse {extension} file: {e}")
            raise ImportFileError(f"Corrupt or unreadable {extension} file: {e}") from e

        logger.info(f"Read {len(rows)} rows from {extension} file")
        return rows

    def _read_xlsx(self, content: bytes) -> List[List[Any]]:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        try:
            if not wb.worksheets:
                raise ImportFileError("Workbook has no sheets")
            ws = wb.worksheets[0]
            return [list(row) for row in ws.iter_rows(values_only=True)]
        finally:
            wb.close()

    def _read_xls(self, content: bytes) -> List[List[Any]]:
        book = xlrd.open_workbook(file_contents=content)
        if book.nsheets == 0:
            raise ImportFileError("Workbook has no sheets")
        sheet = book.sheet_by_index(0)

        rows = []
        for row_idx in range(sheet.nrows):
            row = []
            for cell in sheet.row(row_idx):
                if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                    row.append(None)
                elif cell.ctype == xlrd.XL_CELL_DATE:
                    row.append(xlrd.xldate.xldate_as_datetime(cell.value, book.datemode))
                elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                    row.append(bool(cell.value))
                else:
                    row.append(cell.value)
            rows.append(row)
        return rows

    def _read_csv(self, content: bytes) -> List[List[Any]]:
        try:
            text = content.decode('utf-8-sig')
        except UnicodeDecodeError:
            logger.debug("CSV is not UTF-8, falling back to latin-1")
            text = content.decode('latin-1')

        try:
            dialect = csv.Sniffer().sniff(text[:4096], delimiters=CSV_DELIMITERS)
        except csv.Error:
            dialect = csv.excel

        return [row for row in csv.reader(io.StringIO(text), dialect)]


class CompanyImportService:
    """
    Framework-agnostic import service.

    Parses uploaded spreadsheets, validates rows and bulk-inserts the
    accepted companies. Rows without name, contact or email are skipped;
    records rejected by storage are reported without aborting the batch.
    """

    def __init__(
        self,
        storage: StorageBase,
        allowed_extensions: Sequence[str] = DEFAULT_ALLOWED_EXTENSIONS,
        progress_callback: Optional[Callable[[str, float, str], None]] = None,
        validator: Optional[CompanyRecordValidator] = None
    ):
        """
        Initialize import service.

        Args:
            storage: Storage implementation receiving the records
            allowed_extensions: Accepted file extensions (with leading dot)
            progress_callback: Optional callback for progress updates
                              Signature: callback(stage: str, percent: float, message: str)
            validator: Row validator (default: a fresh CompanyRecordValidator)
        """
        self.storage = storage
        self.allowed_extensions = {e.lower() for e in allowed_extensions}
        self.progress_callback = progress_callback or (lambda *args: None)
        self.validator = validator or CompanyRecordValidator()
        self.reader = SpreadsheetReader()

    def _emit_progress(self, stage: str, percent: float, message: str):
        """Emit progress update via callback."""
        self.progress_callback(stage, percent, message)
        logger.info(f"Import progress: {stage} ({percent:.1f}%) - {message}")

    def check_extension(self, filename: str) -> str:
        """
        Return the lowercase extension of an accepted file.

        Raises:
            UnsupportedFileTypeError: If the extension is not allowed
        """
        ext = Path(filename or '').suffix.lower()
        if ext not in self.allowed_extensions:
            raise UnsupportedFileTypeError(
                f"File extension '{ext}' not allowed. "
                f"Allowed extensions: {', '.join(sorted(self.allowed_extensions))}"
            )
        return ext

    def parse_file(self, content: bytes, filename: str) -> List[Dict[str, Any]]:
        """
        Parse and validate a spreadsheet without storing anything.

        Returns:
            Accepted company records

        Raises:
            UnsupportedFileTypeError: If the extension is not allowed
            ImportFileError: If the file cannot be parsed
            NoValidRecordsError: If no row yields a valid company
        """
        ext = self.check_extension(filename)

        self._emit_progress('parsing', 20, f"Reading {filename}")
        rows = self.reader.read(content, ext)

        self._emit_progress('validation', 60, f"Validating {max(len(rows) - 1, 0)} rows")
        companies = self.validator.build_records(rows)

        if not companies:
            raise NoValidRecordsError("No valid company data found in file")

        return companies

    def import_file(self, content: bytes, filename: str) -> Dict[str, Any]:
        """
        Import companies from spreadsheet bytes.

        Args:
            content: Raw uploaded bytes
            filename: Original filename (used to pick the parser)

        Returns:
            Import results dictionary:
            {
                'records_added': int,
                'rows_processed': int,
                'rows_skipped': int,
                'failed': [{'index': int, 'error': str}, ...],
                'companies': [dict, ...]
            }
        """
        logger.info(f"Starting import of {filename} ({len(content)} bytes)")

        companies = self.parse_file(content, filename)

        self._emit_progress('insertion', 80, f"Inserting {len(companies)} companies")
        result = self.storage.create_many_companies(companies)

        self._emit_progress('complete', 100, f"Imported {result.succeeded} companies")

        return {
            'records_added': result.succeeded,
            'rows_processed': self.validator.stats['rows_processed'],
            'rows_skipped': self.validator.stats['rows_skipped'],
            'failed': result.failed,
            'companies': result.items
        }
