"""
Validation Service - Normalization of imported company rows.

This module turns raw spreadsheet rows into company records: it maps
header aliases onto company fields, coerces cell values to the types the
storage layer expects, fills defaults, and rejects rows that lack the
required identifying fields.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

# Fields a row must carry to be accepted
REQUIRED_FIELDS = ('name', 'contact', 'email')

# Compacted header (lowercase, no spaces/underscores/hyphens) -> company field
HEADER_ALIASES = {
    'name': 'name',
    'company': 'name',
    'companyname': 'name',
    'contact': 'contact',
    'contactname': 'contact',
    'contactperson': 'contact',
    'email': 'email',
    'emailaddress': 'email',
    'phone': 'phone',
    'phonenumber': 'phone',
    'industry': 'industry',
    'sector': 'industry',
    'location': 'location',
    'address': 'location',
    'employees': 'employees',
    'employeecount': 'employees',
    'employeenumber': 'employees',
    'numberofemployees': 'employees',
    'revenue': 'revenue',
    'annualrevenue': 'revenue',
    'status': 'status',
    'companystatus': 'status',
    'lastcontact': 'last_contact',
    'lastcontacted': 'last_contact',
    'lastcontactdate': 'last_contact',
}

# Values used when an optional field is missing or blank
DEFAULT_VALUES = {
    'phone': 'N/A',
    'industry': 'Other',
    'location': 'Unknown',
    'employees': 0,
    'revenue': 'Unknown',
    'status': 'New',
}

_HEADER_NOISE = re.compile(r'[\s_\-]+')


def normalize_header(header: Any) -> Optional[str]:
    """
    Map a spreadsheet header onto a company field name.

    Returns:
        Company field name, or None for unknown/blank headers
    """
    if header is None:
        return None
    compact = _HEADER_NOISE.sub('', str(header)).lower()
    return HEADER_ALIASES.get(compact)


def cell_to_text(value: Any) -> str:
    """
    Render a cell value as text.

    Whole floats lose their trailing ``.0`` (phone numbers stored as
    numbers), dates render as ISO dates.
    """
    if value is None:
        return ''
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def parse_employees(value: Any) -> int:
    """
    Coerce an employee count cell to a non-negative integer.

    Numeric cells are used as-is (truncated), text is parsed as an
    integer, anything unparseable becomes 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)

    text = cell_to_text(value).replace(',', '')
    match = re.match(r'^[+-]?\d+', text)
    if not match:
        return 0
    return max(int(match.group(0)), 0)


class CompanyRecordValidator:
    """
    Framework-agnostic normalizer for imported rows.

    Keeps simple counters so the import service can report how many rows
    were accepted and skipped.
    """

    def __init__(self, today: Optional[Callable[[], date]] = None):
        """
        Initialize validator.

        Args:
            today: Callable returning the date used for a missing last-contact
                   value (default: date.today)
        """
        self.today = today or date.today
        self.stats = {
            'rows_processed': 0,
            'rows_accepted': 0,
            'rows_skipped': 0,
        }

    def map_headers(self, headers: Sequence[Any]) -> List[Optional[str]]:
        """Normalize a header row; unknown columns map to None."""
        mapped = [normalize_header(h) for h in headers]
        unknown = [str(h) for h, m in zip(headers, mapped) if m is None and h not in (None, '')]
        if unknown:
            logger.debug(f"Ignoring unknown columns: {unknown}")
        return mapped

    def map_row(self, fields: Sequence[Optional[str]], values: Sequence[Any]) -> Dict[str, Any]:
        """
        Pair cell values with mapped field names.

        When a field appears in several columns the first non-blank value wins.
        """
        record: Dict[str, Any] = {}
        for field_name, value in zip(fields, values):
            if field_name is None:
                continue
            if field_name == 'employees':
                if value is None or cell_to_text(value) == '':
                    continue
                record.setdefault(field_name, parse_employees(value))
            else:
                text = cell_to_text(value)
                if text:
                    record.setdefault(field_name, text)
        return record

    def build_record(self, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Validate a mapped row and fill defaults.

        Returns:
            Complete company record, or None if a required field is blank
        """
        self.stats['rows_processed'] += 1

        if not all(record.get(name) for name in REQUIRED_FIELDS):
            self.stats['rows_skipped'] += 1
            logger.debug(f"Skipping row without name/contact/email: {record}")
            return None

        company = dict(DEFAULT_VALUES)
        company['last_contact'] = self.today().isoformat()
        company.update(record)

        self.stats['rows_accepted'] += 1
        return company

    def build_records(self, rows: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
        """
        Turn a header row followed by data rows into company records.

        Args:
            rows: First element is the header row, the rest are data rows

        Returns:
            Accepted company records in input order
        """
        self.stats = dict.fromkeys(self.stats, 0)

        if not rows:
            return []

        fields = self.map_headers(rows[0])
        companies = []

        for values in rows[1:]:
            if not values or all(cell_to_text(v) == '' for v in values):
                continue
            company = self.build_record(self.map_row(fields, values))
            if company is not None:
                companies.append(company)

        logger.info(f"Validated {self.stats['rows_processed']} rows: "
                    f"{self.stats['rows_accepted']} accepted, "
                    f"{self.stats['rows_skipped']} skipped")
        return companies
