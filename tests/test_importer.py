"""
Tests for spreadsheet import functionality.

Tests cover header normalization, row validation, file parsing and
insertion through the storage contract.
"""

from datetime import date, datetime

import pytest

from conftest import make_xls, make_xlsx
from services.excel_import_service import (
    CompanyImportService, SpreadsheetReader,
    ImportFileError, NoValidRecordsError, UnsupportedFileTypeError
)
from services.storage_service import StorageError
from services.validation_service import (
    CompanyRecordValidator, DEFAULT_VALUES,
    normalize_header, cell_to_text, parse_employees
)

TODAY = date(2024, 1, 2)


@pytest.fixture
def validator():
    return CompanyRecordValidator(today=lambda: TODAY)


@pytest.fixture
def import_service(memory_storage, validator):
    return CompanyImportService(memory_storage, validator=validator)


class TestHeaderNormalization:
    """Test header alias mapping."""

    @pytest.mark.parametrize('header,field', [
        ('Name', 'name'),
        ('Company', 'name'),
        ('company name', 'name'),
        ('COMPANY_NAME', 'name'),
        ('Contact Person', 'contact'),
        ('contact name', 'contact'),
        ('E-mail Address', 'email'),
        ('Phone Number', 'phone'),
        ('Sector', 'industry'),
        ('Employee Count', 'employees'),
        ('Number of Employees', 'employees'),
        ('Annual Revenue', 'revenue'),
        ('Last Contacted', 'last_contact'),
        ('last contact date', 'last_contact'),
        ('lastContact', 'last_contact'),
    ])
    def test_known_aliases(self, header, field):
        assert normalize_header(header) == field

    @pytest.mark.parametrize('header', [None, '', 'Notes', 'Website'])
    def test_unknown_headers(self, header):
        assert normalize_header(header) is None


class TestCellCoercion:
    """Test conversion of raw cell values."""

    def test_cell_to_text(self):
        assert cell_to_text(None) == ''
        assert cell_to_text('  Acme  ') == 'Acme'
        assert cell_to_text(5551234567.0) == '5551234567'
        assert cell_to_text(2.5) == '2.5'
        assert cell_to_text(datetime(2023, 8, 15, 9, 30)) == '2023-08-15'
        assert cell_to_text(date(2023, 8, 15)) == '2023-08-15'

    @pytest.mark.parametrize('value,expected', [
        (250, 250),
        (250.9, 250),
        ('1200', 1200),
        ('1,200', 1200),
        ('  75 staff', 75),
        ('+30', 30),
        ('about fifty', 0),
        ('', 0),
        (None, 0),
        (-10, 0),
        ('-10', 0),
        (True, 0),
    ])
    def test_parse_employees(self, value, expected):
        assert parse_employees(value) == expected


class TestRecordValidator:
    """Test row validation and default filling."""

    def test_row_with_missing_name_is_dropped(self, validator):
        companies = validator.build_records([
            ['name', 'contact', 'email'],
            ['A', 'B', 'c@d.com'],
            ['', 'X', 'y@z.com'],
        ])

        assert len(companies) == 1
        assert companies[0] == {
            'name': 'A',
            'contact': 'B',
            'email': 'c@d.com',
            'phone': 'N/A',
            'industry': 'Other',
            'location': 'Unknown',
            'employees': 0,
            'revenue': 'Unknown',
            'status': 'New',
            'last_contact': '2024-01-02',
        }
        assert validator.stats == {'rows_processed': 2, 'rows_accepted': 1, 'rows_skipped': 1}

    def test_supplied_values_override_defaults(self, validator):
        companies = validator.build_records([
            ['Company', 'Contact Person', 'Email', 'Status', 'Employees', 'Last Contacted'],
            ['Acme', 'John', 'john@acme.com', 'Active', '40', datetime(2023, 8, 15)],
        ])

        assert companies[0]['status'] == 'Active'
        assert companies[0]['employees'] == 40
        assert companies[0]['last_contact'] == '2023-08-15'
        assert companies[0]['phone'] == DEFAULT_VALUES['phone']

    def test_first_non_blank_alias_wins(self, validator):
        companies = validator.build_records([
            ['Name', 'Company', 'Contact', 'Email'],
            ['', 'Acme', 'John', 'john@acme.com'],
            ['Globex', 'Ignored', 'Hank', 'hank@globex.com'],
        ])

        assert [c['name'] for c in companies] == ['Acme', 'Globex']

    def test_blank_rows_are_ignored(self, validator):
        companies = validator.build_records([
            ['Name', 'Contact', 'Email'],
            [None, None, None],
            [],
            ['Acme', 'John', 'john@acme.com'],
        ])

        assert len(companies) == 1
        assert validator.stats['rows_processed'] == 1

    def test_unknown_columns_are_ignored(self, validator):
        companies = validator.build_records([
            ['Name', 'Contact', 'Email', 'Website'],
            ['Acme', 'John', 'john@acme.com', 'acme.example'],
        ])

        assert 'website' not in companies[0]

    def test_header_only(self, validator):
        assert validator.build_records([['Name', 'Contact', 'Email']]) == []
        assert validator.build_records([]) == []


class TestSpreadsheetReader:
    """Test parsing of the supported formats."""

    def test_read_xlsx(self):
        content = make_xlsx([
            ['Name', 'Contact', 'Email'],
            ['Acme', 'John', 'john@acme.com'],
        ])

        rows = SpreadsheetReader().read(content, '.xlsx')

        assert rows[0] == ['Name', 'Contact', 'Email']
        assert rows[1] == ['Acme', 'John', 'john@acme.com']

    def test_read_csv(self):
        content = b"Name,Contact,Email\nAcme,John,john@acme.com\n"

        rows = SpreadsheetReader().read(content, '.csv')

        assert rows == [['Name', 'Contact', 'Email'], ['Acme', 'John', 'john@acme.com']]

    def test_read_semicolon_csv_with_bom(self):
        content = "\ufeffName;Contact;Email\nAcme;John;john@acme.com\nGlobex;Hank;hank@globex.com\n".encode('utf-8')

        rows = SpreadsheetReader().read(content, '.csv')

        assert rows[0] == ['Name', 'Contact', 'Email']
        assert rows[2] == ['Globex', 'Hank', 'hank@globex.com']

    def test_read_latin1_csv(self):
        content = "Name,Contact,Email\nCafé SA,Zoé,zoe@cafe.fr\n".encode('latin-1')

        rows = SpreadsheetReader().read(content, '.csv')

        assert rows[1][0] == 'Café SA'

    def test_read_xls(self):
        content = make_xls([
            ['Company', 'Contact Person', 'Email', 'Employees', 'Active', 'Last Contact', 'Notes'],
            ['Acme Inc.', 'John Smith', 'john@acmeinc.com', 250, True, datetime(2023, 8, 15), None],
            ['Globex', 'Hank Scorpio', 'hank@globex.com', None, False, date(2024, 1, 1), 'Call back'],
        ])

        rows = SpreadsheetReader().read(content, '.xls')

        assert len(rows) == 3
        assert rows[0] == ['Company', 'Contact Person', 'Email', 'Employees', 'Active',
                           'Last Contact', 'Notes']
        assert rows[1] == ['Acme Inc.', 'John Smith', 'john@acmeinc.com', 250, True,
                           datetime(2023, 8, 15), None]
        assert rows[2][3] is None
        assert rows[2][4] is False
        assert rows[2][5] == datetime(2024, 1, 1)
        assert rows[2][6] == 'Call back'

    @pytest.mark.parametrize('ext', ['.xlsx', '.xls'])
    def test_corrupt_workbook(self, ext):
        with pytest.raises(ImportFileError) as exc_info:
            SpreadsheetReader().read(b'this is not a spreadsheet', ext)
        assert 'Corrupt or unreadable' in str(exc_info.value)

    def test_empty_content(self):
        with pytest.raises(ImportFileError):
            SpreadsheetReader().read(b'', '.csv')


class TestCompanyImportService:
    """Test the end-to-end import workflow."""

    def test_import_xlsx(self, import_service, memory_storage):
        content = make_xlsx([
            ['name', 'contact', 'email'],
            ['A', 'B', 'c@d.com'],
            ['', 'X', 'y@z.com'],
        ])

        result = import_service.import_file(content, 'contacts.xlsx')

        assert result['records_added'] == 1
        assert result['rows_processed'] == 2
        assert result['rows_skipped'] == 1
        assert result['failed'] == []

        stored = memory_storage.get_companies(1, 10)
        assert stored.total == 1
        assert stored.items[0]['name'] == 'A'
        assert stored.items[0]['status'] == 'New'
        assert stored.items[0]['last_contact'] == '2024-01-02'

    def test_import_xls(self, import_service, memory_storage):
        content = make_xls([
            ['Company Name', 'Contact Person', 'Email', 'Employees', 'Phone', 'Last Contact'],
            ['Acme Inc.', 'John Smith', 'john@acmeinc.com', 250, 5550100, datetime(2023, 8, 15)],
            ['Globex', None, 'hank@globex.com', 10, None, None],
        ])

        result = import_service.import_file(content, 'contacts.xls')

        assert result['records_added'] == 1
        assert result['rows_skipped'] == 1

        company = memory_storage.get_companies(1, 10).items[0]
        assert company['name'] == 'Acme Inc.'
        assert company['employees'] == 250
        assert company['phone'] == '5550100'
        assert company['last_contact'] == '2023-08-15'

    def test_import_csv_into_database(self, database_storage, validator):
        service = CompanyImportService(database_storage, validator=validator)
        content = (
            b"Company Name,Contact Person,Email Address,Employee Count,Phone Number\n"
            b"Acme,John Smith,john@acme.com,250,555-0100\n"
            b"Globex,Hank Scorpio,hank@globex.com,many,555-0199\n"
        )

        result = service.import_file(content, 'contacts.CSV')

        assert result['records_added'] == 2
        companies = database_storage.get_companies(1, 10).items
        assert [c['name'] for c in companies] == ['Globex', 'Acme']
        assert companies[0]['employees'] == 0
        assert companies[1]['employees'] == 250
        assert companies[1]['phone'] == '555-0100'

    def test_unsupported_extension(self, import_service, memory_storage):
        with pytest.raises(UnsupportedFileTypeError):
            import_service.import_file(b'Name,Contact,Email\n', 'contacts.txt')
        assert memory_storage.get_companies(1, 10).total == 0

    def test_custom_allowed_extensions(self, memory_storage):
        service = CompanyImportService(memory_storage, allowed_extensions=['.CSV'])
        assert service.check_extension('list.csv') == '.csv'
        with pytest.raises(UnsupportedFileTypeError):
            service.check_extension('list.xlsx')

    def test_no_valid_rows(self, import_service, memory_storage):
        content = make_xlsx([
            ['Name', 'Contact', 'Email'],
            ['Acme', '', 'john@acme.com'],
            ['', 'Jane', 'jane@example.com'],
        ])

        with pytest.raises(NoValidRecordsError) as exc_info:
            import_service.import_file(content, 'contacts.xlsx')

        assert 'No valid company data found' in str(exc_info.value)
        assert memory_storage.get_companies(1, 10).total == 0

    def test_corrupt_file(self, import_service):
        with pytest.raises(ImportFileError):
            import_service.import_file(b'\x00\x01garbage', 'contacts.xlsx')

    def test_storage_rejections_are_reported(self, database_storage, validator, monkeypatch):
        service = CompanyImportService(database_storage, validator=validator)
        content = make_xlsx([
            ['Name', 'Contact', 'Email', 'Employees'],
            ['Acme', 'John', 'john@acme.com', 10],
            ['Globex', 'Hank', 'hank@globex.com', 20],
        ])

        original = database_storage.create_company

        def flaky_create(data):
            if data['name'] == 'Globex':
                raise StorageError("constraint violated")
            return original(data)

        monkeypatch.setattr(database_storage, 'create_company', flaky_create)

        result = service.import_file(content, 'contacts.xlsx')

        assert result['records_added'] == 1
        assert result['failed'][0]['index'] == 1
        assert database_storage.get_companies(1, 10).total == 1

    def test_progress_callback(self, memory_storage, validator):
        stages = []
        service = CompanyImportService(
            memory_storage,
            validator=validator,
            progress_callback=lambda stage, percent, message: stages.append((stage, percent))
        )

        service.import_file(b"Name,Contact,Email\nAcme,John,john@acme.com\n", 'c.csv')

        assert [s for s, _ in stages] == ['parsing', 'validation', 'insertion', 'complete']
        assert stages[-1][1] == 100
