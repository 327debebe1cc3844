"""
Pytest configuration and fixtures for the business contact manager tests.
"""

import io
import os
import struct
from datetime import date, datetime

# Configure the application before anything imports api.config
os.environ.setdefault('STORAGE_BACKEND', 'memory')
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('MAIL_BACKEND', 'outbox')
os.environ['LOG_FILE'] = os.devnull

import openpyxl
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.models.schema import Base
from services.database_storage import DatabaseStorage
from services.email_service import OutboxMailer
from services.memory_storage import MemoryStorage

EXCEL_EPOCH = datetime(1899, 12, 30)


def make_company(**overrides):
    """Build a complete company record."""
    company = {
        'name': 'Acme Inc.',
        'contact': 'John Smith',
        'email': 'john@acmeinc.com',
        'phone': '+1 (555) 123-4567',
        'industry': 'Technology',
        'location': 'San Francisco, CA',
        'employees': 250,
        'revenue': '$25M',
        'status': 'Active',
        'last_contact': '2023-08-15',
    }
    company.update(overrides)
    return company


def make_xlsx(rows):
    """Write rows into the first sheet of an in-memory workbook."""
    wb = openpyxl.Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def biff_record(code, data=b''):
    return struct.pack('<HH', code, len(data)) + data


def make_xls(rows, sheet_name='Sheet1'):
    """
    Write rows into a minimal BIFF8 workbook stream.

    Only what xlrd needs to read cell values is emitted: a globals block
    with two cell formats (General and the built-in ``m/d/yy`` date) and
    one worksheet. Strings become LABEL records, booleans BOOLERR, numbers
    and dates NUMBER; None leaves the cell empty.
    """
    def bof(stream_type):
        return biff_record(0x0809, struct.pack('<HHHHII', 0x0600, stream_type, 0x0DBB, 1996, 0, 6))

    def xf(format_key):
        return biff_record(0x00E0, struct.pack('<HHHBBBBIiH', 0, format_key, 0, 0, 0, 0, 0, 0, 0, 0))

    eof = biff_record(0x000A)

    cells = []
    for rowx, row in enumerate(rows):
        for colx, value in enumerate(row):
            if value is None:
                continue
            if isinstance(value, bool):
                cells.append(biff_record(0x0205, struct.pack('<HHHBB', rowx, colx, 0, int(value), 0)))
            elif isinstance(value, (date, datetime)):
                if not isinstance(value, datetime):
                    value = datetime.combine(value, datetime.min.time())
                serial = (value - EXCEL_EPOCH).total_seconds() / 86400
                cells.append(biff_record(0x0203, struct.pack('<HHHd', rowx, colx, 1, serial)))
            elif isinstance(value, (int, float)):
                cells.append(biff_record(0x0203, struct.pack('<HHHd', rowx, colx, 0, value)))
            else:
                text = str(value)
                cells.append(biff_record(
                    0x0204,
                    struct.pack('<HHHHB', rowx, colx, 0, len(text), 1) + text.encode('utf-16-le')
                ))

    head = bof(0x0005) + biff_record(0x0042, struct.pack('<H', 1200)) + xf(0) + xf(14)
    name = sheet_name.encode('latin-1')
    boundsheet_size = 4 + 6 + 2 + len(name)
    sheet_offset = len(head) + boundsheet_size + len(eof)
    boundsheet = biff_record(
        0x0085, struct.pack('<iBBBB', sheet_offset, 0, 0, len(name), 0) + name
    )

    return head + boundsheet + eof + bof(0x0010) + b''.join(cells) + eof


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine shared across threads."""
    eng = create_engine(
        'sqlite://',
        poolclass=StaticPool,
        connect_args={'check_same_thread': False}
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture
def session(engine):
    """Create a new database session for a test."""
    Session = sessionmaker(bind=engine)
    sess = Session()

    yield sess

    sess.close()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def database_storage(session):
    return DatabaseStorage(session)


@pytest.fixture(params=['memory', 'database'])
def storage(request):
    """Every storage implementation, so contract tests run against both."""
    return request.getfixturevalue(f"{request.param}_storage")


@pytest.fixture
def outbox():
    return OutboxMailer()


@pytest.fixture
def client(memory_storage, outbox):
    """API client bound to a fresh memory store and a capturing mailer."""
    from api.dependencies import get_mailer, get_storage
    from api.main import app

    app.dependency_overrides[get_storage] = lambda: memory_storage
    app.dependency_overrides[get_mailer] = lambda: outbox

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
