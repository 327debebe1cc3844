"""
Dependency injection utilities for FastAPI.

This module provides reusable dependencies for database sessions,
the configured storage backend, and the import/email services.
"""

import functools
import logging
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from fastapi import Depends, HTTPException, status

from api.config import settings
from services.database_storage import DatabaseStorage
from services.email_service import EmailService, Mailer, OutboxMailer, SMTPMailer
from services.excel_import_service import CompanyImportService
from services.memory_storage import MemoryStorage
from services.storage_service import StorageBase

logger = logging.getLogger(__name__)


@functools.lru_cache()
def get_engine() -> Engine:
    """
    Get SQLAlchemy engine (cached).

    Created lazily so the in-memory backend never needs a database driver.
    """
    kwargs = {'pool_pre_ping': settings.DB_POOL_PRE_PING, 'echo': settings.DEBUG}
    if not settings.DATABASE_URL.startswith('sqlite'):
        kwargs.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
    return create_engine(settings.DATABASE_URL, **kwargs)


@functools.lru_cache()
def get_sessionmaker() -> sessionmaker:
    """Get session factory (cached)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Get database session dependency.

    Yields database session and ensures it's closed after use.
    """
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()


@functools.lru_cache()
def get_memory_storage() -> MemoryStorage:
    """Process-wide in-memory store (shared by all requests)."""
    logger.info("Using in-memory storage backend")
    return MemoryStorage(seed=settings.SEED_SAMPLE_DATA)


def get_storage() -> Generator[StorageBase, None, None]:
    """
    Get the configured storage backend.

    The database backend gets a fresh session per request; the memory
    backend is a process-wide singleton.
    """
    if settings.STORAGE_BACKEND == 'memory':
        yield get_memory_storage()
        return

    db = get_sessionmaker()()
    try:
        yield DatabaseStorage(db)
    finally:
        db.close()


@functools.lru_cache()
def get_mailer() -> Mailer:
    """Get the configured mail transport (cached)."""
    if settings.MAIL_BACKEND == 'smtp':
        return SMTPMailer(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT
        )

    logger.info("Using outbox mailer - messages are captured, not delivered")
    return OutboxMailer()


def get_import_service(storage: StorageBase = Depends(get_storage)) -> CompanyImportService:
    """Import service bound to the request's storage."""
    return CompanyImportService(storage, allowed_extensions=settings.ALLOWED_EXTENSIONS)


def get_email_service(
    storage: StorageBase = Depends(get_storage),
    mailer: Mailer = Depends(get_mailer)
) -> EmailService:
    """Email service bound to the request's storage."""
    return EmailService(
        storage,
        mailer,
        sender=settings.MAIL_FROM,
        broadcast_limit=settings.EMAIL_BROADCAST_LIMIT
    )


def verify_file_size(file_size: int) -> bool:
    """
    Verify uploaded file size is within limit.

    Args:
        file_size: File size in bytes

    Returns:
        True if size is acceptable

    Raises:
        HTTPException: If file is too large
    """
    max_size_bytes = settings.MAX_FILE_SIZE_MB * 1024 * 1024

    if file_size > max_size_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size ({file_size / 1024 / 1024:.1f} MB) exceeds maximum allowed "
                   f"({settings.MAX_FILE_SIZE_MB} MB)"
        )

    return True
