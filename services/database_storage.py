"""
Database Storage - Relational implementation of the storage contract.

Companies and users live in the ``companies`` and ``users`` tables.
Every mutating call commits its own transaction, so a failure in one
call never leaves a partial write visible.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.schema import Company, User, SEARCHABLE_FIELDS
from services.storage_service import (
    StorageBase, StorageError, DuplicateRecordError, PageResult,
    page_offset, require_company_fields, pick_company_updates
)

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the query is matched literally."""
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


class DatabaseStorage(StorageBase):
    """
    SQLAlchemy-backed storage.

    Read-modify-write sequences (update) are not wrapped in an explicit
    lock; concurrent requests rely on the engine's isolation level.
    """

    def __init__(self, db_session: Session):
        """
        Initialize database storage.

        Args:
            db_session: SQLAlchemy database session
        """
        self.session = db_session

    def _commit(self, action: str, conflict_error=StorageError):
        """Commit the current transaction, rolling back on failure."""
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.error(f"Integrity error while trying to {action}: {e}")
            raise conflict_error(f"Could not {action}: {e.orig}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error while trying to {action}: {e}")
            raise StorageError(f"Could not {action}: {e}") from e

    # Users

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        user = self.session.query(User).filter_by(id=user_id).first()
        return user.to_dict() if user else None

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        user = self.session.query(User).filter_by(username=username).first()
        return user.to_dict() if user else None

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        user = User(username=data['username'], password=data['password'])
        self.session.add(user)
        self._commit(f"create user '{data['username']}'", conflict_error=DuplicateRecordError)
        self.session.refresh(user)
        return user.to_dict()

    # Companies

    def _page(self, query, page: int, page_size: int) -> PageResult:
        offset = page_offset(page, page_size)
        total = query.count()

        companies = query.order_by(Company.id.desc())\
            .offset(offset)\
            .limit(page_size)\
            .all()

        return PageResult(items=[c.to_dict() for c in companies], total=total)

    def get_companies(self, page: int, page_size: int) -> PageResult:
        return self._page(self.session.query(Company), page, page_size)

    def get_company(self, company_id: int) -> Optional[Dict[str, Any]]:
        company = self.session.query(Company).filter_by(id=company_id).first()
        return company.to_dict() if company else None

    def create_company(self, data: Dict[str, Any]) -> Dict[str, Any]:
        company = Company(**require_company_fields(data))
        self.session.add(company)
        self._commit(f"create company '{data['name']}'")
        self.session.refresh(company)

        logger.debug(f"Created company {company.id}")
        return company.to_dict()

    def update_company(self, company_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        company = self.session.query(Company).filter_by(id=company_id).first()
        if not company:
            return None

        for key, value in pick_company_updates(data).items():
            setattr(company, key, value)

        self._commit(f"update company {company_id}")
        self.session.refresh(company)
        return company.to_dict()

    def delete_company(self, company_id: int) -> bool:
        deleted = self.session.query(Company).filter_by(id=company_id)\
            .delete(synchronize_session=False)
        self._commit(f"delete company {company_id}")

        if deleted:
            logger.debug(f"Deleted company {company_id}")
        return deleted > 0

    def search_companies(self, query: str, page: int, page_size: int) -> PageResult:
        pattern = f"%{_escape_like(query)}%"
        condition = or_(*[
            getattr(Company, name).ilike(pattern, escape='\\')
            for name in SEARCHABLE_FIELDS
        ])
        return self._page(self.session.query(Company).filter(condition), page, page_size)
