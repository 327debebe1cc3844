"""
Storage Service - Company and user persistence contract.

This module defines the storage interface shared by the database-backed
and in-memory implementations, together with the result types and
error classes both of them use.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from backend.models.schema import COMPANY_FIELDS

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the storage engine rejects an operation."""


class DuplicateRecordError(StorageError):
    """Raised when a unique constraint (e.g. username) would be violated."""


@dataclass
class PageResult:
    """A window of companies plus the size of the set it was cut from."""

    items: List[Dict[str, Any]]
    total: int


@dataclass
class BulkInsertResult:
    """
    Outcome of a bulk insert.

    Every record is attempted independently, so a batch can partially
    succeed. ``failed`` holds ``{'index': int, 'error': str}`` entries
    referring to positions in the input list.
    """

    items: List[Dict[str, Any]] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return len(self.items)

    def __int__(self) -> int:
        return self.succeeded


def page_offset(page: int, page_size: int) -> int:
    """
    Calculate the window offset for a 1-indexed page.

    Raises:
        ValueError: If page or page_size is smaller than 1
    """
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return (page - 1) * page_size


def check_employees(value: Any) -> None:
    """
    Enforce the employee count rule the database expresses as a CHECK.

    Raises:
        StorageError: If the count is not a non-negative integer
    """
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise StorageError(f"employees must be a non-negative integer, got {value!r}")


def require_company_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Check that a new company carries every column and pick them out.

    Returns:
        Dictionary restricted to the known company columns

    Raises:
        StorageError: If a column is missing or None, or the employee
            count is invalid
    """
    missing = [name for name in COMPANY_FIELDS if data.get(name) is None]
    if missing:
        raise StorageError(f"Missing required company fields: {', '.join(missing)}")
    check_employees(data['employees'])
    return {name: data[name] for name in COMPANY_FIELDS}


def pick_company_updates(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only updatable company columns; the identifier is never updatable."""
    updates = {name: value for name, value in data.items() if name in COMPANY_FIELDS}
    if 'employees' in updates:
        check_employees(updates['employees'])
    return updates


class StorageBase(ABC):
    """
    Storage contract for companies and users.

    Both implementations return plain dictionaries detached from the
    store, order listings by descending identifier (newest first) and
    report deletes truthfully.
    """

    # Users

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        """Look up a user by identifier."""

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        """Look up a user by unique username."""

    @abstractmethod
    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a user.

        Raises:
            DuplicateRecordError: If the username is taken
        """

    # Companies

    @abstractmethod
    def get_companies(self, page: int, page_size: int) -> PageResult:
        """Return one page of all companies plus the global count."""

    @abstractmethod
    def get_company(self, company_id: int) -> Optional[Dict[str, Any]]:
        """Look up a company by identifier."""

    @abstractmethod
    def create_company(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Store a company and return it with its assigned identifier."""

    @abstractmethod
    def update_company(self, company_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge the supplied fields onto a company; None if it does not exist."""

    @abstractmethod
    def delete_company(self, company_id: int) -> bool:
        """Remove a company; returns whether a record was removed."""

    @abstractmethod
    def search_companies(self, query: str, page: int, page_size: int) -> PageResult:
        """
        Case-insensitive substring search over name, contact, email,
        industry and location. ``total`` is the size of the filtered set.
        """

    def create_many_companies(self, records: Iterable[Dict[str, Any]]) -> BulkInsertResult:
        """
        Insert records one by one in input order.

        A failing record is logged and reported in the result; it does not
        undo or stop the remaining inserts.
        """
        result = BulkInsertResult()

        for index, record in enumerate(records):
            try:
                result.items.append(self.create_company(record))
            except StorageError as e:
                logger.warning(f"Bulk insert: record {index} rejected: {e}")
                result.failed.append({'index': index, 'error': str(e)})

        logger.info(f"Bulk insert finished: {result.succeeded} inserted, "
                    f"{len(result.failed)} failed")
        return result
