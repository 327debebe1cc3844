"""
Memory Storage - Process-local implementation of the storage contract.

Records are kept in insertion-ordered dictionaries keyed by identifier.
Identifiers come from a monotonic counter that starts at 1 and is never
rewound, so ids are not reused after a delete. State is lost when the
process exits.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from backend.models.schema import SEARCHABLE_FIELDS
from services.storage_service import (
    StorageBase, DuplicateRecordError, PageResult,
    page_offset, require_company_fields, pick_company_updates
)

logger = logging.getLogger(__name__)

# Demo records loaded when seeding is enabled
SAMPLE_COMPANIES = [
    {
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
    },
    {
        'name': 'TechCorp',
        'contact': 'Jane Doe',
        'email': 'jane@techcorp.com',
        'phone': '+1 (555) 987-6543',
        'industry': 'Software',
        'location': 'Austin, TX',
        'employees': 500,
        'revenue': '$50M',
        'status': 'Pending',
        'last_contact': '2023-08-10',
    },
    {
        'name': 'Global Industries',
        'contact': 'Michael Johnson',
        'email': 'michael@globalind.com',
        'phone': '+1 (555) 222-3333',
        'industry': 'Manufacturing',
        'location': 'Chicago, IL',
        'employees': 1200,
        'revenue': '$120M',
        'status': 'Inactive',
        'last_contact': '2023-07-22',
    },
]


class MemoryStorage(StorageBase):
    """
    In-memory storage guarded by a re-entrant lock.

    Safe to share between request handlers running in different threads.
    """

    def __init__(self, seed: bool = False):
        """
        Initialize memory storage.

        Args:
            seed: Load the sample companies on creation
        """
        self._lock = threading.RLock()
        self._companies: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
        self._users: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
        self._next_company_id = 1
        self._next_user_id = 1

        if seed:
            self.create_many_companies(SAMPLE_COMPANIES)
            logger.info(f"Seeded memory storage with {len(SAMPLE_COMPANIES)} sample companies")

    # Users

    def get_user(self, user_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            user = self._users.get(user_id)
            return dict(user) if user else None

    def get_user_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            for user in self._users.values():
                if user['username'] == username:
                    return dict(user)
            return None

    def create_user(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            if self.get_user_by_username(data['username']) is not None:
                raise DuplicateRecordError(f"Username '{data['username']}' already exists")

            user = {
                'id': self._next_user_id,
                'username': data['username'],
                'password': data['password'],
            }
            self._users[user['id']] = user
            self._next_user_id += 1
            return dict(user)

    # Companies

    def _page(self, companies: List[Dict[str, Any]], page: int, page_size: int) -> PageResult:
        offset = page_offset(page, page_size)
        newest_first = sorted(companies, key=lambda c: c['id'], reverse=True)
        window = newest_first[offset:offset + page_size]
        return PageResult(items=[dict(c) for c in window], total=len(companies))

    def get_companies(self, page: int, page_size: int) -> PageResult:
        with self._lock:
            return self._page(list(self._companies.values()), page, page_size)

    def get_company(self, company_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            company = self._companies.get(company_id)
            return dict(company) if company else None

    def create_company(self, data: Dict[str, Any]) -> Dict[str, Any]:
        fields = require_company_fields(data)

        with self._lock:
            company = {'id': self._next_company_id, **fields}
            self._companies[company['id']] = company
            self._next_company_id += 1

            logger.debug(f"Created company {company['id']}")
            return dict(company)

    def update_company(self, company_id: int, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            company = self._companies.get(company_id)
            if company is None:
                return None

            company.update(pick_company_updates(data))
            return dict(company)

    def delete_company(self, company_id: int) -> bool:
        with self._lock:
            removed = self._companies.pop(company_id, None)

        if removed is not None:
            logger.debug(f"Deleted company {company_id}")
        return removed is not None

    def search_companies(self, query: str, page: int, page_size: int) -> PageResult:
        needle = query.lower()

        with self._lock:
            matches = [
                company for company in self._companies.values()
                if any(needle in str(company[name]).lower() for name in SEARCHABLE_FIELDS)
            ]
            return self._page(matches, page, page_size)
