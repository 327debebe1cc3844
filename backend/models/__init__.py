"""Models package for the business contact manager."""
from backend.models.schema import Base, Company, User, COMPANY_FIELDS, SEARCHABLE_FIELDS

__all__ = ['Base', 'Company', 'User', 'COMPANY_FIELDS', 'SEARCHABLE_FIELDS']
