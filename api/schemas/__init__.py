"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import ErrorResponse, HealthCheckResponse
from api.schemas.company_schema import (
    CompanyCreate, CompanyUpdate, CompanyResponse, CompanyListResponse
)
from api.schemas.import_schema import ImportFailure, ImportResultResponse
from api.schemas.email_schema import EmailRequest, EmailDeliveryDetail, EmailResponse

__all__ = [
    # Common
    'ErrorResponse',
    'HealthCheckResponse',

    # Company
    'CompanyCreate',
    'CompanyUpdate',
    'CompanyResponse',
    'CompanyListResponse',

    # Import
    'ImportFailure',
    'ImportResultResponse',

    # Email
    'EmailRequest',
    'EmailDeliveryDetail',
    'EmailResponse',
]
