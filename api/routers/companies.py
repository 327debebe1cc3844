"""
Companies router - CRUD operations for business contacts.

This module provides endpoints for listing, searching, creating,
updating and deleting companies.
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query

from api.config import settings
from api.dependencies import get_storage
from api.schemas.company_schema import (
    CompanyCreate, CompanyUpdate, CompanyResponse, CompanyListResponse
)
from services.storage_service import StorageBase, StorageError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/companies', tags=['companies'])


@router.get('', response_model=CompanyListResponse)
async def list_companies(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(
        settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE,
        alias='pageSize', description="Items per page"
    ),
    search: Optional[str] = Query(None, description="Search name, contact, email, industry and location"),
    storage: StorageBase = Depends(get_storage)
):
    """
    List companies with pagination and optional search.

    **Query Parameters:**
    - `page`: Page number (default: 1)
    - `pageSize`: Items per page (default: 10, max: 100)
    - `search`: Case-insensitive substring filter (optional)

    **Example:**
    ```bash
    curl "http://localhost:8000/api/companies?page=1&pageSize=20&search=acme"
    ```

    **Returns:**
    Paginated list of companies, newest first. `total` counts the
    filtered set when searching.
    """
    if search:
        result = storage.search_companies(search, page, page_size)
    else:
        result = storage.get_companies(page, page_size)

    # Calculate total pages
    total_pages = (result.total + page_size - 1) // page_size

    return CompanyListResponse(
        companies=[CompanyResponse.model_validate(c) for c in result.items],
        total=result.total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get('/{company_id}', response_model=CompanyResponse)
async def get_company(
    company_id: int,
    storage: StorageBase = Depends(get_storage)
):
    """
    Get a single company.

    **Example:**
    ```bash
    curl http://localhost:8000/api/companies/123
    ```
    """
    company = storage.get_company(company_id)

    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {company_id} not found"
        )

    return CompanyResponse.model_validate(company)


@router.post('', response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreate,
    storage: StorageBase = Depends(get_storage)
):
    """
    Create a company.

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/api/companies \\
         -H "Content-Type: application/json" \\
         -d '{"name": "Acme Inc.", "contact": "John Smith", ...}'
    ```
    """
    try:
        company = storage.create_company(payload.model_dump())
    except StorageError as e:
        logger.error(f"Failed to create company: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create company"
        )

    logger.info(f"Company {company['id']} created: {company['name']}")
    return CompanyResponse.model_validate(company)


@router.put('/{company_id}', response_model=CompanyResponse)
async def update_company(
    company_id: int,
    payload: CompanyUpdate,
    storage: StorageBase = Depends(get_storage)
):
    """
    Partially update a company.

    Only the fields present in the body change.

    **Example:**
    ```bash
    curl -X PUT http://localhost:8000/api/companies/123 \\
         -H "Content-Type: application/json" \\
         -d '{"status": "Inactive"}'
    ```
    """
    try:
        company = storage.update_company(company_id, payload.model_dump(exclude_unset=True))
    except StorageError as e:
        logger.error(f"Failed to update company {company_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update company"
        )

    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {company_id} not found"
        )

    return CompanyResponse.model_validate(company)


@router.delete('/{company_id}', status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: int,
    storage: StorageBase = Depends(get_storage)
):
    """
    Delete a company.

    **Warning:** This operation cannot be undone.

    **Returns:**
    - 204 No Content if the company was removed
    - 404 if it does not exist
    """
    if not storage.delete_company(company_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Company {company_id} not found"
        )

    logger.info(f"Company {company_id} deleted")

    return None  # 204 No Content
