"""
Import router - Handle spreadsheet uploads.

This module provides the endpoint that bulk-imports companies from an
uploaded .xlsx, .xls or .csv file.
"""

import logging
from typing import Optional

from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, status

from api.dependencies import get_import_service, verify_file_size
from api.schemas.import_schema import ImportResultResponse
from services.excel_import_service import (
    CompanyImportService, ImportFileError, NoValidRecordsError, UnsupportedFileTypeError
)
from services.storage_service import StorageError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/import', tags=['import'])


@router.post('', response_model=ImportResultResponse, status_code=status.HTTP_201_CREATED)
async def import_companies(
    file: Optional[UploadFile] = File(None, description="Spreadsheet to import (.xlsx, .xls or .csv)"),
    service: CompanyImportService = Depends(get_import_service)
):
    """
    Import companies from a spreadsheet.

    The first sheet is read, its first row is treated as headers and
    every following row becomes a company. Rows without a name, contact
    or email are skipped; missing optional fields get defaults.

    **Workflow:**
    1. Validate file type and size
    2. Parse the first sheet
    3. Normalize headers and validate rows
    4. Insert accepted rows (each independently)

    **Returns:**
    - 201 Created with the number of records added
    - 400 if no file was sent, the type is wrong or no row is valid
    - 500 if the file cannot be parsed
    """
    if file is None or not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file uploaded"
        )

    logger.info(f"Import request: {file.filename}")

    try:
        service.check_extension(file.filename)
    except UnsupportedFileTypeError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    # Multipart parsing records the size, so oversized uploads are refused unread
    if file.size is not None:
        verify_file_size(file.size)

    content = await file.read()
    verify_file_size(len(content))

    try:
        result = service.import_file(content, file.filename)

    except NoValidRecordsError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    except (ImportFileError, StorageError) as e:
        logger.error(f"Import of {file.filename} failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to import file: {e}"
        )

    if result['failed']:
        message = (f"Imported {result['records_added']} companies, "
                   f"{len(result['failed'])} rejected")
    else:
        message = "Excel file imported successfully"

    logger.info(f"Imported {result['records_added']} companies from {file.filename}")

    return ImportResultResponse(
        message=message,
        records_added=result['records_added'],
        rows_processed=result['rows_processed'],
        rows_skipped=result['rows_skipped'],
        failed=result['failed']
    )
