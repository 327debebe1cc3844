"""
Import-related Pydantic schemas.

This module contains schemas for spreadsheet import responses.
"""

from typing import List
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class ImportFailure(BaseModel):
    """A valid row that storage refused to insert."""

    index: int = Field(..., description="Position among the accepted rows")
    error: str = Field(..., description="Storage error message")


class ImportResultResponse(BaseModel):
    """Result of a spreadsheet import."""

    message: str = Field(..., description="Summary message")
    records_added: int = Field(..., description="Companies stored")
    rows_processed: int = Field(0, description="Data rows examined")
    rows_skipped: int = Field(0, description="Rows dropped for missing name, contact or email")
    failed: List[ImportFailure] = Field(default_factory=list, description="Rows rejected by storage")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "message": "Excel file imported successfully",
                "recordsAdded": 42,
                "rowsProcessed": 45,
                "rowsSkipped": 3,
                "failed": []
            }
        }
