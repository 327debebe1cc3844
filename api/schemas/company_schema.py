"""
Company-related Pydantic schemas.

Field names are snake_case in Python and camelCase on the wire
(``lastContact``, ``pageSize``).
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class CompanyCreate(BaseModel):
    """Request body for creating a company. Every field is required."""

    name: str = Field(..., min_length=1, description="Company name")
    contact: str = Field(..., min_length=1, description="Contact person")
    email: str = Field(..., min_length=1, description="Contact email address")
    phone: str = Field(..., min_length=1, description="Contact phone number")
    industry: str = Field(..., min_length=1, description="Industry or sector")
    location: str = Field(..., min_length=1, description="City, region or address")
    employees: int = Field(..., ge=0, description="Number of employees")
    revenue: str = Field(..., min_length=1, description="Revenue, free text")
    status: str = Field(..., min_length=1, description="Status label (Active, Pending, Inactive, New)")
    last_contact: str = Field(..., min_length=1, description="Date of last contact (YYYY-MM-DD)")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "name": "Acme Inc.",
                "contact": "John Smith",
                "email": "john@acmeinc.com",
                "phone": "+1 (555) 123-4567",
                "industry": "Technology",
                "location": "San Francisco, CA",
                "employees": 250,
                "revenue": "$25M",
                "status": "Active",
                "lastContact": "2023-08-15"
            }
        }


class CompanyUpdate(BaseModel):
    """
    Request body for a partial update.

    Omitted fields keep their stored value; explicit nulls are rejected.
    """

    name: Optional[str] = Field(None, min_length=1)
    contact: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = Field(None, min_length=1)
    industry: Optional[str] = Field(None, min_length=1)
    location: Optional[str] = Field(None, min_length=1)
    employees: Optional[int] = Field(None, ge=0)
    revenue: Optional[str] = Field(None, min_length=1)
    status: Optional[str] = Field(None, min_length=1)
    last_contact: Optional[str] = Field(None, min_length=1)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "status": "Inactive",
                "lastContact": "2023-09-01"
            }
        }

    @field_validator('*', mode='before')
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field may be omitted but not null")
        return value


class CompanyResponse(BaseModel):
    """A stored company."""

    id: int = Field(..., description="Company ID")
    name: str
    contact: str
    email: str
    phone: str
    industry: str
    location: str
    employees: int
    revenue: str
    status: str
    last_contact: str

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class CompanyListResponse(BaseModel):
    """Paginated company list response."""

    companies: List[CompanyResponse] = Field(..., description="Companies in current page")
    total: int = Field(..., description="Total number of matching companies")
    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., description="Items per page")
    total_pages: int = Field(..., description="Total number of pages")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
