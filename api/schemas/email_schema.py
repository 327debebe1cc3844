"""
Email-related Pydantic schemas.

This module contains schemas for batch email requests and their
per-recipient results.
"""

from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class EmailRequest(BaseModel):
    """Request to send a templated email batch."""

    subject: str = Field(..., min_length=1, description="Subject line")
    template: str = Field(..., description="Name of the template the content came from")
    content: str = Field(..., min_length=1, description="Body with ${company}, ${contact}, ${email} placeholders")
    send_to_selected: Optional[bool] = Field(False, description="Send only to companyIds")
    company_ids: Optional[List[int]] = Field(None, description="Selected recipient company ids")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "subject": "Following up",
                "template": "template1",
                "content": "Hello ${contact},\n\nI wanted to reach out to ${company}.",
                "sendToSelected": True,
                "companyIds": [1, 2]
            }
        }


class EmailDeliveryDetail(BaseModel):
    """Outcome for a single recipient."""

    company_id: int
    company: str
    email: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class EmailResponse(BaseModel):
    """Summary of a batch."""

    message: str = Field(..., description="Summary message")
    sent: int = Field(..., description="Messages dispatched")
    failed: int = Field(..., description="Messages that could not be dispatched")
    details: List[EmailDeliveryDetail] = Field(..., description="Per-recipient outcome")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
