"""
Email router - Send templated email batches.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_email_service
from api.schemas.email_schema import EmailRequest, EmailResponse, EmailDeliveryDetail
from services.email_service import EmailService, NoRecipientsError

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=['email'])


@router.post('/send-email', response_model=EmailResponse)
async def send_email(
    payload: EmailRequest,
    service: EmailService = Depends(get_email_service)
):
    """
    Send one email per recipient company.

    With `sendToSelected` and `companyIds` the batch goes to those
    companies (unknown ids are skipped); otherwise it goes to the first
    page of all companies. `${company}`, `${contact}` and `${email}` in
    the content are replaced per recipient.

    A failed delivery is reported in `details` and does not stop the
    other messages.

    **Example:**
    ```bash
    curl -X POST http://localhost:8000/api/send-email \\
         -H "Content-Type: application/json" \\
         -d '{"subject": "Hi", "template": "custom", "content": "Hello ${contact}",
              "sendToSelected": true, "companyIds": [1, 2]}'
    ```
    """
    try:
        results = await service.send_batch(
            subject=payload.subject,
            content=payload.content,
            send_to_selected=bool(payload.send_to_selected),
            company_ids=payload.company_ids,
            template=payload.template
        )
    except NoRecipientsError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    sent = sum(1 for r in results if r.success)

    return EmailResponse(
        message=f"Emails sent to {sent} companies",
        sent=sent,
        failed=len(results) - sent,
        details=[EmailDeliveryDetail(**r.to_dict()) for r in results]
    )
