"""
Email Service - Templated email batches to stored companies.

This module resolves recipients through the storage contract, renders
the ``${company}``, ``${contact}`` and ``${email}`` placeholders for each
of them, and dispatches one message per recipient. Sends run
concurrently and each recipient's outcome is recorded on its own, so a
single failed delivery never cancels the others.
"""

import asyncio
import logging
import smtplib
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from email.message import EmailMessage
from email.utils import make_msgid, parseaddr
from typing import Any, Dict, Iterable, List, Optional

from services.storage_service import StorageBase

logger = logging.getLogger(__name__)

DEFAULT_SENDER = '"Business Data Manager" <no-reply@businessdata.com>'
DEFAULT_BROADCAST_LIMIT = 100

# Placeholder -> company field
PLACEHOLDERS = {
    '${company}': 'name',
    '${contact}': 'contact',
    '${email}': 'email',
}


class NoRecipientsError(Exception):
    """Raised when a batch resolves to an empty recipient list."""


@dataclass
class DeliveryResult:
    """Outcome of a single message."""

    company_id: int
    company: str
    email: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def render_template(content: str, company: Dict[str, Any]) -> str:
    """Replace every placeholder with the company's field value."""
    for placeholder, field_name in PLACEHOLDERS.items():
        content = content.replace(placeholder, str(company.get(field_name, '')))
    return content


class Mailer(ABC):
    """Transport that delivers a single message."""

    @abstractmethod
    def send(self, message: EmailMessage) -> str:
        """
        Deliver a message.

        Returns:
            The message's Message-ID
        """


class SMTPMailer(Mailer):
    """Delivers messages through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 30.0
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, message: EmailMessage) -> str:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or '')
            smtp.send_message(message)

        logger.debug(f"Sent {message['Message-ID']} to {message['To']} via {self.host}")
        return message['Message-ID']


class OutboxMailer(Mailer):
    """
    Keeps messages in memory instead of delivering them.

    Used in development and tests as a disposable mailbox.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.outbox: List[EmailMessage] = []

    def send(self, message: EmailMessage) -> str:
        with self._lock:
            self.outbox.append(message)
        logger.info(f"Captured message {message['Message-ID']} to {message['To']}")
        return message['Message-ID']


class EmailService:
    """
    Framework-agnostic batch email service.

    Recipients are either an explicit list of company ids or, when no
    selection is given, the first ``broadcast_limit`` companies.
    """

    def __init__(
        self,
        storage: StorageBase,
        mailer: Mailer,
        sender: str = DEFAULT_SENDER,
        broadcast_limit: int = DEFAULT_BROADCAST_LIMIT
    ):
        """
        Initialize email service.

        Args:
            storage: Storage implementation used to resolve recipients
            mailer: Transport for individual messages
            sender: From header for every message
            broadcast_limit: Maximum recipients when sending to all companies
        """
        self.storage = storage
        self.mailer = mailer
        self.sender = sender
        self.broadcast_limit = broadcast_limit

    def resolve_recipients(
        self,
        send_to_selected: bool = False,
        company_ids: Optional[Iterable[int]] = None
    ) -> List[Dict[str, Any]]:
        """
        Look up the companies a batch goes to.

        Ids that no longer resolve are skipped silently; repeated ids are
        sent to once.
        """
        company_ids = list(company_ids or [])

        if send_to_selected and company_ids:
            recipients = []
            seen = set()
            for company_id in company_ids:
                if company_id in seen:
                    continue
                seen.add(company_id)

                company = self.storage.get_company(company_id)
                if company is None:
                    logger.debug(f"Skipping unknown company id {company_id}")
                    continue
                recipients.append(company)
            return recipients

        return self.storage.get_companies(1, self.broadcast_limit).items

    def build_message(self, subject: str, content: str, company: Dict[str, Any]) -> EmailMessage:
        """Render the template for one company and wrap it in a message."""
        body = render_template(content, company)
        domain = parseaddr(self.sender)[1].partition('@')[2] or None

        message = EmailMessage()
        message['From'] = self.sender
        message['To'] = company['email']
        message['Subject'] = subject
        message['Message-ID'] = make_msgid(domain=domain)
        message.set_content(body)
        message.add_alternative(body.replace('\n', '<br>\n'), subtype='html')
        return message

    async def send_batch(
        self,
        subject: str,
        content: str,
        send_to_selected: bool = False,
        company_ids: Optional[Iterable[int]] = None,
        template: Optional[str] = None
    ) -> List[DeliveryResult]:
        """
        Send one message per resolved recipient.

        Args:
            subject: Subject line shared by all messages
            content: Body template with placeholders
            send_to_selected: Send only to ``company_ids``
            company_ids: Explicit recipient company ids
            template: Name of the template the content came from (logged only)

        Returns:
            One DeliveryResult per recipient, in recipient order

        Raises:
            NoRecipientsError: If no recipient could be resolved
        """
        recipients = self.resolve_recipients(send_to_selected, company_ids)
        if not recipients:
            raise NoRecipientsError("No companies to send emails to")

        logger.info(f"Sending '{subject}' (template: {template or 'custom'}) "
                    f"to {len(recipients)} companies")

        async def deliver(company):
            # A recipient whose fields cannot form a message fails alone
            message = self.build_message(subject, content, company)
            return await asyncio.to_thread(self.mailer.send, message)

        outcomes = await asyncio.gather(
            *(deliver(company) for company in recipients),
            return_exceptions=True
        )

        results = []
        for company, outcome in zip(recipients, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"Failed to send to {company['email']} "
                             f"(company {company['id']}): {outcome}")
                results.append(DeliveryResult(
                    company_id=company['id'],
                    company=company['name'],
                    email=company['email'],
                    success=False,
                    error=str(outcome)
                ))
            else:
                results.append(DeliveryResult(
                    company_id=company['id'],
                    company=company['name'],
                    email=company['email'],
                    success=True,
                    message_id=outcome
                ))

        sent = sum(1 for r in results if r.success)
        logger.info(f"Batch '{subject}' finished: {sent} sent, {len(results) - sent} failed")
        return results

    def send(self, *args, **kwargs) -> List[DeliveryResult]:
        """Blocking wrapper around send_batch for non-async callers."""
        return asyncio.run(self.send_batch(*args, **kwargs))
