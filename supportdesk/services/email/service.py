"""Tenant email inbox: inbound records, replies and outbound sends."""

from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from uuid import uuid4

import structlog

from supportdesk.core.exceptions import ConfigurationError, EmailNotFound
from supportdesk.core.timeutils import local_midnight_utc, utcnow
from supportdesk.models import (
    EmailPage,
    EmailRecord,
    EmailReply,
    EmailStats,
    EmailStatus,
    InboundEmail,
    OutgoingEmail,
    Pagination,
)
from supportdesk.services.email.transport import EmailTransport
from supportdesk.storage.base import StorageBackend

logger = structlog.get_logger()


def reply_subject(subject: str) -> str:
    return subject if subject.startswith("Re:") else f"Re: {subject}"


class EmailService:
    """Stores a tenant's emails and sends mail through an ``EmailTransport``.

    Deleting only marks an email DELETED; deleted emails are hidden from
    lookups and listings but the row is kept.
    """

    def __init__(
        self,
        storage: StorageBackend,
        transport: EmailTransport | None = None,
        from_email: str = "support@supportdesk.local",
        from_name: str = "SupportDesk",
    ) -> None:
        self.storage = storage
        self.transport = transport
        self.from_email = from_email
        self.from_name = from_name

    async def receive_email(self, tenant_id: str, data: InboundEmail) -> EmailRecord:
        """Record an email delivered to the tenant as unread."""
        email = EmailRecord(
            id=str(uuid4()),
            tenant_id=tenant_id,
            subject=data.subject,
            body=data.body,
            html_body=data.html_body,
            from_email=data.from_email,
            from_name=data.from_name,
            to_email=data.to_email,
            to_name=data.to_name,
            cc_emails=list(data.cc),
            status=EmailStatus.RECEIVED,
            priority=data.priority,
            message_id=data.message_id,
            thread_id=data.thread_id or data.in_reply_to or data.message_id,
            in_reply_to=data.in_reply_to,
            attachments=data.attachments,
        )
        await self.storage.save_email(email)

        logger.info("Email received", tenant_id=tenant_id, email_id=email.id)
        return email

    async def send_email(
        self,
        tenant_id: str,
        data: OutgoingEmail,
        in_reply_to: EmailRecord | None = None,
    ) -> EmailRecord:
        """Deliver an email and keep a SENT copy.

        Raises:
            ConfigurationError: No transport is configured.
            EmailDeliveryError: The transport failed to deliver.
        """
        if self.transport is None:
            raise ConfigurationError("Email transport not configured")

        message = self._build_message(data, in_reply_to)
        message_id = await self.transport.send(message)

        email = EmailRecord(
            id=str(uuid4()),
            tenant_id=tenant_id,
            subject=data.subject,
            body=data.body,
            html_body=data.html_body,
            from_email=self.from_email,
            from_name=self.from_name,
            to_email=data.to,
            to_name=data.to_name,
            cc_emails=list(data.cc),
            bcc_emails=list(data.bcc),
            status=EmailStatus.SENT,
            message_id=message_id,
            attachments=data.attachments,
        )
        if in_reply_to is not None:
            email.priority = in_reply_to.priority
            email.in_reply_to = in_reply_to.message_id
            email.thread_id = in_reply_to.thread_id or in_reply_to.message_id
        await self.storage.save_email(email)

        logger.info("Email sent", tenant_id=tenant_id, email_id=email.id, message_id=message_id)
        return email

    async def get_emails(self, tenant_id: str, page: int = 1, limit: int = 20) -> EmailPage:
        """List emails newest first, deleted ones excluded."""
        emails, total = await self.storage.list_emails(
            tenant_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return EmailPage(emails=emails, pagination=Pagination.build(page, limit, total))

    async def get_email(self, email_id: str, tenant_id: str) -> EmailRecord:
        """Open an email. A RECEIVED email becomes READ.

        Raises:
            EmailNotFound: If the email is deleted or belongs to another tenant.
        """
        email = await self._get_email(email_id, tenant_id)

        if email.status == EmailStatus.RECEIVED:
            await self.storage.set_email_status(email_id, EmailStatus.READ)
            email.status = EmailStatus.READ
            email.updated_at = utcnow()

        return email

    async def reply_to_email(
        self,
        email_id: str,
        tenant_id: str,
        reply: EmailReply,
    ) -> EmailRecord:
        """Answer the sender of an email and mark the original REPLIED.

        Returns the stored copy of the reply.
        """
        original = await self.get_email(email_id, tenant_id)

        sent = await self.send_email(
            tenant_id,
            OutgoingEmail(
                to=original.from_email,
                to_name=original.from_name,
                subject=reply_subject(original.subject),
                **reply.model_dump(),
            ),
            in_reply_to=original,
        )
        await self.storage.set_email_status(email_id, EmailStatus.REPLIED)

        logger.info("Email replied", email_id=email_id, reply_id=sent.id)
        return sent

    async def archive_email(self, email_id: str, tenant_id: str) -> EmailRecord:
        email = await self._get_email(email_id, tenant_id)

        await self.storage.set_email_status(email_id, EmailStatus.ARCHIVED)
        email.status = EmailStatus.ARCHIVED
        email.updated_at = utcnow()

        logger.info("Email archived", email_id=email_id)
        return email

    async def delete_email(self, email_id: str, tenant_id: str) -> None:
        await self._get_email(email_id, tenant_id)
        await self.storage.set_email_status(email_id, EmailStatus.DELETED)

        logger.info("Email deleted", email_id=email_id)

    async def get_email_stats(self, tenant_id: str) -> EmailStats:
        count = self.storage.count_emails
        return EmailStats(
            total=await count(tenant_id),
            unread=await count(tenant_id, status=EmailStatus.RECEIVED),
            replied=await count(tenant_id, status=EmailStatus.REPLIED),
            archived=await count(tenant_id, status=EmailStatus.ARCHIVED),
            today_count=await count(tenant_id, created_since=local_midnight_utc()),
        )

    async def _get_email(self, email_id: str, tenant_id: str) -> EmailRecord:
        email = await self.storage.get_email(email_id, tenant_id)
        if email is None or email.status == EmailStatus.DELETED:
            raise EmailNotFound(email_id)
        return email

    def _build_message(self, data: OutgoingEmail, in_reply_to: EmailRecord | None) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.from_email))
        message["To"] = formataddr((data.to_name or "", data.to))
        if data.cc:
            message["Cc"] = ", ".join(data.cc)
        if data.bcc:
            message["Bcc"] = ", ".join(data.bcc)
        message["Subject"] = data.subject
        message["Message-ID"] = make_msgid(domain=self.from_email.rpartition("@")[2] or None)
        if in_reply_to is not None and in_reply_to.message_id:
            message["In-Reply-To"] = in_reply_to.message_id
            message["References"] = in_reply_to.message_id

        message.set_content(data.body)
        if data.html_body:
            message.add_alternative(data.html_body, subtype="html")
        return message
