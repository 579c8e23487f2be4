"""Tests for the tenant email inbox."""

import smtplib
from email.message import EmailMessage
from unittest.mock import MagicMock

import pytest

from supportdesk.core.exceptions import ConfigurationError, EmailDeliveryError, EmailNotFound
from supportdesk.models import (
    ConversationPriority,
    EmailReply,
    EmailStatus,
    InboundEmail,
    OutgoingEmail,
)
from supportdesk.services.email import EmailService, SMTPTransport
from supportdesk.services.email import transport as transport_module


def inbound(subject: str = "Invoice question", **kwargs) -> InboundEmail:
    return InboundEmail(
        from_email="maria@example.com",
        from_name="Maria",
        to_email="help@test.com",
        subject=subject,
        body="Where is my invoice?",
        **kwargs,
    )


def sent_message(email_transport) -> EmailMessage:
    return email_transport.send.call_args.args[0]


@pytest.mark.asyncio
async def test_receive_and_open_marks_read(emails, storage, demo_tenant):
    email = await emails.receive_email(demo_tenant.id, inbound())
    assert email.status == EmailStatus.RECEIVED

    opened = await emails.get_email(email.id, demo_tenant.id)
    assert opened.status == EmailStatus.READ
    assert (await storage.get_email(email.id, demo_tenant.id)).status == EmailStatus.READ

    # Opening again does not change anything
    again = await emails.get_email(email.id, demo_tenant.id)
    assert again.status == EmailStatus.READ


@pytest.mark.asyncio
async def test_email_scoped_to_tenant(emails, demo_tenant, other_tenant):
    email = await emails.receive_email(demo_tenant.id, inbound())

    with pytest.raises(EmailNotFound):
        await emails.get_email(email.id, other_tenant.id)

    with pytest.raises(EmailNotFound):
        await emails.archive_email(email.id, other_tenant.id)

    assert (await emails.get_emails(other_tenant.id)).emails == []


@pytest.mark.asyncio
async def test_reply_to_email(emails, storage, email_transport, demo_tenant):
    original = await emails.receive_email(
        demo_tenant.id,
        inbound(message_id="<abc@example.com>", priority=ConversationPriority.HIGH),
    )

    reply = await emails.reply_to_email(original.id, demo_tenant.id, EmailReply(body="It is attached."))

    assert reply.status == EmailStatus.SENT
    assert reply.subject == "Re: Invoice question"
    assert reply.to_email == "maria@example.com"
    assert reply.to_name == "Maria"
    assert reply.from_email == "help@test.com"
    assert reply.message_id == "<sent-1@supportdesk.test>"
    assert reply.in_reply_to == "<abc@example.com>"
    assert reply.thread_id == "<abc@example.com>"
    assert reply.priority == ConversationPriority.HIGH

    message = sent_message(email_transport)
    assert message["To"] == "Maria <maria@example.com>"
    assert message["From"] == "Test Support <help@test.com>"
    assert message["Subject"] == "Re: Invoice question"
    assert message["In-Reply-To"] == "<abc@example.com>"
    assert message.get_content().strip() == "It is attached."

    stored = await storage.get_email(original.id, demo_tenant.id)
    assert stored.status == EmailStatus.REPLIED


@pytest.mark.asyncio
async def test_reply_keeps_existing_re_prefix(emails, demo_tenant):
    original = await emails.receive_email(demo_tenant.id, inbound(subject="Re: Invoice question"))

    reply = await emails.reply_to_email(original.id, demo_tenant.id, EmailReply(body="Done."))

    assert reply.subject == "Re: Invoice question"


@pytest.mark.asyncio
async def test_send_email(emails, email_transport, demo_tenant):
    email = await emails.send_email(
        demo_tenant.id,
        OutgoingEmail(
            to="joao@example.com",
            subject="Your ticket",
            body="Plain text",
            html_body="<p>Plain text</p>",
            cc=["boss@example.com"],
            bcc=["audit@example.com"],
        ),
    )

    assert email.status == EmailStatus.SENT
    assert email.cc_emails == ["boss@example.com"]
    assert email.bcc_emails == ["audit@example.com"]

    message = sent_message(email_transport)
    assert message["Cc"] == "boss@example.com"
    assert message["Bcc"] == "audit@example.com"
    assert message.is_multipart()

    page = await emails.get_emails(demo_tenant.id)
    assert [e.id for e in page.emails] == [email.id]


@pytest.mark.asyncio
async def test_send_without_transport(storage, demo_tenant):
    service = EmailService(storage)

    with pytest.raises(ConfigurationError):
        await service.send_email(
            demo_tenant.id,
            OutgoingEmail(to="joao@example.com", subject="Hi", body="Hello"),
        )

    assert (await service.get_emails(demo_tenant.id)).pagination.total == 0


@pytest.mark.asyncio
async def test_delete_is_soft(emails, storage, demo_tenant):
    email = await emails.receive_email(demo_tenant.id, inbound())

    await emails.delete_email(email.id, demo_tenant.id)

    assert (await emails.get_emails(demo_tenant.id)).emails == []
    with pytest.raises(EmailNotFound):
        await emails.get_email(email.id, demo_tenant.id)
    with pytest.raises(EmailNotFound):
        await emails.delete_email(email.id, demo_tenant.id)

    stored = await storage.get_email(email.id, demo_tenant.id)
    assert stored.status == EmailStatus.DELETED


@pytest.mark.asyncio
async def test_archive_keeps_email_listed(emails, demo_tenant):
    email = await emails.receive_email(demo_tenant.id, inbound())

    archived = await emails.archive_email(email.id, demo_tenant.id)

    assert archived.status == EmailStatus.ARCHIVED
    page = await emails.get_emails(demo_tenant.id)
    assert [e.status for e in page.emails] == [EmailStatus.ARCHIVED]


@pytest.mark.asyncio
async def test_listing_pagination(emails, demo_tenant):
    for i in range(3):
        await emails.receive_email(demo_tenant.id, inbound(subject=f"Question {i}"))

    page = await emails.get_emails(demo_tenant.id, page=2, limit=2)
    assert len(page.emails) == 1
    assert page.pagination.total == 3
    assert page.pagination.pages == 2


@pytest.mark.asyncio
async def test_email_stats(emails, demo_tenant, other_tenant):
    opened = await emails.receive_email(demo_tenant.id, inbound())
    answered = await emails.receive_email(demo_tenant.id, inbound())
    shelved = await emails.receive_email(demo_tenant.id, inbound())
    await emails.receive_email(demo_tenant.id, inbound())
    removed = await emails.receive_email(demo_tenant.id, inbound())
    await emails.receive_email(other_tenant.id, inbound())

    await emails.get_email(opened.id, demo_tenant.id)
    await emails.reply_to_email(answered.id, demo_tenant.id, EmailReply(body="Sent."))
    await emails.archive_email(shelved.id, demo_tenant.id)
    await emails.delete_email(removed.id, demo_tenant.id)

    stats = await emails.get_email_stats(demo_tenant.id)
    # Four received plus the sent reply; the deleted one is not counted
    assert stats.total == 5
    assert stats.unread == 1
    assert stats.replied == 1
    assert stats.archived == 1
    assert stats.today_count == 5


# ==================== SMTP Transport ====================


def build_message() -> EmailMessage:
    message = EmailMessage()
    message["From"] = "help@test.com"
    message["To"] = "maria@example.com"
    message["Subject"] = "Hi"
    message["Message-ID"] = "<m1@test.com>"
    message.set_content("Hello")
    return message


@pytest.mark.asyncio
async def test_smtp_transport_sends(monkeypatch):
    server = MagicMock()
    smtp = MagicMock()
    smtp.return_value.__enter__.return_value = server
    monkeypatch.setattr(transport_module.smtplib, "SMTP", smtp)

    transport = SMTPTransport("smtp.test.com", username="user", password="pass")
    message = build_message()

    assert await transport.send(message) == "<m1@test.com>"
    smtp.assert_called_once_with("smtp.test.com", 587, timeout=30.0)
    server.starttls.assert_called_once()
    server.login.assert_called_once_with("user", "pass")
    server.send_message.assert_called_once_with(message)


@pytest.mark.asyncio
async def test_smtp_transport_failure(monkeypatch):
    server = MagicMock()
    server.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
    smtp = MagicMock()
    smtp.return_value.__enter__.return_value = server
    monkeypatch.setattr(transport_module.smtplib, "SMTP", smtp)

    transport = SMTPTransport("smtp.test.com", use_tls=False)

    with pytest.raises(EmailDeliveryError):
        await transport.send(build_message())
    server.starttls.assert_not_called()
    server.login.assert_not_called()
