"""Email service - tenant inbox records and outbound mail."""

from supportdesk.services.email.service import EmailService
from supportdesk.services.email.transport import EmailTransport, SMTPTransport

__all__ = ["EmailService", "EmailTransport", "SMTPTransport"]
