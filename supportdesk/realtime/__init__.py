"""Real-time messaging over Socket.IO."""

from supportdesk.realtime.gateway import MessagingGateway
from supportdesk.realtime.sessions import ConnectionRegistry, ConnectionSession

__all__ = ["MessagingGateway", "ConnectionRegistry", "ConnectionSession"]
