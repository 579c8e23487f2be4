"""Per-connection session records for the messaging gateway."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from supportdesk.core.timeutils import utcnow


def tenant_room(tenant_id: str) -> str:
    return f"tenant:{tenant_id}"


def conversation_room(conversation_id: str) -> str:
    return f"conversation:{conversation_id}"


@dataclass
class ConnectionSession:
    """State of one Socket.IO connection."""

    sid: str
    tenant_id: str
    user_id: str | None = None
    conversations: set[str] = field(default_factory=set)
    connected_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "sid": self.sid,
            "tenant_id": self.tenant_id,
            "user_id": self.user_id,
            "conversations": sorted(self.conversations),
            "connected_at": self.connected_at.isoformat(),
        }


class ConnectionRegistry:
    """Sessions keyed by sid.

    Each session is only changed by its own connection's events, all of
    which run on the event loop, so no lock is needed.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ConnectionSession] = {}

    def open(self, sid: str, tenant_id: str, user_id: str | None = None) -> ConnectionSession:
        session = ConnectionSession(sid=sid, tenant_id=tenant_id, user_id=user_id)
        self._sessions[sid] = session
        return session

    def get(self, sid: str) -> ConnectionSession | None:
        return self._sessions.get(sid)

    def join(self, sid: str, conversation_id: str) -> ConnectionSession | None:
        session = self._sessions.get(sid)
        if session is not None:
            session.conversations.add(conversation_id)
        return session

    def leave(self, sid: str, conversation_id: str) -> ConnectionSession | None:
        session = self._sessions.get(sid)
        if session is not None:
            session.conversations.discard(conversation_id)
        return session

    def close(self, sid: str) -> ConnectionSession | None:
        return self._sessions.pop(sid, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, sid: object) -> bool:
        return sid in self._sessions
