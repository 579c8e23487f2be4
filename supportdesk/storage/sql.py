"""SQLAlchemy storage backend for production."""

from datetime import datetime

import structlog
from sqlalchemy import delete, exists, func, or_, select, text, update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from supportdesk.core.timeutils import utcnow
from supportdesk.models import (
    Conversation,
    ConversationStatus,
    ConversationSummary,
    EmailRecord,
    EmailStatus,
    KnowledgeItem,
    Message,
    Tenant,
    User,
)
from supportdesk.storage.base import StorageBackend
from supportdesk.storage.tables import (
    Base,
    ConversationRow,
    EmailRow,
    KnowledgeRow,
    MessageRow,
    TenantRow,
    UserRow,
)

logger = structlog.get_logger()


def _like_pattern(search: str) -> str:
    """Build a LIKE pattern matching ``search`` literally."""
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLStorage(StorageBackend):
    """Relational storage over an async SQLAlchemy engine.

    Each operation runs in its own session and transaction. Pydantic
    models are built from rows before the session closes.
    """

    def __init__(
        self,
        database_url: str | None = None,
        engine: AsyncEngine | None = None,
        echo: bool = False,
    ) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("Either database_url or engine is required")
            engine = create_async_engine(database_url, echo=echo)
        self._engine = engine
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_all(self) -> None:
        """Create missing tables."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured", url=self._engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        await self._engine.dispose()

    def _session(self) -> AsyncSession:
        return self._session_factory()

    # ==================== User Operations ====================

    async def get_user(self, user_id: str) -> User | None:
        async with self._session() as session:
            row = await session.get(UserRow, user_id)
            return User.model_validate(row, from_attributes=True) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session() as session:
            row = await session.scalar(select(UserRow).where(UserRow.email == email))
            return User.model_validate(row, from_attributes=True) if row else None

    async def save_user(self, user: User) -> User:
        user.updated_at = utcnow()
        async with self._session() as session, session.begin():
            await session.merge(UserRow(**user.model_dump()))
        return user

    # ==================== Tenant Operations ====================

    async def get_tenant(self, tenant_id: str) -> Tenant | None:
        async with self._session() as session:
            row = await session.get(TenantRow, tenant_id)
            return Tenant.model_validate(row, from_attributes=True) if row else None

    async def save_tenant(self, tenant: Tenant) -> Tenant:
        tenant.updated_at = utcnow()
        async with self._session() as session, session.begin():
            await session.merge(TenantRow(**tenant.model_dump()))
        return tenant

    async def list_tenants(self, user_id: str | None = None) -> list[Tenant]:
        query = select(TenantRow).order_by(TenantRow.created_at)
        if user_id:
            query = query.where(TenantRow.user_id == user_id)
        async with self._session() as session:
            rows = (await session.scalars(query)).all()
            return [Tenant.model_validate(r, from_attributes=True) for r in rows]

    # ==================== Conversation Operations ====================

    async def get_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> Conversation | None:
        query = select(ConversationRow).where(ConversationRow.id == conversation_id)
        if tenant_id:
            query = query.where(ConversationRow.tenant_id == tenant_id)
        async with self._session() as session:
            row = await session.scalar(query)
            return Conversation.model_validate(row, from_attributes=True) if row else None

    async def save_conversation(self, conversation: Conversation) -> Conversation:
        conversation.updated_at = utcnow()
        async with self._session() as session, session.begin():
            await session.merge(ConversationRow(**conversation.model_dump()))
        return conversation

    async def touch_conversation(
        self,
        conversation_id: str,
        status: ConversationStatus,
        closed_at: datetime | None = None,
    ) -> bool:
        values = {"status": status, "updated_at": utcnow()}
        if closed_at is not None:
            values["closed_at"] = closed_at
        async with self._session() as session, session.begin():
            result = await session.execute(
                update(ConversationRow)
                .where(ConversationRow.id == conversation_id)
                .values(**values)
            )
        return result.rowcount > 0

    async def list_conversations(
        self,
        tenant_id: str,
        offset: int = 0,
        limit: int = 10,
        search: str | None = None,
    ) -> tuple[list[ConversationSummary], int]:
        filters = [ConversationRow.tenant_id == tenant_id]
        if search:
            pattern = _like_pattern(search)
            filters.append(
                or_(
                    ConversationRow.subject.ilike(pattern, escape="\\"),
                    exists().where(
                        MessageRow.conversation_id == ConversationRow.id,
                        MessageRow.content.ilike(pattern, escape="\\"),
                    ),
                )
            )

        async with self._session() as session:
            total = await session.scalar(
                select(func.count()).select_from(ConversationRow).where(*filters)
            )
            rows = (
                await session.scalars(
                    select(ConversationRow)
                    .where(*filters)
                    .order_by(ConversationRow.updated_at.desc())
                    .offset(offset)
                    .limit(limit)
                )
            ).all()

            ids = [row.id for row in rows]
            counts: dict[str, int] = {}
            if ids:
                count_rows = await session.execute(
                    select(MessageRow.conversation_id, func.count())
                    .where(MessageRow.conversation_id.in_(ids))
                    .group_by(MessageRow.conversation_id)
                )
                counts = {conversation_id: count for conversation_id, count in count_rows.all()}

            page = []
            for row in rows:
                last = await session.scalar(
                    select(MessageRow)
                    .where(MessageRow.conversation_id == row.id)
                    .order_by(MessageRow.created_at.desc())
                    .limit(1)
                )
                page.append(
                    ConversationSummary(
                        **Conversation.model_validate(row, from_attributes=True).model_dump(),
                        last_message=Message.model_validate(last, from_attributes=True) if last else None,
                        message_count=counts.get(row.id, 0),
                    )
                )

        return page, total or 0

    async def count_conversations(
        self,
        tenant_id: str,
        status: ConversationStatus | None = None,
        created_since: datetime | None = None,
    ) -> int:
        query = select(func.count()).select_from(ConversationRow).where(
            ConversationRow.tenant_id == tenant_id
        )
        if status:
            query = query.where(ConversationRow.status == status)
        if created_since:
            query = query.where(ConversationRow.created_at >= created_since)
        async with self._session() as session:
            return await session.scalar(query) or 0

    async def delete_conversation(
        self,
        conversation_id: str,
        tenant_id: str | None = None,
    ) -> bool:
        query = select(ConversationRow.id).where(ConversationRow.id == conversation_id)
        if tenant_id:
            query = query.where(ConversationRow.tenant_id == tenant_id)

        async with self._session() as session, session.begin():
            if await session.scalar(query) is None:
                return False
            await session.execute(delete(MessageRow).where(MessageRow.conversation_id == conversation_id))
            await session.execute(delete(ConversationRow).where(ConversationRow.id == conversation_id))
        return True

    # ==================== Message Operations ====================

    async def save_message(self, message: Message) -> Message:
        async with self._session() as session, session.begin():
            session.add(MessageRow(**message.model_dump()))
        return message

    async def get_messages(
        self,
        conversation_id: str,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Message], int]:
        async with self._session() as session:
            total = await session.scalar(
                select(func.count())
                .select_from(MessageRow)
                .where(MessageRow.conversation_id == conversation_id)
            )
            rows = (
                await session.scalars(
                    select(MessageRow)
                    .where(MessageRow.conversation_id == conversation_id)
                    .order_by(MessageRow.created_at.asc())
                    .offset(offset)
                    .limit(limit)
                )
            ).all()
            return [Message.model_validate(r, from_attributes=True) for r in rows], total or 0

    async def get_recent_messages(
        self,
        conversation_id: str,
        limit: int = 10,
    ) -> list[Message]:
        async with self._session() as session:
            rows = (
                await session.scalars(
                    select(MessageRow)
                    .where(MessageRow.conversation_id == conversation_id)
                    .order_by(MessageRow.created_at.desc())
                    .limit(limit)
                )
            ).all()
            messages = [Message.model_validate(r, from_attributes=True) for r in rows]
        # Reverse to get chronological order
        return list(reversed(messages))

    # ==================== Knowledge Operations ====================

    async def get_knowledge_item(
        self,
        knowledge_id: str,
        tenant_id: str,
    ) -> KnowledgeItem | None:
        async with self._session() as session:
            row = await session.scalar(
                select(KnowledgeRow).where(
                    KnowledgeRow.id == knowledge_id,
                    KnowledgeRow.tenant_id == tenant_id,
                )
            )
            return KnowledgeItem.model_validate(row, from_attributes=True) if row else None

    async def save_knowledge_item(self, item: KnowledgeItem) -> KnowledgeItem:
        async with self._session() as session, session.begin():
            await session.merge(KnowledgeRow(**item.model_dump()))
        return item

    async def list_knowledge(
        self,
        tenant_id: str,
        active_only: bool = True,
    ) -> list[KnowledgeItem]:
        query = select(KnowledgeRow).where(KnowledgeRow.tenant_id == tenant_id)
        if active_only:
            query = query.where(KnowledgeRow.is_active.is_(True))
        query = query.order_by(KnowledgeRow.created_at.desc())
        async with self._session() as session:
            rows = (await session.scalars(query)).all()
            return [KnowledgeItem.model_validate(r, from_attributes=True) for r in rows]

    # ==================== Email Operations ====================

    async def get_email(self, email_id: str, tenant_id: str) -> EmailRecord | None:
        async with self._session() as session:
            row = await session.scalar(
                select(EmailRow).where(EmailRow.id == email_id, EmailRow.tenant_id == tenant_id)
            )
            return EmailRecord.model_validate(row, from_attributes=True) if row else None

    async def save_email(self, email: EmailRecord) -> EmailRecord:
        email.updated_at = utcnow()
        async with self._session() as session, session.begin():
            await session.merge(EmailRow(**email.model_dump()))
        return email

    async def set_email_status(self, email_id: str, status: EmailStatus) -> bool:
        async with self._session() as session, session.begin():
            result = await session.execute(
                update(EmailRow)
                .where(EmailRow.id == email_id)
                .values(status=status, updated_at=utcnow())
            )
        return result.rowcount > 0

    async def list_emails(
        self,
        tenant_id: str,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[EmailRecord], int]:
        filters = [EmailRow.tenant_id == tenant_id, EmailRow.status != EmailStatus.DELETED]
        async with self._session() as session:
            total = await session.scalar(select(func.count()).select_from(EmailRow).where(*filters))
            rows = (
                await session.scalars(
                    select(EmailRow)
                    .where(*filters)
                    .order_by(EmailRow.created_at.desc())
                    .offset(offset)
                    .limit(limit)
                )
            ).all()
            return [EmailRecord.model_validate(r, from_attributes=True) for r in rows], total or 0

    async def count_emails(
        self,
        tenant_id: str,
        status: EmailStatus | None = None,
        created_since: datetime | None = None,
    ) -> int:
        query = select(func.count()).select_from(EmailRow).where(EmailRow.tenant_id == tenant_id)
        if status:
            query = query.where(EmailRow.status == status)
        else:
            query = query.where(EmailRow.status != EmailStatus.DELETED)
        if created_since:
            query = query.where(EmailRow.created_at >= created_since)
        async with self._session() as session:
            return await session.scalar(query) or 0

    # ==================== Health Check ====================

    async def health_check(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False
