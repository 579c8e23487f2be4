"""Knowledge base management for tenants."""

from uuid import uuid4

import structlog

from supportdesk.core.exceptions import KnowledgeNotFound
from supportdesk.core.timeutils import utcnow
from supportdesk.models import (
    KnowledgeCreate,
    KnowledgeItem,
    KnowledgeUpdate,
    Pagination,
)
from supportdesk.storage.base import StorageBackend

logger = structlog.get_logger()


class KnowledgeService:
    """CRUD over knowledge items. Deletion only clears ``is_active``."""

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def add_knowledge(self, tenant_id: str, data: KnowledgeCreate) -> KnowledgeItem:
        item = KnowledgeItem(
            id=str(uuid4()),
            tenant_id=tenant_id,
            **data.model_dump(),
        )
        await self.storage.save_knowledge_item(item)

        logger.info("Knowledge added", tenant_id=tenant_id, title=item.title)
        return item

    async def get_knowledge(self, tenant_id: str) -> list[KnowledgeItem]:
        """Active items for a tenant, newest first."""
        return await self.storage.list_knowledge(tenant_id, active_only=True)

    async def get_knowledge_page(
        self,
        tenant_id: str,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[KnowledgeItem], Pagination]:
        items = await self.get_knowledge(tenant_id)
        start = (page - 1) * limit
        return items[start:start + limit], Pagination.build(page, limit, len(items))

    async def update_knowledge(
        self,
        knowledge_id: str,
        tenant_id: str,
        updates: KnowledgeUpdate,
    ) -> KnowledgeItem:
        """Apply the non-empty fields of ``updates``.

        Raises:
            KnowledgeNotFound: If the item does not belong to the tenant.
        """
        item = await self._get_item(knowledge_id, tenant_id)

        for field, value in updates.model_dump().items():
            if value:
                setattr(item, field, value)
        item.updated_at = utcnow()
        await self.storage.save_knowledge_item(item)

        logger.info("Knowledge updated", knowledge_id=knowledge_id)
        return item

    async def delete_knowledge(self, knowledge_id: str, tenant_id: str) -> None:
        """Deactivate an item; the row is kept."""
        item = await self._get_item(knowledge_id, tenant_id)

        item.is_active = False
        item.updated_at = utcnow()
        await self.storage.save_knowledge_item(item)

        logger.info("Knowledge deactivated", knowledge_id=knowledge_id)

    async def _get_item(self, knowledge_id: str, tenant_id: str) -> KnowledgeItem:
        item = await self.storage.get_knowledge_item(knowledge_id, tenant_id)
        if item is None:
            raise KnowledgeNotFound(knowledge_id)
        return item
