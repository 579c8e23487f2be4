"""Tenant (client) management."""

from uuid import uuid4

import structlog

from supportdesk.core.exceptions import TenantNotFound
from supportdesk.models import Tenant, TenantCreate, UserPublic
from supportdesk.storage.base import StorageBackend

logger = structlog.get_logger()


class TenantService:
    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def create_tenant(
        self,
        owner: UserPublic,
        data: TenantCreate,
        tenant_id: str | None = None,
    ) -> Tenant:
        tenant = Tenant(
            id=tenant_id or str(uuid4()),
            user_id=owner.id,
            **data.model_dump(),
        )
        await self.storage.save_tenant(tenant)

        logger.info("Created tenant", tenant_id=tenant.id, owner_id=owner.id)
        return tenant

    async def list_tenants(self, owner: UserPublic) -> list[Tenant]:
        return await self.storage.list_tenants(user_id=owner.id)

    async def get_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self.storage.get_tenant(tenant_id)
        if tenant is None:
            raise TenantNotFound(tenant_id)
        return tenant
