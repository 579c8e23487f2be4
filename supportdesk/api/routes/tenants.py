"""Tenant (client) endpoints for operators."""

from fastapi import APIRouter, status

from supportdesk.api.dependencies import CurrentUserDep, TenantServiceDep
from supportdesk.models import Tenant, TenantCreate

router = APIRouter(prefix="/api/clients", tags=["Clients"])


@router.post("", response_model=Tenant, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    data: TenantCreate,
    user: CurrentUserDep,
    tenants: TenantServiceDep,
) -> Tenant:
    """Create a tenant owned by the calling operator."""
    return await tenants.create_tenant(user, data)


@router.get("", response_model=list[Tenant])
async def list_tenants(
    user: CurrentUserDep,
    tenants: TenantServiceDep,
) -> list[Tenant]:
    """List the calling operator's tenants."""
    return await tenants.list_tenants(user)


@router.get("/{tenant_id}", response_model=Tenant)
async def get_tenant(
    tenant_id: str,
    user: CurrentUserDep,
    tenants: TenantServiceDep,
) -> Tenant:
    return await tenants.get_tenant(tenant_id)
