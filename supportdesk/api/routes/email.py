"""Tenant email inbox endpoints."""

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from supportdesk.api.dependencies import CurrentUserDep, EmailServiceDep, TenantServiceDep
from supportdesk.models import (
    EmailPage,
    EmailRecord,
    EmailReply,
    EmailStats,
    InboundEmail,
    OutgoingEmail,
)

router = APIRouter(prefix="/api/email", tags=["Email"])


class DeleteResponse(BaseModel):
    message: str


@router.get("/{tenant_id}", response_model=EmailPage)
async def list_emails(
    tenant_id: str,
    user: CurrentUserDep,
    emails: EmailServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> EmailPage:
    return await emails.get_emails(tenant_id, page=page, limit=limit)


@router.get("/{tenant_id}/stats", response_model=EmailStats)
async def get_email_stats(
    tenant_id: str,
    user: CurrentUserDep,
    emails: EmailServiceDep,
) -> EmailStats:
    return await emails.get_email_stats(tenant_id)


@router.post("/{tenant_id}/inbound", response_model=EmailRecord, status_code=status.HTTP_201_CREATED)
async def receive_email(
    tenant_id: str,
    data: InboundEmail,
    user: CurrentUserDep,
    tenants: TenantServiceDep,
    emails: EmailServiceDep,
) -> EmailRecord:
    """Record an email that arrived at the tenant's support address."""
    await tenants.get_tenant(tenant_id)
    return await emails.receive_email(tenant_id, data)


@router.post("/{tenant_id}/send", response_model=EmailRecord, status_code=status.HTTP_201_CREATED)
async def send_email(
    tenant_id: str,
    data: OutgoingEmail,
    user: CurrentUserDep,
    tenants: TenantServiceDep,
    emails: EmailServiceDep,
) -> EmailRecord:
    await tenants.get_tenant(tenant_id)
    return await emails.send_email(tenant_id, data)


@router.get("/{tenant_id}/{email_id}", response_model=EmailRecord)
async def get_email(
    tenant_id: str,
    email_id: str,
    user: CurrentUserDep,
    emails: EmailServiceDep,
) -> EmailRecord:
    """Open an email, marking it read."""
    return await emails.get_email(email_id, tenant_id)


@router.post(
    "/{tenant_id}/{email_id}/reply",
    response_model=EmailRecord,
    status_code=status.HTTP_201_CREATED,
)
async def reply_to_email(
    tenant_id: str,
    email_id: str,
    data: EmailReply,
    user: CurrentUserDep,
    emails: EmailServiceDep,
) -> EmailRecord:
    return await emails.reply_to_email(email_id, tenant_id, data)


@router.post("/{tenant_id}/{email_id}/archive", response_model=EmailRecord)
async def archive_email(
    tenant_id: str,
    email_id: str,
    user: CurrentUserDep,
    emails: EmailServiceDep,
) -> EmailRecord:
    return await emails.archive_email(email_id, tenant_id)


@router.delete("/{tenant_id}/{email_id}", response_model=DeleteResponse)
async def delete_email(
    tenant_id: str,
    email_id: str,
    user: CurrentUserDep,
    emails: EmailServiceDep,
) -> DeleteResponse:
    await emails.delete_email(email_id, tenant_id)
    return DeleteResponse(message="Email deleted successfully")
