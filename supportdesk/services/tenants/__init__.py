"""Tenant service - client accounts owned by operators."""

from supportdesk.services.tenants.service import TenantService

__all__ = ["TenantService"]
