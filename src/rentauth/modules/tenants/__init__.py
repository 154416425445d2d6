"""Tenants (renters) and their contacts, read-only."""

from rentauth.modules.tenants.repos import TenantRepository


__all__ = ["TenantRepository"]
