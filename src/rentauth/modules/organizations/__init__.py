"""Organizations, their members and registered applications."""

from rentauth.modules.organizations.repos import OrganizationRepository


__all__ = ["OrganizationRepository"]
