"""Organization repository implementing the organization directory."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from rentauth.core.directory import ApplicationRecord
from rentauth.modules.organizations.models import Application, OrganizationMember


def _parse_uuid(value: str) -> UUID | None:
    try:
        return UUID(value)
    except ValueError:
        return None


def to_application_record(application: Application) -> ApplicationRecord:
    return ApplicationRecord(
        client_id=application.client_id,
        organization_id=str(application.organization_id),
        client_secret_hash=application.client_secret_hash,
        name=application.name,
    )


class OrganizationRepository:
    """Repository for organization applications and memberships.

    Organization ids arrive from token claims and request bodies; ids that
    are not UUIDs match nothing.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_application(
        self, organization_id: str, client_id: str
    ) -> ApplicationRecord | None:
        org_id = _parse_uuid(organization_id)
        if org_id is None:
            return None
        result = await self.session.execute(
            select(Application).where(
                Application.organization_id == org_id,
                Application.client_id == client_id,
            )
        )
        application = result.scalar_one_or_none()
        return to_application_record(application) if application else None

    async def get_member_role(self, organization_id: str, email: str) -> str | None:
        org_id = _parse_uuid(organization_id)
        if org_id is None:
            return None
        result = await self.session.execute(
            select(OrganizationMember.role).where(
                OrganizationMember.organization_id == org_id,
                func.lower(OrganizationMember.email) == email.lower(),
            )
        )
        return result.scalar_one_or_none()

    async def register_application(
        self, organization_id: str, client_id: str, client_secret_hash: str, name: str
    ) -> ApplicationRecord:
        """Store a new application of an organization.

        Raises:
            ValueError: If the organization id is not a UUID
        """
        org_id = _parse_uuid(organization_id)
        if org_id is None:
            raise ValueError(f"invalid organization id: {organization_id!r}")
        application = Application(
            organization_id=org_id,
            client_id=client_id,
            client_secret_hash=client_secret_hash,
            name=name,
        )
        self.session.add(application)
        await self.session.flush()
        return to_application_record(application)
