"""Employee invitation repository."""

from datetime import datetime

from sqlalchemy import select

from hrms_api.models.orm.invitation import EmployeeInvitationORM
from hrms_api.repositories.base import BaseRepository


class InvitationRepository(BaseRepository[EmployeeInvitationORM]):
    """Repository for onboarding invitations."""

    model = EmployeeInvitationORM

    async def get_by_token(self, token: str) -> EmployeeInvitationORM | None:
        """Get invitation by its URL token."""
        return await self.get_by("token", token)

    async def list_by_status(
        self,
        status: str,
        invited_before: datetime | None = None,
    ) -> list[EmployeeInvitationORM]:
        """Get invitations in a status, oldest first.

        Args:
            status: Invitation status
            invited_before: Only invitations sent before this instant

        Returns:
            List of invitations
        """
        query = select(EmployeeInvitationORM).where(EmployeeInvitationORM.status == status)
        if invited_before is not None:
            query = query.where(EmployeeInvitationORM.invited_at < invited_before)
        result = await self.session.execute(query.order_by(EmployeeInvitationORM.invited_at))
        return list(result.scalars().all())
