"""Admin authorization shared by the organization-level services."""

from uuid import UUID

from ..domain.errors import UnauthorizedError
from ..domain.organizations import OrganizationErrors
from ..domain.ports import OrganizationRepository, UserRepository


class AdminPolicy:
    """Answers "may this user manage this organization?".

    Superadmins may manage every organization; everyone else needs an
    admin grant on the organization itself.
    """

    def __init__(self, users: UserRepository, organizations: OrganizationRepository):
        self._users = users
        self._organizations = organizations

    async def is_admin(self, user_id: UUID, organization_id: UUID) -> bool:
        if await self._users.is_superadmin(user_id):
            return True
        return await self._organizations.is_admin(user_id, organization_id)

    async def ensure_admin(self, user_id: UUID, organization_id: UUID) -> None:
        if not await self.is_admin(user_id, organization_id):
            raise UnauthorizedError(
                "You must be an administrator of this organization",
                OrganizationErrors.NOT_ADMIN,
            )
