"""Organization creation and lookups."""

import logging
from dataclasses import dataclass
from uuid import UUID

from ..domain.boards import Board
from ..domain.errors import DuplicateError, NotFoundError, ValidationError
from ..domain.organizations import (
    HierarchyTree,
    MembershipStatus,
    Organization,
    OrganizationErrors,
)
from ..domain.ports import (
    BoardRepository,
    MembershipRepository,
    OrganizationRepository,
    TransactionManager,
)
from ..domain.result import use_case
from .access import AdminPolicy
from .hierarchy import HierarchyResolver

logger = logging.getLogger(__name__)

DEFAULT_GENERAL_BOARD_NAME = "General"


@dataclass
class CreatedOrganization:
    organization: Organization
    general_board: Board


@dataclass
class OrganizationListing:
    organization: Organization
    member_count: int
    first_admin_id: UUID | None


@dataclass
class OrganizationDetails:
    """An organization as seen by one user."""
    organization: Organization
    member_count: int
    is_admin: bool
    membership_status: MembershipStatus | None


class OrganizationService:
    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        boards: BoardRepository,
        policy: AdminPolicy,
        hierarchy: HierarchyResolver,
        transactions: TransactionManager,
    ):
        self._organizations = organizations
        self._memberships = memberships
        self._boards = boards
        self._policy = policy
        self._hierarchy = hierarchy
        self._transactions = transactions

    @use_case
    async def create_organization(
        self,
        name: str,
        description: str,
        creator_id: UUID,
        parent_id: UUID | None = None,
        general_board_name: str = DEFAULT_GENERAL_BOARD_NAME,
    ) -> CreatedOrganization:
        """
        Create an organization with its general board.

        The creator is granted the admin role. Organization, admin grant and
        board are written in one transaction.
        """
        if name and await self._organizations.find_by_name(name.strip()) is not None:
            raise DuplicateError("Organization", "name", OrganizationErrors.NAME_EXISTS)

        if parent_id is not None:
            parent = await self._organizations.find_by_id(parent_id)
            if parent is None:
                raise NotFoundError("Organization", parent_id, OrganizationErrors.PARENT_NOT_FOUND)
            if parent.is_archived:
                raise ValidationError(
                    "Parent organization is archived", OrganizationErrors.PARENT_ARCHIVED
                )

        organization = Organization.create(name, description, creator_id, parent_id)
        board = Board.create(general_board_name, organization.id, is_general=True)

        async with self._transactions.atomic():
            organization = await self._organizations.save(organization)
            await self._organizations.add_admin(organization.id, creator_id)
            board = await self._boards.save(board)

        logger.info("Organization %s created by %s", organization.id, creator_id)
        return CreatedOrganization(organization=organization, general_board=board)

    @use_case
    async def get_organization(
        self, organization_id: UUID, viewer_id: UUID | None = None
    ) -> OrganizationDetails:
        organization = await self._organizations.find_by_id(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id, OrganizationErrors.NOT_FOUND)

        is_admin = False
        status = None
        if viewer_id is not None:
            is_admin = await self._policy.is_admin(viewer_id, organization_id)
            membership = await self._memberships.find(organization_id, viewer_id)
            status = membership.status if membership else None

        return OrganizationDetails(
            organization=organization,
            member_count=await self._organizations.count_members(organization_id),
            is_admin=is_admin,
            membership_status=status,
        )

    @use_case
    async def get_hierarchy_tree(self, organization_id: UUID) -> HierarchyTree:
        return await self._hierarchy.get_hierarchy_tree(organization_id)

    @use_case
    async def list_organizations(self) -> list[OrganizationListing]:
        """Every non-archived organization with its member count and first admin."""
        listings = []
        for organization in await self._organizations.find_all():
            admin_ids = await self._organizations.find_admin_user_ids(organization.id)
            listings.append(
                OrganizationListing(
                    organization=organization,
                    member_count=await self._organizations.count_members(organization.id),
                    first_admin_id=admin_ids[0] if admin_ids else None,
                )
            )
        return listings

    @use_case
    async def list_admin_organizations(self, user_id: UUID) -> list[Organization]:
        return await self._organizations.find_admin_organizations(user_id)

    @use_case
    async def list_user_organizations(self, user_id: UUID) -> list[Organization]:
        """Organizations where the user is an accepted member."""
        ids = await self._memberships.find_member_organization_ids(user_id)
        return await self._organizations.find_by_ids(ids)
