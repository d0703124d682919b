"""Board management: create, archive and manage the member roster."""

import logging
from uuid import UUID

from ..domain.boards import Board, BoardErrors
from ..domain.errors import DuplicateError, NotFoundError, ValidationError
from ..domain.organizations import MembershipStatus, OrganizationErrors
from ..domain.ports import BoardRepository, MembershipRepository, OrganizationRepository
from ..domain.result import use_case
from .access import AdminPolicy

logger = logging.getLogger(__name__)


class BoardService:
    def __init__(
        self,
        boards: BoardRepository,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        policy: AdminPolicy,
    ):
        self._boards = boards
        self._organizations = organizations
        self._memberships = memberships
        self._policy = policy

    async def _get_board_or_raise(self, board_id: UUID) -> Board:
        board = await self._boards.find_by_id(board_id)
        if board is None:
            raise NotFoundError("Board", board_id, BoardErrors.NOT_FOUND)
        return board

    @use_case
    async def create_board(self, organization_id: UUID, admin_user_id: UUID, name: str) -> Board:
        await self._policy.ensure_admin(admin_user_id, organization_id)

        organization = await self._organizations.find_by_id(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id, OrganizationErrors.NOT_FOUND)
        if organization.is_archived:
            raise ValidationError("Organization is archived", OrganizationErrors.ARCHIVED)

        board = await self._boards.save(Board.create(name, organization_id))
        logger.info("Board %s created in organization %s", board.id, organization_id)
        return board

    @use_case
    async def archive_board(self, board_id: UUID, admin_user_id: UUID) -> Board:
        """Archive a board. The general board cannot be archived."""
        board = await self._get_board_or_raise(board_id)
        await self._policy.ensure_admin(admin_user_id, board.organization_id)

        board.archive()
        board = await self._boards.save(board)
        logger.info("Board %s archived by %s", board.id, admin_user_id)
        return board

    @use_case
    async def add_member(self, board_id: UUID, user_id: UUID, admin_user_id: UUID) -> None:
        board = await self._get_board_or_raise(board_id)
        if board.is_archived:
            raise ValidationError("Board is archived", BoardErrors.BOARD_ARCHIVED)
        await self._policy.ensure_admin(admin_user_id, board.organization_id)

        if board.is_general:
            membership = await self._memberships.find(board.organization_id, user_id)
            if membership is None or membership.status != MembershipStatus.MEMBER:
                raise ValidationError(
                    "User is not a member of the organization", BoardErrors.USER_NOT_ORG_MEMBER
                )

        if await self._boards.is_member(board_id, user_id):
            raise DuplicateError("Board member", "user", BoardErrors.ALREADY_MEMBER)

        await self._boards.add_member(board_id, user_id, admin_user_id)
        logger.info("User %s added to board %s", user_id, board_id)

    @use_case
    async def remove_member(
        self,
        board_id: UUID,
        user_id: UUID,
        admin_user_id: UUID,
        reason: str | None = None,
    ) -> None:
        board = await self._get_board_or_raise(board_id)
        if board.is_archived:
            raise ValidationError("Board is archived", BoardErrors.BOARD_ARCHIVED)
        await self._policy.ensure_admin(admin_user_id, board.organization_id)

        if not await self._boards.is_member(board_id, user_id):
            raise NotFoundError("Board member", user_id, BoardErrors.NOT_MEMBER)

        await self._boards.remove_member(board_id, user_id, admin_user_id, reason)
        logger.info("User %s removed from board %s", user_id, board_id)

    @use_case
    async def list_boards(self, organization_id: UUID) -> list[Board]:
        return await self._boards.find_by_organization(organization_id)
