"""SQLAlchemy board repository."""

import logging
from uuid import UUID

from sqlalchemy import delete, exists, select

from .. import models
from ..domain.boards import Board
from ..domain.ports import BoardRepository
from .base import SqlAlchemyRepository

logger = logging.getLogger(__name__)


def _to_board(row: models.Board) -> Board:
    return Board(
        id=row.id,
        name=row.name,
        organization_id=row.organization_id,
        is_general=row.is_general,
        created_at=row.created_at,
        archived_at=row.archived_at,
    )


class SqlAlchemyBoardRepository(SqlAlchemyRepository, BoardRepository):
    async def find_by_id(self, board_id: UUID) -> Board | None:
        row = await self._session.get(models.Board, board_id)
        return _to_board(row) if row else None

    async def save(self, board: Board) -> Board:
        row = await self._session.merge(
            models.Board(
                id=board.id,
                name=board.name,
                organization_id=board.organization_id,
                is_general=board.is_general,
                created_at=board.created_at,
                archived_at=board.archived_at,
            )
        )
        await self._session.flush()
        return _to_board(row)

    async def find_by_organization(self, organization_id: UUID) -> list[Board]:
        # General board first, then oldest first
        result = await self._session.execute(
            select(models.Board)
            .where(models.Board.organization_id == organization_id)
            .order_by(models.Board.is_general.desc(), models.Board.created_at)
        )
        return [_to_board(row) for row in result.scalars()]

    async def is_member(self, board_id: UUID, user_id: UUID) -> bool:
        result = await self._session.execute(
            select(
                exists().where(
                    models.BoardMember.board_id == board_id,
                    models.BoardMember.user_id == user_id,
                )
            )
        )
        return bool(result.scalar())

    async def add_member(self, board_id: UUID, user_id: UUID, added_by_id: UUID) -> None:
        self._session.add(
            models.BoardMember(board_id=board_id, user_id=user_id, added_by_id=added_by_id)
        )
        await self._session.flush()

    async def remove_member(
        self, board_id: UUID, user_id: UUID, removed_by_id: UUID, reason: str | None = None
    ) -> None:
        await self._session.execute(
            delete(models.BoardMember).where(
                models.BoardMember.board_id == board_id,
                models.BoardMember.user_id == user_id,
            )
        )
        logger.info(
            "Board member %s removed from %s by %s (reason: %s)",
            user_id,
            board_id,
            removed_by_id,
            reason or "-",
        )

    async def find_member_ids(self, board_id: UUID) -> list[UUID]:
        result = await self._session.execute(
            select(models.BoardMember.user_id)
            .where(models.BoardMember.board_id == board_id)
            .order_by(models.BoardMember.created_at)
        )
        return list(result.scalars())
