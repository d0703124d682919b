"""API routes for boards and their member rosters."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from ..core.dependencies import BoardServiceDep, CurrentUserDep
from ..schemas import BoardCreate, BoardMemberAdd, BoardResponse, MessageResponse
from .errors import ok_or_raise

router = APIRouter(tags=["boards"])


@router.post(
    "/organizations/{organization_id}/boards",
    response_model=BoardResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_board(
    organization_id: UUID,
    data: BoardCreate,
    current_user: CurrentUserDep,
    service: BoardServiceDep,
):
    board = ok_or_raise(await service.create_board(organization_id, current_user.id, data.name))
    return BoardResponse.model_validate(board)


@router.get("/organizations/{organization_id}/boards", response_model=list[BoardResponse])
async def list_boards(
    organization_id: UUID,
    current_user: CurrentUserDep,
    service: BoardServiceDep,
):
    boards = ok_or_raise(await service.list_boards(organization_id))
    return [BoardResponse.model_validate(b) for b in boards]


@router.post("/boards/{board_id}/archive", response_model=BoardResponse)
async def archive_board(board_id: UUID, current_user: CurrentUserDep, service: BoardServiceDep):
    """Archive a board. The general board cannot be archived."""
    board = ok_or_raise(await service.archive_board(board_id, current_user.id))
    return BoardResponse.model_validate(board)


@router.post(
    "/boards/{board_id}/members",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_board_member(
    board_id: UUID,
    data: BoardMemberAdd,
    current_user: CurrentUserDep,
    service: BoardServiceDep,
):
    ok_or_raise(await service.add_member(board_id, data.user_id, current_user.id))
    return MessageResponse(message="Member added")


@router.delete("/boards/{board_id}/members/{user_id}", response_model=MessageResponse)
async def remove_board_member(
    board_id: UUID,
    user_id: UUID,
    current_user: CurrentUserDep,
    service: BoardServiceDep,
    reason: str | None = Query(None, max_length=2000),
):
    ok_or_raise(await service.remove_member(board_id, user_id, current_user.id, reason))
    return MessageResponse(message="Member removed")
