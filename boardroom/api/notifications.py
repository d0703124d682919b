"""Notification inbox routes for the current user."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from ..core.dependencies import CurrentUserDep, NotificationServiceDep
from ..schemas import (
    MarkAllReadResponse,
    NotificationDelete,
    NotificationPageResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from ..services.notifications import DEFAULT_PAGE_SIZE
from .errors import ok_or_raise

router = APIRouter(prefix="/me/notifications", tags=["notifications"])


@router.get("", response_model=NotificationPageResponse)
async def get_notifications(
    current_user: CurrentUserDep,
    service: NotificationServiceDep,
    limit: Annotated[int, Query(ge=1, le=100)] = DEFAULT_PAGE_SIZE,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """Newest first, with unread and total counts."""
    page = ok_or_raise(await service.get_notifications(current_user.id, limit, offset))
    return NotificationPageResponse.model_validate(page)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(current_user: CurrentUserDep, service: NotificationServiceDep):
    count = ok_or_raise(await service.get_unread_count(current_user.id))
    return UnreadCountResponse(unread_count=count)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(current_user: CurrentUserDep, service: NotificationServiceDep):
    updated = ok_or_raise(await service.mark_all_read(current_user.id))
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: UUID, current_user: CurrentUserDep, service: NotificationServiceDep
):
    notification = ok_or_raise(await service.mark_read(notification_id, current_user.id))
    return NotificationResponse.model_validate(notification)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notifications(
    data: NotificationDelete, current_user: CurrentUserDep, service: NotificationServiceDep
):
    """Delete the listed notifications; all of them or none."""
    ok_or_raise(await service.delete_notifications(data.ids, current_user.id))
