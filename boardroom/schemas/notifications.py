"""Notification inbox schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from ..domain.notifications import NotificationType
from .base import BoardroomBaseModel


class NotificationResponse(BoardroomBaseModel):
    id: UUID
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime


class NotificationPageResponse(BoardroomBaseModel):
    notifications: list[NotificationResponse]
    unread_count: int
    total_count: int


class UnreadCountResponse(BoardroomBaseModel):
    unread_count: int


class MarkAllReadResponse(BoardroomBaseModel):
    updated: int


class NotificationDelete(BoardroomBaseModel):
    ids: list[UUID] = Field(..., min_length=1, max_length=100)
