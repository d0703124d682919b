"""Board schemas."""

from datetime import datetime
from uuid import UUID

from .base import BoardroomBaseModel


class BoardCreate(BoardroomBaseModel):
    name: str


class BoardResponse(BoardroomBaseModel):
    id: UUID
    name: str
    organization_id: UUID
    is_general: bool
    created_at: datetime
    archived_at: datetime | None = None


class BoardMemberAdd(BoardroomBaseModel):
    user_id: UUID
