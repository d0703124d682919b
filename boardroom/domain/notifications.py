"""In-app notifications.

Title and body hold translation keys; ``data`` carries the values the
client interpolates into them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from .users import utcnow


class NotificationErrors:
    NOT_FOUND = "notification.errors.notFound"
    NOT_OWNER = "notification.errors.notOwner"
    EMPTY_IDS = "notification.errors.emptyIds"
    SOME_NOT_FOUND = "notification.errors.someNotFound"


class NotificationType(str, Enum):
    JOIN_PARENT_REQUEST_RECEIVED = "join_parent_request_received"
    ORG_JOINED_PARENT = "org_joined_parent"


NOTIFICATION_KEYS = {
    NotificationType.JOIN_PARENT_REQUEST_RECEIVED: "notification.types.joinParentRequestReceived",
    NotificationType.ORG_JOINED_PARENT: "notification.types.orgJoinedParent",
}


@dataclass
class Notification:
    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    body: str
    data: dict[str, Any] | None = None
    read_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls, user_id: UUID, type: NotificationType, data: dict[str, Any] | None = None
    ) -> "Notification":
        key = NOTIFICATION_KEYS[NotificationType(type)]
        return cls(
            id=uuid4(),
            user_id=user_id,
            type=NotificationType(type),
            title=f"{key}.title",
            body=f"{key}.body",
            data=data,
        )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def mark_as_read(self, now: datetime | None = None) -> None:
        # Keeps the first read time
        if self.read_at is None:
            self.read_at = now or utcnow()


@dataclass
class NotificationPage:
    notifications: list[Notification]
    unread_count: int
    total_count: int
