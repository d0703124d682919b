"""
Notification inbox.

Join-parent events fan out one notification per recipient. Users read,
mark and delete only their own notifications.
"""

import logging
from uuid import UUID

from ..domain.errors import NotFoundError, UnauthorizedError, ValidationError
from ..domain.notifications import (
    Notification,
    NotificationErrors,
    NotificationPage,
    NotificationType,
)
from ..domain.organizations import Organization
from ..domain.ports import MembershipRepository, NotificationRepository, OrganizationRepository
from ..domain.result import use_case
from ..domain.users import utcnow
from .hierarchy import HierarchyResolver

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


def _join_parent_data(child: Organization, parent: Organization) -> dict[str, str]:
    return {
        "child_org_id": str(child.id),
        "parent_org_id": str(parent.id),
        "child_org_name": child.name,
        "parent_org_name": parent.name,
    }


class NotificationService:
    def __init__(
        self,
        notifications: NotificationRepository,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        hierarchy: HierarchyResolver,
    ):
        self._notifications = notifications
        self._organizations = organizations
        self._memberships = memberships
        self._hierarchy = hierarchy

    # =========================================================================
    # FAN-OUT
    # =========================================================================

    async def _send(
        self,
        user_ids: list[UUID],
        type: NotificationType,
        data: dict[str, str],
    ) -> list[Notification]:
        notifications = [Notification.create(user_id, type, data) for user_id in user_ids]
        if notifications:
            await self._notifications.save_many(notifications)
        logger.info("Sent %d %s notifications", len(notifications), type.value)
        return notifications

    async def notify_join_parent_request_received(
        self, child: Organization, parent: Organization
    ) -> list[Notification]:
        """Tell every admin of the parent that a child asked to join."""
        admin_ids = await self._organizations.find_admin_user_ids(parent.id)
        return await self._send(
            admin_ids,
            NotificationType.JOIN_PARENT_REQUEST_RECEIVED,
            _join_parent_data(child, parent),
        )

    async def notify_org_joined_parent(
        self, child: Organization, parent: Organization
    ) -> list[Notification]:
        """Tell every member of the child's subtree that it moved under the parent."""
        org_ids = {child.id} | await self._hierarchy.get_descendant_ids(child.id)
        member_ids = await self._memberships.find_member_user_ids(org_ids)
        return await self._send(
            member_ids,
            NotificationType.ORG_JOINED_PARENT,
            _join_parent_data(child, parent),
        )

    # =========================================================================
    # INBOX
    # =========================================================================

    @use_case
    async def get_notifications(
        self, user_id: UUID, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0
    ) -> NotificationPage:
        return NotificationPage(
            notifications=await self._notifications.find_by_user(user_id, limit, offset),
            unread_count=await self._notifications.count_unread(user_id),
            total_count=await self._notifications.count_by_user(user_id),
        )

    @use_case
    async def get_unread_count(self, user_id: UUID) -> int:
        return await self._notifications.count_unread(user_id)

    @use_case
    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        notification = await self._notifications.find_by_id(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id, NotificationErrors.NOT_FOUND)
        if notification.user_id != user_id:
            raise UnauthorizedError(
                "This notification belongs to another user", NotificationErrors.NOT_OWNER
            )

        if not notification.is_read:
            notification.mark_as_read()
            await self._notifications.mark_read(notification)
        return notification

    @use_case
    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark every unread notification as read; return how many changed."""
        return await self._notifications.mark_all_read(user_id, utcnow())

    @use_case
    async def delete_notifications(self, notification_ids: list[UUID], user_id: UUID) -> None:
        """
        Delete several notifications at once.

        Nothing is deleted unless every id exists and belongs to the user.
        """
        ids = set(notification_ids)
        if not ids:
            raise ValidationError("No notifications selected", NotificationErrors.EMPTY_IDS)

        found = await self._notifications.find_by_ids(ids)
        missing = ids - {notification.id for notification in found}
        if missing:
            raise NotFoundError(
                "Notification",
                ", ".join(sorted(str(i) for i in missing)),
                NotificationErrors.SOME_NOT_FOUND,
            )
        if any(notification.user_id != user_id for notification in found):
            raise UnauthorizedError(
                "Some notifications belong to another user", NotificationErrors.NOT_OWNER
            )

        await self._notifications.delete_many(ids)
        logger.info("User %s deleted %d notifications", user_id, len(ids))
