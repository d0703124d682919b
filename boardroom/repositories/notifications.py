"""SQLAlchemy notification repository."""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update

from .. import models
from ..domain.notifications import Notification, NotificationType
from ..domain.ports import NotificationRepository
from .base import SqlAlchemyRepository, as_utc


def _to_notification(row: models.Notification) -> Notification:
    return Notification(
        id=row.id,
        user_id=row.user_id,
        type=NotificationType(row.type),
        title=row.title,
        body=row.body,
        data=row.data,
        read_at=as_utc(row.read_at),
        created_at=as_utc(row.created_at),
    )


class SqlAlchemyNotificationRepository(SqlAlchemyRepository, NotificationRepository):
    async def save_many(self, notifications: list[Notification]) -> None:
        self._session.add_all(
            models.Notification(
                id=n.id,
                user_id=n.user_id,
                type=n.type.value,
                title=n.title,
                body=n.body,
                data=n.data,
                read_at=n.read_at,
                created_at=n.created_at,
            )
            for n in notifications
        )
        await self._session.flush()

    async def find_by_id(self, notification_id: UUID) -> Notification | None:
        row = await self._session.get(models.Notification, notification_id)
        return _to_notification(row) if row else None

    async def find_by_ids(self, notification_ids: Iterable[UUID]) -> list[Notification]:
        ids = list(notification_ids)
        if not ids:
            return []
        result = await self._session.execute(
            select(models.Notification).where(models.Notification.id.in_(ids))
        )
        return [_to_notification(row) for row in result.scalars()]

    async def find_by_user(
        self, user_id: UUID, limit: int, offset: int = 0
    ) -> list[Notification]:
        result = await self._session.execute(
            select(models.Notification)
            .where(models.Notification.user_id == user_id)
            .order_by(models.Notification.created_at.desc(), models.Notification.id)
            .limit(limit)
            .offset(offset)
        )
        return [_to_notification(row) for row in result.scalars()]

    async def count_by_user(self, user_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(models.Notification)
            .where(models.Notification.user_id == user_id)
        )
        return result.scalar_one()

    async def count_unread(self, user_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count())
            .select_from(models.Notification)
            .where(
                models.Notification.user_id == user_id,
                models.Notification.read_at.is_(None),
            )
        )
        return result.scalar_one()

    async def mark_read(self, notification: Notification) -> None:
        await self._session.execute(
            update(models.Notification)
            .where(models.Notification.id == notification.id)
            .values(read_at=notification.read_at)
        )

    async def mark_all_read(self, user_id: UUID, read_at: datetime) -> int:
        result = await self._session.execute(
            update(models.Notification)
            .where(
                models.Notification.user_id == user_id,
                models.Notification.read_at.is_(None),
            )
            .values(read_at=read_at)
        )
        return result.rowcount

    async def delete_many(self, notification_ids: Iterable[UUID]) -> None:
        ids = list(notification_ids)
        if not ids:
            return
        await self._session.execute(
            delete(models.Notification).where(models.Notification.id.in_(ids))
        )
