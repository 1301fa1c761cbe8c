import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from models.enums import NotificationType
from models.models import Notification


class NotificationRepo:
    def __init__(self, db):
        self.db = db

    async def create(
        self,
        user_id: uuid.UUID,
        type: NotificationType,
        title: str,
        message: str,
        data: dict,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data,
            is_read=False,
        )
        self.db.add(notification)
        try:
            await self.db.commit()
            return notification
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def list_for_user(
        self,
        user_id: uuid.UUID,
        limit: int,
        offset: int,
        unread_only: bool = False,
    ) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        result = await self.db.execute(
            stmt.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def count_for_user(self, user_id: uuid.UUID, unread_only: bool = False) -> int:
        stmt = select(func.count(Notification.id)).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def mark_read(
        self, notification_id: uuid.UUID, user_id: uuid.UUID, read_at: datetime
    ) -> Optional[Notification]:
        stmt = (
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
            .values(is_read=True, read_at=func.coalesce(Notification.read_at, read_at))
            .returning(Notification)
        )
        try:
            result = await self.db.execute(stmt)
            notification = result.scalar_one_or_none()
            await self.db.commit()
            return notification
        except SQLAlchemyError:
            await self.db.rollback()
            raise

    async def mark_all_read(self, user_id: uuid.UUID, read_at: datetime) -> int:
        stmt = (
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
            .values(is_read=True, read_at=read_at)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
            return result.rowcount
        except SQLAlchemyError:
            await self.db.rollback()
            raise
