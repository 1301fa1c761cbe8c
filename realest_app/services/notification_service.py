import uuid
from datetime import datetime, timezone

from fastapi import HTTPException

from core.breaker import breaker
from core.mapper import ORMMapper
from repos.notification_repo import NotificationRepo
from schemas.schema import NotificationOut, NotificationPage, NotificationPagination


class NotificationService:
    def __init__(self, db):
        self.repo: NotificationRepo = NotificationRepo(db)
        self.mapper: ORMMapper = ORMMapper()

    async def list_notifications(
        self,
        current_user,
        limit: int = 20,
        offset: int = 0,
        unread_only: bool = False,
    ) -> NotificationPage:
        async def handler():
            items = await self.repo.list_for_user(
                current_user.id, limit=limit, offset=offset, unread_only=unread_only
            )
            total = await self.repo.count_for_user(current_user.id, unread_only=unread_only)
            unread = await self.repo.count_for_user(current_user.id, unread_only=True)

            return NotificationPage(
                notifications=self.mapper.many(items, NotificationOut),
                pagination=NotificationPagination(
                    limit=limit,
                    offset=offset,
                    total=total,
                    has_more=offset + len(items) < total,
                ),
                unread_count=unread,
            )

        return await breaker.call(handler)

    async def mark_read(self, notification_id: uuid.UUID, current_user) -> NotificationOut:
        async def handler():
            notification = await self.repo.mark_read(
                notification_id, current_user.id, datetime.now(timezone.utc)
            )
            if not notification:
                raise HTTPException(status_code=404, detail="Notification not found")
            return self.mapper.one(notification, NotificationOut)

        return await breaker.call(handler)

    async def mark_all_read(self, current_user) -> dict:
        async def handler():
            updated = await self.repo.mark_all_read(
                current_user.id, datetime.now(timezone.utc)
            )
            return {"success": True, "updated": updated}

        return await breaker.call(handler)
