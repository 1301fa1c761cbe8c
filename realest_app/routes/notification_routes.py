import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.throttling import rate_limit
from models.models import User
from schemas.schema import NotificationOut, NotificationPage
from services.notification_service import NotificationService

router = APIRouter(tags=["Notifications"])


@cbv(router=router)
class NotificationRoutes:
    @router.get("/notifications", dependencies=[rate_limit], response_model=NotificationPage)
    @safe_handler
    async def list_notifications(
        self,
        request: Request,
        limit: int = Query(20, ge=1, le=100),
        offset: int = Query(0, ge=0),
        unread_only: bool = False,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await NotificationService(db).list_notifications(
            current_user=current_user,
            limit=limit,
            offset=offset,
            unread_only=unread_only,
        )

    @router.patch(
        "/notifications/{notification_id}/read",
        dependencies=[rate_limit],
        response_model=NotificationOut,
    )
    @safe_handler
    async def mark_read(
        self,
        request: Request,
        notification_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await NotificationService(db).mark_read(
            notification_id=notification_id, current_user=current_user
        )

    @router.post("/notifications/mark-all-read", dependencies=[rate_limit])
    @safe_handler
    async def mark_all_read(
        self,
        request: Request,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await NotificationService(db).mark_all_read(current_user=current_user)
