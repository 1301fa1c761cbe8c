import uuid

from fastapi import APIRouter, Depends, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.throttling import rate_limit
from models.models import User
from schemas.schema import (
    DuplicateCheckOut,
    PropertyCreate,
    PropertyOut,
    TransitionResponse,
)
from services.duplicate_service import DuplicateService
from services.property_service import PropertyService

router = APIRouter(tags=["Properties"])


@cbv(router=router)
class PropertyRoutes:
    @router.post(
        "/properties",
        dependencies=[rate_limit],
        response_model=PropertyOut,
        status_code=201,
    )
    @safe_handler
    async def create(
        self,
        request: Request,
        data: PropertyCreate,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).create_listing(data=data, current_user=current_user)

    @router.post(
        "/properties/{property_id}/submit",
        dependencies=[rate_limit],
        response_model=TransitionResponse,
    )
    @safe_handler
    async def submit(
        self,
        request: Request,
        property_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await PropertyService(db).submit_listing(
            property_id=property_id, current_user=current_user
        )

    @router.get(
        "/properties/{property_id}/duplicate-check",
        dependencies=[rate_limit],
        response_model=DuplicateCheckOut,
    )
    @safe_handler
    async def duplicate_check(
        self,
        request: Request,
        property_id: uuid.UUID,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await DuplicateService(db).check_duplicates(
            property_id=property_id, current_user=current_user
        )
