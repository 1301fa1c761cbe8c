import uuid

from fastapi import APIRouter, Depends, Query, Request
from fastapi_utils.cbv import cbv
from sqlalchemy.ext.asyncio import AsyncSession

from core.get_current_user import get_current_user
from core.get_db import get_db_async
from core.safe_handler import safe_handler
from core.throttling import rate_limit
from models.models import User
from schemas.schema import (
    DuplicateResolutionSchema,
    MLValidationResponse,
    MLValidationUpdateSchema,
    TransitionResponse,
    ValidationQueueOut,
    VettingDecisionSchema,
    VettingReportOut,
)
from services.duplicate_review_service import DuplicateReviewService
from services.ml_validation_service import MLValidationService
from services.validation_queue_service import ValidationQueueService
from services.vetting_service import VettingService

router = APIRouter(tags=["Admin Verification"])


@cbv(router=router)
class ValidationRoutes:
    @router.post(
        "/validation/ml/{property_id}",
        dependencies=[rate_limit],
        response_model=MLValidationResponse,
    )
    @safe_handler
    async def update_ml_validation(
        self,
        request: Request,
        property_id: uuid.UUID,
        data: MLValidationUpdateSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await MLValidationService(db).update_ml_validation(
            property_id=property_id,
            data=data,
            current_user=current_user,
            request=request,
        )

    @router.put(
        "/properties/{property_id}/vet",
        dependencies=[rate_limit],
        response_model=TransitionResponse,
    )
    @safe_handler
    async def vet_property(
        self,
        request: Request,
        property_id: uuid.UUID,
        data: VettingDecisionSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await VettingService(db).vet_property(
            property_id=property_id,
            data=data,
            current_user=current_user,
            request=request,
        )

    @router.put(
        "/duplicates/{property_id}/resolve",
        dependencies=[rate_limit],
        response_model=TransitionResponse,
    )
    @safe_handler
    async def resolve_duplicate(
        self,
        request: Request,
        property_id: uuid.UUID,
        data: DuplicateResolutionSchema,
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await DuplicateReviewService(db).resolve(
            property_id=property_id,
            data=data,
            current_user=current_user,
            request=request,
        )

    @router.get(
        "/validation/{queue}",
        dependencies=[rate_limit],
        response_model=ValidationQueueOut,
    )
    @safe_handler
    async def get_queue(
        self,
        request: Request,
        queue: str,
        page: int = Query(1, ge=1),
        per_page: int = Query(20, ge=1, le=100),
        sort: str = "newest",
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ValidationQueueService(db).get_queue(
            queue=queue,
            current_user=current_user,
            page=page,
            per_page=per_page,
            sort=sort,
        )

    @router.get(
        "/reports/vetting",
        dependencies=[rate_limit],
        response_model=VettingReportOut,
    )
    @safe_handler
    async def vetting_report(
        self,
        request: Request,
        period: str = "30d",
        current_user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db_async),
    ):
        return await ValidationQueueService(db).vetting_report(
            current_user=current_user, period=period
        )
