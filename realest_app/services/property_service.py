import logging
import uuid
from datetime import datetime, timezone

from fastapi import HTTPException

from core.breaker import breaker
from core.check_permission import CheckRolePermission
from fire_and_forget.property_status import AsyncioPropertyStatus
from models.enums import OwnerAction, PropertyStatus
from models.shape import make_point
from policy.access_policy import ModelPolicy
from policy.property_transitions import transition_for
from repos.property_repo import PropertyRepo
from schemas.schema import PropertyCreate, PropertyOut, TransitionResponse

logger = logging.getLogger(__name__)


class PropertyService:
    def __init__(self, db):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.policy: ModelPolicy = ModelPolicy()
        self.side_effects: AsyncioPropertyStatus = AsyncioPropertyStatus(db)

    async def create_listing(self, data: PropertyCreate, current_user) -> PropertyOut:
        await self.permission.check_can_list(current_user)

        async def handler():
            location = None
            if data.latitude is not None and data.longitude is not None:
                location = make_point(data.latitude, data.longitude)

            status = (
                PropertyStatus.PENDING_ML_VALIDATION if data.submit else PropertyStatus.DRAFT
            )
            prop = await self.repo.create(
                owner_id=current_user.id,
                title=data.title,
                description=data.description,
                address=data.address,
                state=data.state,
                lga=data.lga,
                location=location,
                price=data.price,
                status=status,
            )
            logger.info(f"Property {prop.id} created by {current_user.id} as {status.value}")

            outcome = await self.side_effects.listing_created(prop)
            return outcome.property

        return await breaker.call(handler)

    async def submit_listing(self, property_id: uuid.UUID, current_user) -> TransitionResponse:
        transition = transition_for(OwnerAction.SUBMIT)

        async def handler():
            prop = await self.repo.get_by_id(property_id)
            if not prop:
                raise HTTPException(status_code=404, detail="Property not found")
            if not self.policy.can_access_property(prop, current_user):
                raise HTTPException(status_code=403, detail="Access Denied.")

            now = datetime.now(timezone.utc)
            updated = await self.repo.apply_transition(
                property_id,
                transition.source,
                {"status": transition.target, "updated_at": now},
            )
            if updated is None:
                raise HTTPException(
                    status_code=404, detail="Property not found or not a draft"
                )

            logger.info(f"Property {updated.id} submitted for validation by {current_user.id}")
            return await self.side_effects.after_transition(
                updated,
                transition.source,
                actor_id=current_user.id,
                event_name="property.submitted",
            )

        outcome = await breaker.call(handler)

        return TransitionResponse(
            data=outcome.property,
            message="Property submitted for validation",
            side_effect_failures=outcome.failures,
        )
