import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, Request

from core.breaker import breaker
from core.check_permission import CheckRolePermission
from core.exception_handler import FieldValidationError
from fire_and_forget.property_status import (
    AsyncioPropertyStatus,
    AuditEntry,
    OwnerNotice,
)
from models.enums import AdminActionType, DuplicateResolution, NotificationType
from policy.property_transitions import (
    check_target_invariants,
    require_fields,
    transition_for,
)
from repos.property_repo import PropertyRepo
from schemas.schema import DuplicateResolutionSchema, TransitionResponse

logger = logging.getLogger(__name__)

NOTICES = {
    DuplicateResolution.KEEP_BOTH: (
        "Duplicate Review Cleared",
        'Your property "{title}" passed duplicate review and is now pending physical vetting.',
    ),
    DuplicateResolution.KEEP_MASTER: (
        "Property Marked as Duplicate",
        'Your property "{title}" has been identified as a duplicate and rejected. '
        "The original listing will remain active.",
    ),
    DuplicateResolution.REJECT_DUPLICATE: (
        "Property Rejected - Duplicate",
        'Your property "{title}" has been rejected as a duplicate. Reason: {reason}',
    ),
}


class DuplicateReviewService:
    NOT_FOUND = "Property not found or not pending duplicate review"

    def __init__(self, db):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.side_effects: AsyncioPropertyStatus = AsyncioPropertyStatus(db)

    async def _check_master(self, property_id: uuid.UUID, master_id: uuid.UUID):
        if master_id == property_id:
            raise FieldValidationError.invalid(
                "master_property_id", "A property cannot be a duplicate of itself"
            )
        master = await self.repo.get_by_id(master_id)
        if not master:
            raise HTTPException(status_code=404, detail="Master property not found")
        return master

    def build_update(self, data: DuplicateResolutionSchema, now: datetime) -> dict:
        transition = transition_for(data.action)
        require_fields(transition, data.model_dump())

        values = {
            "status": transition.target,
            "duplicate_resolution": data.action,
            "duplicate_resolved_at": now,
            "flagged_as_duplicate": False,
            "updated_at": now,
        }
        if data.admin_notes is not None:
            values["admin_notes"] = data.admin_notes

        if data.action == DuplicateResolution.KEEP_MASTER:
            values["duplicate_of_id"] = data.master_property_id
            values["rejection_reason"] = (
                data.rejection_reason or f"Duplicate of property {data.master_property_id}"
            )
            values["rejected_at"] = now
        elif data.action == DuplicateResolution.REJECT_DUPLICATE:
            values["rejection_reason"] = data.rejection_reason
            values["rejected_at"] = now

        check_target_invariants(transition.target, values)
        return values

    async def resolve(
        self,
        property_id: uuid.UUID,
        data: DuplicateResolutionSchema,
        current_user,
        request: Optional[Request] = None,
    ) -> TransitionResponse:
        await self.permission.check_admin(current_user)
        transition = transition_for(data.action)
        values = self.build_update(data, datetime.now(timezone.utc))

        async def handler():
            if data.action == DuplicateResolution.KEEP_MASTER:
                await self._check_master(property_id, data.master_property_id)

            prop = await self.repo.apply_transition(property_id, transition.source, values)
            if prop is None:
                raise HTTPException(status_code=404, detail=self.NOT_FOUND)

            logger.info(
                f"Duplicate review '{data.action.value}' moved property {prop.id} to "
                f"{prop.status.value} (admin {current_user.id})"
            )

            title, template = NOTICES[data.action]
            return await self.side_effects.after_transition(
                prop,
                transition.source,
                actor_id=current_user.id,
                audit=AuditEntry.from_request(
                    admin_id=current_user.id,
                    action_type=AdminActionType.DUPLICATE_RESOLUTION,
                    details={
                        "action": data.action.value,
                        "previous_status": transition.source.value,
                        "new_status": prop.status.value,
                        "master_property_id": (
                            str(data.master_property_id) if data.master_property_id else None
                        ),
                        "rejection_reason": values.get("rejection_reason"),
                        "admin_notes": data.admin_notes,
                    },
                    request=request,
                ),
                notice=OwnerNotice(
                    type=NotificationType.DUPLICATE_RESOLUTION,
                    title=title,
                    message=template.format(
                        title=prop.title, reason=values.get("rejection_reason")
                    ),
                    data={
                        "action": data.action.value,
                        "new_status": prop.status.value,
                        "master_property_id": (
                            str(data.master_property_id) if data.master_property_id else None
                        ),
                    },
                ),
            )

        outcome = await breaker.call(handler)

        return TransitionResponse(
            data=outcome.property,
            message="Duplicate review resolved successfully",
            side_effect_failures=outcome.failures,
        )
