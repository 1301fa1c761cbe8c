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
from models.enums import AdminActionType, NotificationType, VettingDecision
from policy.property_transitions import (
    check_target_invariants,
    require_fields,
    transition_for,
)
from repos.property_repo import PropertyRepo
from schemas.schema import TransitionResponse, VettingDecisionSchema

logger = logging.getLogger(__name__)


def owner_notice(decision: VettingDecision, title: str, reason: Optional[str]) -> OwnerNotice:
    if decision == VettingDecision.LIVE:
        return OwnerNotice(
            type=NotificationType.PROPERTY_STATUS,
            title="Property Verified",
            message=f'Your property "{title}" has been verified and is now live on RealEST!',
            data={"status": decision.value},
        )
    return OwnerNotice(
        type=NotificationType.PROPERTY_STATUS,
        title="Property Rejected",
        message=f'Your property "{title}" has been rejected. Reason: {reason}',
        data={"status": decision.value, "rejection_reason": reason},
    )


class VettingService:
    NOT_FOUND = "Property not found or not pending vetting"

    def __init__(self, db):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.side_effects: AsyncioPropertyStatus = AsyncioPropertyStatus(db)

    def build_update(
        self, data: VettingDecisionSchema, admin_id: uuid.UUID, now: datetime
    ) -> dict:
        if data.status == VettingDecision.REJECTED and data.verified_at is not None:
            raise FieldValidationError.invalid(
                "verified_at", "verified_at is only accepted when status is 'live'"
            )

        transition = transition_for(data.status)
        require_fields(transition, data.model_dump())

        values = {
            "status": transition.target,
            "vetted_by": admin_id,
            "vetted_at": now,
            "updated_at": now,
        }
        if data.admin_notes is not None:
            values["admin_notes"] = data.admin_notes

        if data.status == VettingDecision.LIVE:
            values["verified_at"] = data.verified_at or now
        else:
            values["rejection_reason"] = data.rejection_reason
            values["rejected_at"] = now

        check_target_invariants(transition.target, values)
        return values

    async def vet_property(
        self,
        property_id: uuid.UUID,
        data: VettingDecisionSchema,
        current_user,
        request: Optional[Request] = None,
    ) -> TransitionResponse:
        await self.permission.check_admin(current_user)
        transition = transition_for(data.status)
        values = self.build_update(data, current_user.id, datetime.now(timezone.utc))

        async def handler():
            prop = await self.repo.apply_transition(property_id, transition.source, values)
            if prop is None:
                raise HTTPException(status_code=404, detail=self.NOT_FOUND)

            logger.info(
                f"Vetting moved property {prop.id} to {prop.status.value} "
                f"(admin {current_user.id})"
            )

            return await self.side_effects.after_transition(
                prop,
                transition.source,
                actor_id=current_user.id,
                audit=AuditEntry.from_request(
                    admin_id=current_user.id,
                    action_type=AdminActionType.PROPERTY_VETTING,
                    details={
                        "old_status": transition.source.value,
                        "new_status": prop.status.value,
                        "rejection_reason": data.rejection_reason,
                        "admin_notes": data.admin_notes,
                        "verified_at": (
                            values["verified_at"].isoformat()
                            if "verified_at" in values
                            else None
                        ),
                    },
                    request=request,
                ),
                notice=owner_notice(data.status, prop.title, data.rejection_reason),
            )

        outcome = await breaker.call(handler)

        verb = "approved" if data.status == VettingDecision.LIVE else "rejected"
        return TransitionResponse(
            data=outcome.property,
            message=f"Property {verb} successfully",
            side_effect_failures=outcome.failures,
        )
