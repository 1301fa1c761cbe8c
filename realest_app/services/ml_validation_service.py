import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, Request

from core.breaker import breaker
from core.check_permission import CheckRolePermission
from core.settings import settings
from fire_and_forget.property_status import (
    AsyncioPropertyStatus,
    AuditEntry,
    OwnerNotice,
)
from models.enums import (
    AdminActionType,
    MLAction,
    MLValidationStatus,
    NotificationType,
)
from policy.property_transitions import (
    check_target_invariants,
    require_fields,
    transition_for,
)
from repos.property_repo import PropertyRepo
from schemas.schema import (
    MLValidationResponse,
    MLValidationResult,
    MLValidationUpdateSchema,
)

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Failed ML validation"

ML_STATUS = {
    MLAction.APPROVE: MLValidationStatus.PASSED,
    MLAction.REJECT: MLValidationStatus.FAILED,
    MLAction.FLAG_DUPLICATE: MLValidationStatus.REVIEW_REQUIRED,
}

RESULT_MESSAGES = {
    MLAction.APPROVE: "Property approved successfully",
    MLAction.REJECT: "Property rejected successfully",
    MLAction.FLAG_DUPLICATE: "Property flagged as duplicate successfully",
}

OWNER_NOTICES = {
    MLAction.APPROVE: (
        "ML Validation Passed",
        'Your property "{title}" has passed ML validation and is now pending physical vetting.',
    ),
    MLAction.REJECT: (
        "ML Validation Failed",
        'Your property "{title}" failed ML validation. Please review and resubmit.',
    ),
    MLAction.FLAG_DUPLICATE: (
        "ML Validation Review Required",
        'Your property "{title}" requires manual review. Our team will contact you soon.',
    ),
}


def default_confidence(action: MLAction) -> float:
    return {
        MLAction.APPROVE: settings.ML_DEFAULT_CONFIDENCE_APPROVE,
        MLAction.REJECT: settings.ML_DEFAULT_CONFIDENCE_REJECT,
        MLAction.FLAG_DUPLICATE: settings.ML_DEFAULT_CONFIDENCE_FLAG,
    }[action]


class MLValidationService:
    NOT_FOUND = "Property not found or not in ML validation status"

    def __init__(self, db):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.side_effects: AsyncioPropertyStatus = AsyncioPropertyStatus(db)

    def build_update(self, data: MLValidationUpdateSchema, now: datetime) -> dict:
        transition = transition_for(data.action)
        score = data.ml_confidence_score
        if score is None:
            score = default_confidence(data.action)

        values = {
            "status": transition.target,
            "ml_validation_status": ML_STATUS[data.action],
            "ml_confidence_score": score,
            "ml_validated_at": now,
            "updated_at": now,
        }
        if data.ml_validation_notes is not None:
            values["ml_validation_notes"] = data.ml_validation_notes
        if data.admin_notes is not None:
            values["admin_notes"] = data.admin_notes

        if data.action == MLAction.REJECT:
            values["rejection_reason"] = (
                (data.admin_notes or "").strip() or DEFAULT_REJECTION_REASON
            )
            values["rejected_at"] = now
        elif data.action == MLAction.FLAG_DUPLICATE:
            values["flagged_as_duplicate"] = True
            if data.admin_notes is not None:
                values["duplicate_review_notes"] = data.admin_notes

        require_fields(transition, values)
        check_target_invariants(transition.target, values)
        return values

    async def update_ml_validation(
        self,
        property_id: uuid.UUID,
        data: MLValidationUpdateSchema,
        current_user,
        request: Optional[Request] = None,
    ) -> MLValidationResponse:
        await self.permission.check_admin(current_user)
        transition = transition_for(data.action)
        values = self.build_update(data, datetime.now(timezone.utc))

        async def handler():
            prop = await self.repo.apply_transition(property_id, transition.source, values)
            if prop is None:
                raise HTTPException(status_code=404, detail=self.NOT_FOUND)

            logger.info(
                f"ML validation '{data.action.value}' moved property {prop.id} to "
                f"{prop.status.value} (admin {current_user.id})"
            )

            title, template = OWNER_NOTICES[data.action]
            return await self.side_effects.after_transition(
                prop,
                transition.source,
                actor_id=current_user.id,
                audit=AuditEntry.from_request(
                    admin_id=current_user.id,
                    action_type=AdminActionType.ML_VALIDATION_UPDATE,
                    details={
                        "action": data.action.value,
                        "previous_status": transition.source.value,
                        "new_status": prop.status.value,
                        "ml_confidence_score": values["ml_confidence_score"],
                        "ml_validation_notes": data.ml_validation_notes,
                        "admin_notes": data.admin_notes,
                    },
                    request=request,
                ),
                notice=OwnerNotice(
                    type=NotificationType.ML_VALIDATION,
                    title=title,
                    message=template.format(title=prop.title),
                    data={
                        "action": data.action.value,
                        "new_status": prop.status.value,
                        "ml_confidence_score": values["ml_confidence_score"],
                    },
                ),
            )

        outcome = await breaker.call(handler)

        return MLValidationResponse(
            success=True,
            data=MLValidationResult(
                property=outcome.property,
                action_taken=data.action,
                new_status=outcome.property.status,
                message=RESULT_MESSAGES[data.action],
                side_effect_failures=outcome.failures,
            ),
        )
