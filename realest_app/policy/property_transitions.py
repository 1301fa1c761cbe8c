"""Property verification state machine.

Every status change the service performs is one row of ``TRANSITIONS``:
the status the property must currently hold, the action requested, the
status it moves to and the payload fields that action cannot go without.
Repositories apply a transition with a single conditional UPDATE keyed on
``source``, so a property that already left ``source`` is never touched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from core.exception_handler import FieldValidationError
from models.enums import (
    DuplicateResolution,
    MLAction,
    OwnerAction,
    PropertyStatus,
    VettingDecision,
)


class InvalidTransitionError(ValueError):
    pass


@dataclass(frozen=True)
class Transition:
    source: PropertyStatus
    action: Enum
    target: PropertyStatus
    required_fields: tuple[str, ...] = ()


def _row(source, action, target, *required) -> tuple[tuple, Transition]:
    return (source, action), Transition(source, action, target, tuple(required))


TRANSITIONS: dict[tuple[PropertyStatus, Enum], Transition] = dict(
    [
        _row(
            PropertyStatus.DRAFT,
            OwnerAction.SUBMIT,
            PropertyStatus.PENDING_ML_VALIDATION,
        ),
        _row(
            PropertyStatus.PENDING_ML_VALIDATION,
            MLAction.APPROVE,
            PropertyStatus.PENDING_VETTING,
        ),
        _row(
            PropertyStatus.PENDING_ML_VALIDATION,
            MLAction.REJECT,
            PropertyStatus.REJECTED,
        ),
        _row(
            PropertyStatus.PENDING_ML_VALIDATION,
            MLAction.FLAG_DUPLICATE,
            PropertyStatus.PENDING_DUPLICATE_REVIEW,
        ),
        _row(
            PropertyStatus.PENDING_VETTING,
            VettingDecision.LIVE,
            PropertyStatus.LIVE,
        ),
        _row(
            PropertyStatus.PENDING_VETTING,
            VettingDecision.REJECTED,
            PropertyStatus.REJECTED,
            "rejection_reason",
        ),
        _row(
            PropertyStatus.PENDING_DUPLICATE_REVIEW,
            DuplicateResolution.KEEP_BOTH,
            PropertyStatus.PENDING_VETTING,
        ),
        _row(
            PropertyStatus.PENDING_DUPLICATE_REVIEW,
            DuplicateResolution.KEEP_MASTER,
            PropertyStatus.REJECTED,
            "master_property_id",
        ),
        _row(
            PropertyStatus.PENDING_DUPLICATE_REVIEW,
            DuplicateResolution.REJECT_DUPLICATE,
            PropertyStatus.REJECTED,
            "rejection_reason",
        ),
    ]
)


def transition_for(action: Enum) -> Transition:
    for transition in TRANSITIONS.values():
        if type(transition.action) is type(action) and transition.action == action:
            return transition
    raise InvalidTransitionError(f"No transition defined for action {action!r}")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_fields(transition: Transition, payload: Mapping[str, Any]) -> list[str]:
    return [name for name in transition.required_fields if _is_blank(payload.get(name))]


def require_fields(transition: Transition, payload: Mapping[str, Any]) -> None:
    missing = missing_fields(transition, payload)
    if missing:
        raise FieldValidationError.missing(
            *missing,
            msg=f"Field required when action is '{transition.action.value}'",
        )


def check_target_invariants(target: PropertyStatus, values: Mapping[str, Any]) -> None:
    if target == PropertyStatus.LIVE and values.get("verified_at") is None:
        raise InvalidTransitionError("A live property must carry verified_at")
    if target == PropertyStatus.REJECTED and _is_blank(values.get("rejection_reason")):
        raise InvalidTransitionError("A rejected property must carry a rejection_reason")
