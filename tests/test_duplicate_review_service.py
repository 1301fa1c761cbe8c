"""
Unit tests for resolving properties held for duplicate review.
"""

import uuid

import pytest
from fastapi import HTTPException

from conftest import make_property
from core.exception_handler import FieldValidationError
from models.enums import (
    AdminActionType,
    DuplicateResolution,
    NotificationType,
    PropertyStatus,
)
from schemas.schema import DuplicateResolutionSchema
from services.duplicate_review_service import DuplicateReviewService


@pytest.fixture
def service(wire):
    return wire(DuplicateReviewService(None))


def flagged(**kwargs):
    return make_property(
        status=PropertyStatus.PENDING_DUPLICATE_REVIEW,
        flagged_as_duplicate=True,
        **kwargs,
    )


class TestResolve:
    """Tests for DuplicateReviewService.resolve."""

    async def test_keep_both_moves_to_vetting(
        self, service, property_repo, side_effect_fakes, admin
    ):
        prop = flagged()
        property_repo.add(prop)

        response = await service.resolve(
            prop.id, DuplicateResolutionSchema(action=DuplicateResolution.KEEP_BOTH), admin
        )

        assert prop.status == PropertyStatus.PENDING_VETTING
        assert prop.flagged_as_duplicate is False
        assert prop.duplicate_resolution == DuplicateResolution.KEEP_BOTH
        assert prop.duplicate_resolved_at is not None
        assert response.side_effect_failures == []

        audit = side_effect_fakes.audit.records[0]
        assert audit["action_type"] == AdminActionType.DUPLICATE_RESOLUTION
        assert side_effect_fakes.notifications.records[0]["type"] == (
            NotificationType.DUPLICATE_RESOLUTION
        )

    async def test_keep_master_rejects_and_links(
        self, service, property_repo, side_effect_fakes, admin
    ):
        master = make_property(status=PropertyStatus.LIVE)
        prop = flagged(title="Ocean View Apartment")
        property_repo.add(master, prop)

        await service.resolve(
            prop.id,
            DuplicateResolutionSchema(
                action=DuplicateResolution.KEEP_MASTER, master_property_id=master.id
            ),
            admin,
        )

        assert prop.status == PropertyStatus.REJECTED
        assert prop.duplicate_of_id == master.id
        assert prop.rejection_reason == f"Duplicate of property {master.id}"
        assert master.status == PropertyStatus.LIVE
        notice = side_effect_fakes.notifications.records[0]
        assert notice["title"] == "Property Marked as Duplicate"
        assert audit_master(side_effect_fakes) == str(master.id)

    async def test_keep_master_requires_master_id(self, service, property_repo, admin):
        prop = flagged()
        property_repo.add(prop)

        with pytest.raises(FieldValidationError) as exc:
            await service.resolve(
                prop.id,
                DuplicateResolutionSchema(action=DuplicateResolution.KEEP_MASTER),
                admin,
            )

        assert exc.value.errors[0]["loc"] == ["body", "master_property_id"]
        assert prop.status == PropertyStatus.PENDING_DUPLICATE_REVIEW

    async def test_keep_master_rejects_self_reference(self, service, property_repo, admin):
        prop = flagged()
        property_repo.add(prop)

        with pytest.raises(FieldValidationError):
            await service.resolve(
                prop.id,
                DuplicateResolutionSchema(
                    action=DuplicateResolution.KEEP_MASTER, master_property_id=prop.id
                ),
                admin,
            )
        assert prop.status == PropertyStatus.PENDING_DUPLICATE_REVIEW

    async def test_keep_master_with_unknown_master(self, service, property_repo, admin):
        prop = flagged()
        property_repo.add(prop)

        with pytest.raises(HTTPException) as exc:
            await service.resolve(
                prop.id,
                DuplicateResolutionSchema(
                    action=DuplicateResolution.KEEP_MASTER,
                    master_property_id=uuid.uuid4(),
                ),
                admin,
            )

        assert exc.value.status_code == 404
        assert exc.value.detail == "Master property not found"
        assert prop.status == PropertyStatus.PENDING_DUPLICATE_REVIEW

    async def test_reject_duplicate_requires_reason(self, service, property_repo, admin):
        prop = flagged()
        property_repo.add(prop)

        with pytest.raises(FieldValidationError) as exc:
            await service.resolve(
                prop.id,
                DuplicateResolutionSchema(action=DuplicateResolution.REJECT_DUPLICATE),
                admin,
            )

        assert exc.value.errors[0]["loc"] == ["body", "rejection_reason"]

    async def test_reject_duplicate(self, service, property_repo, side_effect_fakes, admin):
        prop = flagged(title="Ocean View Apartment")
        property_repo.add(prop)

        await service.resolve(
            prop.id,
            DuplicateResolutionSchema(
                action=DuplicateResolution.REJECT_DUPLICATE,
                rejection_reason="Same unit listed twice",
            ),
            admin,
        )

        assert prop.status == PropertyStatus.REJECTED
        assert prop.rejection_reason == "Same unit listed twice"
        assert side_effect_fakes.notifications.records[0]["message"] == (
            'Your property "Ocean View Apartment" has been rejected as a duplicate. '
            "Reason: Same unit listed twice"
        )

    async def test_not_in_review_is_not_found(self, service, property_repo, admin):
        prop = make_property(status=PropertyStatus.PENDING_VETTING)
        property_repo.add(prop)

        with pytest.raises(HTTPException) as exc:
            await service.resolve(
                prop.id,
                DuplicateResolutionSchema(action=DuplicateResolution.KEEP_BOTH),
                admin,
            )

        assert exc.value.status_code == 404
        assert prop.status == PropertyStatus.PENDING_VETTING


def audit_master(fakes):
    return fakes.audit.records[0]["details"]["master_property_id"]
