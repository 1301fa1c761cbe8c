"""
HTTP tests for the verification endpoints.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

import fire_and_forget.property_status as side_effect_module
import services.ml_validation_service as ml_module
import services.notification_service as notification_module
import services.property_service as property_module
import services.vetting_service as vetting_module
from app import app
from conftest import make_property
from core.get_current_user import get_current_user
from core.get_db import get_db_async
from models.enums import NotificationType, PropertyStatus
from models.models import Notification


async def no_db():
    yield None


@pytest.fixture
def client():
    app.dependency_overrides[get_db_async] = no_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def login():
    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user

    return _login


@pytest.fixture
def fake_store(monkeypatch, property_repo, side_effect_fakes):
    monkeypatch.setattr(ml_module, "PropertyRepo", lambda db: property_repo)
    monkeypatch.setattr(vetting_module, "PropertyRepo", lambda db: property_repo)
    monkeypatch.setattr(
        side_effect_module, "NotificationRepo", lambda db: side_effect_fakes.notifications
    )
    monkeypatch.setattr(
        side_effect_module, "AdminActionRepo", lambda db: side_effect_fakes.audit
    )
    monkeypatch.setattr(side_effect_module, "publish_event", side_effect_fakes.publisher)
    monkeypatch.setattr(side_effect_module, "cache", side_effect_fakes.cache)
    return property_repo


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestAuthentication:
    """Tests for the JWT seam."""

    def test_missing_token_is_unauthenticated(self, client):
        response = client.get(f"/v1/properties/{uuid.uuid4()}/duplicate-check")
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}

    def test_garbage_token_is_rejected(self, client):
        response = client.post(
            f"/v1/admin/validation/ml/{uuid.uuid4()}",
            json={"action": "approve"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid token"}

    def test_non_admin_is_forbidden(self, client, login, owner):
        login(owner)
        response = client.put(
            f"/v1/admin/properties/{uuid.uuid4()}/vet", json={"status": "live"}
        )
        assert response.status_code == 403
        assert response.json() == {"detail": "Access Denied."}


class TestValidationErrors:
    """Tests for the validation error body."""

    def test_unknown_ml_action(self, client, login, admin):
        login(admin)
        response = client.post(
            f"/v1/admin/validation/ml/{uuid.uuid4()}", json={"action": "maybe"}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Validation failed"
        assert body["details"][0]["loc"] == ["body", "action"]

    def test_confidence_out_of_range(self, client, login, admin):
        login(admin)
        response = client.post(
            f"/v1/admin/validation/ml/{uuid.uuid4()}",
            json={"action": "approve", "ml_confidence_score": 1.5},
        )

        assert response.status_code == 422
        assert response.json()["details"][0]["loc"] == ["body", "ml_confidence_score"]

    def test_rejection_without_reason(self, client, login, admin):
        login(admin)
        response = client.put(
            f"/v1/admin/properties/{uuid.uuid4()}/vet", json={"status": "rejected"}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["details"] == [
            {
                "loc": ["body", "rejection_reason"],
                "msg": "Field required when action is 'rejected'",
                "type": "missing",
            }
        ]

    def test_bad_queue_page(self, client, login, admin):
        login(admin)
        response = client.get("/v1/admin/validation/ml?page=0")
        assert response.status_code == 422


class TestTransitions:
    """End-to-end transitions against the in-memory store."""

    def test_ml_approve_then_vet_live(self, client, login, admin, fake_store, side_effect_fakes):
        prop = make_property()
        fake_store.add(prop)
        login(admin)

        response = client.post(
            f"/v1/admin/validation/ml/{prop.id}", json={"action": "approve"}
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert response.json()["success"] is True
        assert data["new_status"] == "pending_vetting"
        assert data["action_taken"] == "approve"
        assert data["property"]["ml_confidence_score"] == 0.8
        assert data["side_effect_failures"] == []

        response = client.put(f"/v1/admin/properties/{prop.id}/vet", json={"status": "live"})
        assert response.status_code == 200
        body = response.json()
        assert body["data"]["status"] == "live"
        assert body["data"]["verified_at"] is not None
        assert body["message"] == "Property approved successfully"

        assert len(side_effect_fakes.audit.records) == 2
        assert len(side_effect_fakes.notifications.records) == 2

    def test_second_decision_is_not_found(self, client, login, admin, fake_store):
        prop = make_property(status=PropertyStatus.PENDING_VETTING)
        fake_store.add(prop)
        login(admin)

        first = client.put(
            f"/v1/admin/properties/{prop.id}/vet",
            json={"status": "rejected", "rejection_reason": "Fake photos"},
        )
        second = client.put(f"/v1/admin/properties/{prop.id}/vet", json={"status": "live"})

        assert first.status_code == 200
        assert second.status_code == 404
        assert second.json() == {"detail": "Property not found or not pending vetting"}

    def test_side_effect_failure_still_succeeds(
        self, client, login, admin, fake_store, side_effect_fakes
    ):
        prop = make_property()
        fake_store.add(prop)
        side_effect_fakes.notifications.error = RuntimeError("notifications down")
        login(admin)

        response = client.post(f"/v1/admin/validation/ml/{prop.id}", json={"action": "reject"})

        assert response.status_code == 200
        assert response.json()["data"]["side_effect_failures"] == ["notification"]
        assert prop.status == PropertyStatus.REJECTED

    def test_audit_records_request_metadata(
        self, client, login, admin, fake_store, side_effect_fakes
    ):
        prop = make_property()
        fake_store.add(prop)
        login(admin)

        client.post(
            f"/v1/admin/validation/ml/{prop.id}",
            json={"action": "approve"},
            headers={"User-Agent": "vetting-console/1.0", "X-Forwarded-For": "41.58.1.2"},
        )

        audit = side_effect_fakes.audit.records[0]
        assert audit["ip_address"] == "41.58.1.2"
        assert audit["user_agent"] == "vetting-console/1.0"


class FakeInbox:
    def __init__(self):
        self.items = []

    async def list_for_user(self, user_id, limit, offset, unread_only=False):
        return [n for n in self.items if n.user_id == user_id][offset:offset + limit]

    async def count_for_user(self, user_id, unread_only=False):
        return sum(
            1 for n in self.items
            if n.user_id == user_id and not (unread_only and n.is_read)
        )

    async def mark_all_read(self, user_id, read_at):
        unread = [n for n in self.items if n.user_id == user_id and not n.is_read]
        for n in unread:
            n.is_read, n.read_at = True, read_at
        return len(unread)


class TestOwnerAndInboxRoutes:
    """Collection routes mounted directly under /v1."""

    def test_collection_paths_are_registered(self):
        paths = {route.path for route in app.routes}
        assert "/v1/properties" in paths
        assert "/v1/properties/{property_id}/submit" in paths
        assert "/v1/notifications" in paths
        assert "/v1/notifications/mark-all-read" in paths

    def test_create_listing(
        self, client, login, owner, monkeypatch, property_repo, side_effect_fakes
    ):
        monkeypatch.setattr(property_module, "PropertyRepo", lambda db: property_repo)
        monkeypatch.setattr(side_effect_module, "publish_event", side_effect_fakes.publisher)
        monkeypatch.setattr(side_effect_module, "cache", side_effect_fakes.cache)
        login(owner)

        response = client.post(
            "/v1/properties",
            json={
                "title": "Spacious 3 Bedroom Flat",
                "address": "12 Adeola St, Lagos",
                "state": "Lagos",
                "submit": True,
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "pending_ml_validation"
        assert body["owner_id"] == str(owner.id)
        assert side_effect_fakes.publisher.events[0][0] == "property.created"

    def test_inbox_list_and_mark_all_read(self, client, login, owner, monkeypatch):
        inbox = FakeInbox()
        inbox.items.append(
            Notification(
                id=uuid.uuid4(),
                user_id=owner.id,
                type=NotificationType.PROPERTY_STATUS,
                title="Property Verified",
                message="Your property is now live.",
                data={},
                is_read=False,
            )
        )
        monkeypatch.setattr(notification_module, "NotificationRepo", lambda db: inbox)
        login(owner)

        listed = client.get("/v1/notifications")
        assert listed.status_code == 200
        assert listed.json()["unread_count"] == 1
        assert listed.json()["notifications"][0]["title"] == "Property Verified"

        marked = client.post("/v1/notifications/mark-all-read")
        assert marked.status_code == 200
        assert marked.json() == {"success": True, "updated": 1}
