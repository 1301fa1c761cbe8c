"""
Pytest configuration and shared fixtures.

Services are exercised against in-memory repositories; repositories against a
session that records statements instead of talking to PostgreSQL.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

import pytest

from core.breaker import breaker
from fire_and_forget.property_status import AsyncioPropertyStatus
from models.enums import PropertyStatus, UserRole
from models.models import Property, User
from models.shape import make_point


def make_user(role: UserRole = UserRole.OWNER, **overrides) -> User:
    values = {
        "id": uuid.uuid4(),
        "full_name": f"Test {role.value.title()}",
        "email": f"{uuid.uuid4().hex[:8]}@realest.test",
        "role": role,
        "is_active": True,
    }
    values.update(overrides)
    return User(**values)


def make_property(
    owner: Optional[User] = None,
    status: PropertyStatus = PropertyStatus.PENDING_ML_VALIDATION,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    **overrides,
) -> Property:
    values = {
        "id": uuid.uuid4(),
        "owner_id": owner.id if owner else uuid.uuid4(),
        "title": "Spacious 3 Bedroom Flat",
        "address": "12 Adeola St, Lagos",
        "state": "Lagos",
        "lga": "Eti-Osa",
        "status": status,
        "flagged_as_duplicate": False,
        "created_at": datetime.now(timezone.utc),
        "updated_at": datetime.now(timezone.utc),
    }
    if latitude is not None and longitude is not None:
        values["location"] = make_point(latitude, longitude)
    values.update(overrides)
    return Property(**values)


class FakePropertyRepo:
    def __init__(self, properties=()):
        self.items = {prop.id: prop for prop in properties}
        self.nearby = []
        self.calls = []
        self.transition_error: Optional[Exception] = None

    def add(self, *properties):
        for prop in properties:
            self.items[prop.id] = prop

    async def get_by_id(self, property_id):
        return self.items.get(property_id)

    async def create(self, **values):
        values.setdefault("id", uuid.uuid4())
        values.setdefault("created_at", datetime.now(timezone.utc))
        values.setdefault("updated_at", datetime.now(timezone.utc))
        values.setdefault("flagged_as_duplicate", False)
        prop = Property(**values)
        self.add(prop)
        return prop

    async def apply_transition(self, property_id, expected_status, values):
        self.calls.append(("apply_transition", property_id, expected_status))
        if self.transition_error is not None:
            raise self.transition_error
        prop = self.items.get(property_id)
        if prop is None or prop.status != expected_status:
            return None
        for key, value in values.items():
            setattr(prop, key, value)
        return prop

    def _others(self, target):
        return [
            p for p in self.items.values()
            if p.id != target.id and p.status != PropertyStatus.REJECTED
        ]

    async def find_exact_address(self, target, limit):
        self.calls.append(("exact_address", target.id))
        return [
            p for p in self._others(target)
            if p.address == target.address and p.state == target.state
        ][:limit]

    async def find_nearby(self, target, latitude, longitude, radius_meters, limit):
        self.calls.append(("nearby", latitude, longitude, radius_meters))
        return self.nearby[:limit]

    async def find_similar_titles(self, target, tokens, limit):
        tokens = list(tokens)
        self.calls.append(("similar_titles", tuple(tokens)))
        return [
            p for p in self._others(target)
            if p.state == target.state
            and (not target.lga or p.lga == target.lga)
            and any(token in p.title.lower() for token in tokens)
        ][:limit]

    async def list_by_status(self, status, offset, limit, newest_first=True):
        items = sorted(
            (p for p in self.items.values() if p.status == status),
            key=lambda p: p.created_at,
            reverse=newest_first,
        )
        return items[offset:offset + limit]

    async def count_by_status(self, status):
        return sum(1 for p in self.items.values() if p.status == status)

    async def count_statuses(self, statuses):
        statuses = set(statuses)
        counts = {}
        for p in self.items.values():
            if p.status in statuses:
                counts[p.status] = counts.get(p.status, 0) + 1
        return counts

    async def count_vetting_decisions(self, since):
        counts = {}
        for p in self.items.values():
            if p.vetted_at is None or p.vetted_at < since:
                continue
            if p.status in (PropertyStatus.LIVE, PropertyStatus.REJECTED):
                counts[p.status] = counts.get(p.status, 0) + 1
        return counts


class FakeRecordRepo:
    """Stands in for the notification and audit repositories."""

    def __init__(self):
        self.records = []
        self.error: Optional[Exception] = None

    async def create(self, **values):
        if self.error is not None:
            raise self.error
        self.records.append(values)
        return values


class FakeCache:
    def __init__(self):
        self.store = {}
        self.incremented = []

    async def get(self, key):
        return self.store.get(key)

    async def incr(self, key):
        self.incremented.append(key)
        self.store[key] = int(self.store.get(key) or 0) + 1
        return self.store[key]

    async def get_json(self, key):
        return self.store.get(key)

    async def set_json(self, key, value, ttl=3600):
        self.store[key] = value


class FakePublisher:
    def __init__(self):
        self.events = []
        self.error: Optional[Exception] = None

    async def __call__(self, event_name, data):
        if self.error is not None:
            raise self.error
        self.events.append((event_name, data))


class SideEffectFakes:
    def __init__(self):
        self.notifications = FakeRecordRepo()
        self.audit = FakeRecordRepo()
        self.cache = FakeCache()
        self.publisher = FakePublisher()

    def build(self) -> AsyncioPropertyStatus:
        side_effects = AsyncioPropertyStatus(None)
        side_effects.notification_repo = self.notifications
        side_effects.admin_action_repo = self.audit
        side_effects.cache = self.cache
        side_effects.publisher = self.publisher
        return side_effects


class FakeResult:
    def __init__(self, rows=None, scalar=None):
        self.rows = rows or []
        self.scalar = scalar
        self.rowcount = len(self.rows)

    def scalar_one_or_none(self):
        return self.rows[0] if self.rows else None

    def scalar_one(self):
        return self.scalar

    def scalars(self):
        return self

    def all(self):
        return list(self.rows)


class RecordingSession:
    """Collects executed statements so tests can inspect the generated SQL."""

    def __init__(self, result: Optional[FakeResult] = None):
        self.statements = []
        self.result = result or FakeResult(scalar=0)
        self.error: Optional[Exception] = None
        self.committed = 0
        self.rolled_back = 0
        self.added = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        if self.error is not None:
            raise self.error
        return self.result

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.committed += 1

    async def rollback(self):
        self.rolled_back += 1

    async def refresh(self, obj):
        return None


@pytest.fixture(autouse=True)
def reset_breaker():
    breaker.reset()
    yield
    breaker.reset()


@pytest.fixture
def admin() -> User:
    return make_user(UserRole.ADMIN)


@pytest.fixture
def owner() -> User:
    return make_user(UserRole.OWNER)


@pytest.fixture
def stranger() -> User:
    return make_user(UserRole.USER)


@pytest.fixture
def property_repo() -> FakePropertyRepo:
    return FakePropertyRepo()


@pytest.fixture
def side_effect_fakes() -> SideEffectFakes:
    return SideEffectFakes()


@pytest.fixture
def recording_session() -> RecordingSession:
    return RecordingSession()


@pytest.fixture
def wire(property_repo, side_effect_fakes):
    """Point a service's repositories and side effects at the fakes."""

    def _wire(service):
        service.repo = property_repo
        if hasattr(service, "side_effects"):
            service.side_effects = side_effect_fakes.build()
        return service

    return _wire
