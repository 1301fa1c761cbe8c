import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Iterable, List, Optional

from fastapi import Request

from core.cache import cache
from core.event_publish import publish_event
from models.enums import (
    QUEUE_STATUS,
    AdminActionType,
    NotificationType,
    PropertyStatus,
)
from models.models import Property
from repos.admin_action_repo import AdminActionRepo
from repos.notification_repo import NotificationRepo
from schemas.schema import PropertyOut

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SideEffectResult:
    name: str
    ok: bool
    error: Optional[str] = None


@dataclass
class TransitionOutcome:
    """A committed status change plus whatever happened around it.

    ``property`` is a detached copy of the committed row; entries in
    ``side_effects`` only describe the follow-up writes.
    """

    property: PropertyOut
    previous_status: Optional[PropertyStatus] = None
    side_effects: List[SideEffectResult] = field(default_factory=list)

    @property
    def failures(self) -> List[str]:
        return [result.name for result in self.side_effects if not result.ok]


@dataclass(frozen=True)
class OwnerNotice:
    type: NotificationType
    title: str
    message: str
    data: dict = field(default_factory=dict)


@dataclass(frozen=True)
class AuditEntry:
    admin_id: uuid.UUID
    action_type: AdminActionType
    details: dict
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_request(
        cls,
        admin_id: uuid.UUID,
        action_type: AdminActionType,
        details: dict,
        request: Optional[Request] = None,
    ) -> "AuditEntry":
        ip_address = user_agent = None
        if request is not None:
            forwarded = request.headers.get("X-Forwarded-For", "")
            ip_address = forwarded.split(",")[0].strip() or (
                request.client.host if request.client else None
            )
            user_agent = request.headers.get("User-Agent")
        return cls(
            admin_id=admin_id,
            action_type=action_type,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )


def queue_generation_key(status: PropertyStatus) -> str:
    return f"validation_queue:{status.value}:gen"


class AsyncioPropertyStatus:
    """Best-effort work that follows a committed property transition.

    The committed row is copied into a ``PropertyOut`` before any follow-up
    write runs. A failed write rolls the session back and expires every
    loaded instance, so nothing below reads the ORM row after that point.
    """

    def __init__(self, db):
        self.notification_repo: NotificationRepo = NotificationRepo(db)
        self.admin_action_repo: AdminActionRepo = AdminActionRepo(db)
        self.publisher: Callable[[str, dict], Awaitable] = publish_event
        self.cache = cache

    async def _attempt(
        self, name: str, snapshot: PropertyOut, func: Callable[[], Awaitable]
    ) -> SideEffectResult:
        try:
            await func()
            return SideEffectResult(name=name, ok=True)
        except Exception as e:
            logger.error(
                f"Side effect '{name}' failed for property {snapshot.id}: {e}",
                exc_info=True,
                extra={
                    "side_effect": name,
                    "property_id": str(snapshot.id),
                    "property_status": snapshot.status.value,
                },
            )
            return SideEffectResult(name=name, ok=False, error=str(e))

    async def notify_owner(
        self, snapshot: PropertyOut, notice: OwnerNotice
    ) -> SideEffectResult:
        async def write():
            await self.notification_repo.create(
                user_id=snapshot.owner_id,
                type=notice.type,
                title=notice.title,
                message=notice.message,
                data={"property_id": str(snapshot.id), **notice.data},
            )

        return await self._attempt("notification", snapshot, write)

    async def record_admin_action(
        self, snapshot: PropertyOut, entry: AuditEntry
    ) -> SideEffectResult:
        async def write():
            await self.admin_action_repo.create(
                admin_id=entry.admin_id,
                action_type=entry.action_type,
                target_id=snapshot.id,
                details=entry.details,
                ip_address=entry.ip_address,
                user_agent=entry.user_agent,
            )

        return await self._attempt("audit", snapshot, write)

    async def publish_status_change(
        self,
        snapshot: PropertyOut,
        previous_status: PropertyStatus,
        actor_id: Optional[uuid.UUID],
        event_name: str = "property.status_changed",
    ) -> SideEffectResult:
        async def send():
            await self.publisher(
                event_name,
                {
                    "property_id": str(snapshot.id),
                    "owner_id": str(snapshot.owner_id),
                    "previous_status": previous_status.value,
                    "new_status": snapshot.status.value,
                    "actor_id": str(actor_id) if actor_id else None,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )

        return await self._attempt("event", snapshot, send)

    async def invalidate_queues(
        self, snapshot: PropertyOut, statuses: Iterable[PropertyStatus]
    ) -> SideEffectResult:
        queued = set(QUEUE_STATUS.values())

        async def bump():
            for status in statuses:
                if status in queued:
                    await self.cache.incr(queue_generation_key(status))

        return await self._attempt("queue_cache", snapshot, bump)

    async def listing_created(self, prop: Property) -> TransitionOutcome:
        snapshot = PropertyOut.model_validate(prop)
        outcome = TransitionOutcome(property=snapshot)

        async def send():
            await self.publisher(
                "property.created",
                {
                    "property_id": str(snapshot.id),
                    "owner_id": str(snapshot.owner_id),
                    "address": snapshot.address,
                    "status": snapshot.status.value,
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            )

        outcome.side_effects.append(await self._attempt("event", snapshot, send))
        outcome.side_effects.append(
            await self.invalidate_queues(snapshot, (snapshot.status,))
        )
        return outcome

    async def after_transition(
        self,
        prop: Property,
        previous_status: PropertyStatus,
        *,
        notice: Optional[OwnerNotice] = None,
        audit: Optional[AuditEntry] = None,
        actor_id: Optional[uuid.UUID] = None,
        event_name: str = "property.status_changed",
    ) -> TransitionOutcome:
        snapshot = PropertyOut.model_validate(prop)
        outcome = TransitionOutcome(property=snapshot, previous_status=previous_status)

        if audit is not None:
            outcome.side_effects.append(await self.record_admin_action(snapshot, audit))
        if notice is not None:
            outcome.side_effects.append(await self.notify_owner(snapshot, notice))
        outcome.side_effects.append(
            await self.publish_status_change(snapshot, previous_status, actor_id, event_name)
        )
        outcome.side_effects.append(
            await self.invalidate_queues(snapshot, (previous_status, snapshot.status))
        )

        if outcome.failures:
            logger.warning(
                f"Property {snapshot.id} moved {previous_status.value} -> "
                f"{snapshot.status.value} with failed side effects: "
                f"{', '.join(outcome.failures)}",
                extra={
                    "property_id": str(snapshot.id),
                    "side_effect_failures": outcome.failures,
                },
            )
        return outcome
