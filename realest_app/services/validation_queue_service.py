import logging
from datetime import datetime, timedelta, timezone

from core.breaker import breaker
from core.cache import cache
from core.check_permission import CheckRolePermission
from core.exception_handler import FieldValidationError
from core.mapper import ORMMapper
from core.paginate import PaginatePage
from core.settings import settings
from core.validate_enum import validate_enum
from fire_and_forget.property_status import queue_generation_key
from models.enums import (
    QUEUE_STATUS,
    REPORT_PERIOD_DAYS,
    PropertyStatus,
    QueueSort,
    ReportPeriod,
    ValidationQueue,
)
from repos.property_repo import PropertyRepo
from schemas.schema import PropertyOut, ValidationQueueOut, VettingReportOut

logger = logging.getLogger(__name__)


def _parse(value, enum_cls, field: str, location: str):
    try:
        return validate_enum(value, enum_cls, field=field)
    except ValueError as e:
        raise FieldValidationError.invalid(field, str(e), location=location)


class ValidationQueueService:
    def __init__(self, db):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.paginate: PaginatePage = PaginatePage()
        self.mapper: ORMMapper = ORMMapper()

    async def _generation(self, status: PropertyStatus) -> str:
        value = await cache.get(queue_generation_key(status))
        return str(value or 0)

    async def get_queue(
        self,
        queue: str,
        current_user,
        page: int = 1,
        per_page: int = 20,
        sort: str = "newest",
    ) -> ValidationQueueOut:
        await self.permission.check_admin(current_user)
        queue_name = _parse(queue, ValidationQueue, "queue", "path")
        order = _parse(sort, QueueSort, "sort", "query")
        status = QUEUE_STATUS[queue_name]

        async def handler():
            generation = await self._generation(status)
            cache_key = (
                f"validation_queue:{status.value}:{generation}:"
                f"{order.value}:{page}:{per_page}"
            )

            cached = await cache.get_json(cache_key)
            if cached:
                return ValidationQueueOut.model_validate(cached)

            items = await self.repo.list_by_status(
                status,
                offset=self.paginate.offset(page, per_page),
                limit=per_page,
                newest_first=order == QueueSort.NEWEST,
            )
            total = await self.repo.count_by_status(status)

            result = ValidationQueueOut(
                queue=queue_name.value,
                properties=self.mapper.many(items, PropertyOut),
                pagination=self.paginate.meta(page, per_page, total),
            )
            await cache.set_json(
                cache_key,
                result.model_dump(mode="json"),
                ttl=settings.QUEUE_CACHE_TTL,
            )
            return result

        return await breaker.call(handler)

    async def vetting_report(self, current_user, period: str = "30d") -> VettingReportOut:
        await self.permission.check_admin(current_user)
        report_period = _parse(period, ReportPeriod, "period", "query")

        async def handler():
            end_date = datetime.now(timezone.utc)
            start_date = end_date - timedelta(days=REPORT_PERIOD_DAYS[report_period])

            decisions = await self.repo.count_vetting_decisions(start_date)
            live = decisions.get(PropertyStatus.LIVE, 0)
            rejected = decisions.get(PropertyStatus.REJECTED, 0)
            total = live + rejected

            pending_counts = await self.repo.count_statuses(QUEUE_STATUS.values())

            return VettingReportOut(
                period=report_period.value,
                start_date=start_date,
                end_date=end_date,
                decisions={
                    PropertyStatus.LIVE.value: live,
                    PropertyStatus.REJECTED.value: rejected,
                },
                total_decided=total,
                approval_rate=round(live / total * 100, 2) if total else 0.0,
                pending={
                    queue.value: pending_counts.get(status, 0)
                    for queue, status in QUEUE_STATUS.items()
                },
            )

        return await breaker.call(handler)
