import logging
import uuid
from datetime import datetime
from typing import Iterable, List, Optional

from fastapi import HTTPException
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from core.title_matcher import escape_like
from models.enums import PropertyStatus
from models.models import Property

logger = logging.getLogger(__name__)


class PropertyRepo:
    def __init__(self, db):
        self.db = db

    async def get_by_id(self, property_id: uuid.UUID) -> Optional[Property]:
        result = await self.db.execute(
            select(Property).where(Property.id == property_id)
        )
        return result.scalar_one_or_none()

    async def create(self, **values) -> Property:
        new_property = Property(**values)
        self.db.add(new_property)
        try:
            await self.db.commit()
            await self.db.refresh(new_property)
            return new_property
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("Failed to create property")
            raise HTTPException(status_code=500, detail="Failed to create property")

    async def apply_transition(
        self,
        property_id: uuid.UUID,
        expected_status: PropertyStatus,
        values: dict,
    ) -> Optional[Property]:
        """Move a property out of ``expected_status`` in one statement.

        Returns ``None`` when no row with that id currently holds
        ``expected_status``; the caller cannot tell absence from a lost race.
        """
        stmt = (
            update(Property)
            .where(
                Property.id == property_id,
                Property.status == expected_status,
            )
            .values(**values)
            .returning(Property)
        )

        try:
            result = await self.db.execute(stmt)
            updated = result.scalar_one_or_none()
            await self.db.commit()
            return updated
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception(
                f"Failed to move property {property_id} out of {expected_status.value}"
            )
            raise HTTPException(status_code=500, detail="Failed to update property status")

    async def find_exact_address(self, target: Property, limit: int) -> List[Property]:
        result = await self.db.execute(
            select(Property)
            .where(
                Property.address == target.address,
                Property.state == target.state,
                Property.id != target.id,
                Property.status != PropertyStatus.REJECTED,
            )
            .order_by(Property.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_nearby(
        self,
        target: Property,
        latitude: float,
        longitude: float,
        radius_meters: float,
        limit: int,
    ) -> List[Property]:
        point = func.ST_GeogFromText(f"SRID=4326;POINT({longitude} {latitude})")
        result = await self.db.execute(
            select(Property)
            .where(
                Property.location.is_not(None),
                Property.id != target.id,
                func.ST_DWithin(Property.location, point, radius_meters),
            )
            .order_by(func.ST_Distance(Property.location, point))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_similar_titles(
        self, target: Property, tokens: Iterable[str], limit: int
    ) -> List[Property]:
        patterns = [
            Property.title.ilike(f"%{escape_like(token)}%", escape="\\")
            for token in tokens
        ]
        if not patterns:
            return []

        conditions = [
            Property.state == target.state,
            Property.id != target.id,
            Property.status != PropertyStatus.REJECTED,
            or_(*patterns),
        ]
        if target.lga:
            conditions.append(Property.lga == target.lga)

        result = await self.db.execute(
            select(Property)
            .where(*conditions)
            .order_by(Property.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_by_status(
        self,
        status: PropertyStatus,
        offset: int,
        limit: int,
        newest_first: bool = True,
    ) -> List[Property]:
        order = Property.created_at.desc() if newest_first else Property.created_at.asc()
        result = await self.db.execute(
            select(Property)
            .where(Property.status == status)
            .order_by(order, Property.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status(self, status: PropertyStatus) -> int:
        result = await self.db.execute(
            select(func.count(Property.id)).where(Property.status == status)
        )
        return result.scalar_one()

    async def count_statuses(self, statuses: Iterable[PropertyStatus]) -> dict:
        result = await self.db.execute(
            select(Property.status, func.count(Property.id))
            .where(Property.status.in_(list(statuses)))
            .group_by(Property.status)
        )
        return {status: count for status, count in result.all()}

    async def count_vetting_decisions(self, since: datetime) -> dict:
        result = await self.db.execute(
            select(Property.status, func.count(Property.id))
            .where(
                Property.vetted_at.is_not(None),
                Property.vetted_at >= since,
                Property.status.in_([PropertyStatus.LIVE, PropertyStatus.REJECTED]),
            )
            .group_by(Property.status)
        )
        return {status: count for status, count in result.all()}
