import logging
import uuid

from fastapi import HTTPException

from core.breaker import breaker
from core.mapper import ORMMapper
from core.settings import settings
from core.title_matcher import TitleMatchPolicy, title_policy
from models.enums import RiskLevel
from policy.access_policy import ModelPolicy
from repos.property_repo import PropertyRepo
from schemas.schema import DuplicateCandidateOut, DuplicateCheckOut, DuplicateGroups

logger = logging.getLogger(__name__)

RECOMMENDATIONS = {
    RiskLevel.HIGH: [
        "Contact RealEST support to review potential duplicate",
        "Consider modifying property details",
    ],
    RiskLevel.MEDIUM: [
        "Review similar properties to ensure this is unique",
        "Consider adding more specific details",
    ],
    RiskLevel.LOW: [
        "Property appears unique - proceed with listing",
    ],
}


def classify_risk(total: int) -> RiskLevel:
    if total >= 3:
        return RiskLevel.HIGH
    if total >= 1:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class DuplicateService:
    def __init__(self, db, title_matcher: TitleMatchPolicy = title_policy):
        self.repo: PropertyRepo = PropertyRepo(db)
        self.policy: ModelPolicy = ModelPolicy()
        self.mapper: ORMMapper = ORMMapper()
        self.title_matcher = title_matcher

    async def check_duplicates(self, property_id: uuid.UUID, current_user) -> DuplicateCheckOut:
        async def handler():
            prop = await self.repo.get_by_id(property_id)
            if not prop:
                raise HTTPException(status_code=404, detail="Property not found")
            if not self.policy.can_access_property(prop, current_user):
                raise HTTPException(status_code=403, detail="Access Denied.")

            limit = settings.DUPLICATE_RESULT_LIMIT

            exact = await self.repo.find_exact_address(prop, limit)

            nearby = []
            coords = prop.coordinates
            if coords:
                nearby = await self.repo.find_nearby(
                    prop,
                    latitude=coords["latitude"],
                    longitude=coords["longitude"],
                    radius_meters=settings.DUPLICATE_RADIUS_METERS,
                    limit=limit,
                )

            similar = []
            tokens = self.title_matcher.search_tokens(prop.title)
            if tokens:
                similar = await self.repo.find_similar_titles(prop, tokens, limit)

            total = len(exact) + len(nearby) + len(similar)
            risk_level = classify_risk(total)
            logger.info(
                f"Duplicate check for property {prop.id}: {total} candidates, risk {risk_level.value}"
            )

            return DuplicateCheckOut(
                property_id=prop.id,
                risk_level=risk_level,
                total_duplicates=total,
                duplicates=DuplicateGroups(
                    exact_address=self.mapper.many(exact, DuplicateCandidateOut),
                    nearby_properties=self.mapper.many(nearby, DuplicateCandidateOut),
                    similar_titles=self.mapper.many(similar, DuplicateCandidateOut),
                ),
                recommendations=list(RECOMMENDATIONS[risk_level]),
            )

        return await breaker.call(handler)
