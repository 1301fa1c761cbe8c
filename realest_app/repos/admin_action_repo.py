import uuid
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from models.enums import AdminActionType
from models.models import AdminAction


class AdminActionRepo:
    def __init__(self, db):
        self.db = db

    async def create(
        self,
        admin_id: uuid.UUID,
        action_type: AdminActionType,
        target_id: uuid.UUID,
        details: dict,
        target_type: str = "property",
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AdminAction:
        record = AdminAction(
            admin_id=admin_id,
            action_type=action_type,
            target_type=target_type,
            target_id=target_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.db.add(record)
        try:
            await self.db.commit()
            return record
        except SQLAlchemyError:
            await self.db.rollback()
            raise
