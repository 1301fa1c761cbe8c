from fastapi import HTTPException

from models.enums import UserRole


class CheckRolePermission:
    LISTING_ROLES = frozenset({UserRole.OWNER, UserRole.AGENT, UserRole.ADMIN})

    @staticmethod
    def has_role(current_user, *roles: UserRole) -> bool:
        return current_user is not None and current_user.role in roles

    async def require_role(self, current_user, *roles: UserRole):
        if current_user is None:
            raise HTTPException(status_code=401, detail="Not Authenticated")
        if not self.has_role(current_user, *roles):
            raise HTTPException(status_code=403, detail="Access Denied.")

    async def check_admin(self, current_user):
        await self.require_role(current_user, UserRole.ADMIN)

    async def check_can_list(self, current_user):
        await self.require_role(current_user, *self.LISTING_ROLES)
