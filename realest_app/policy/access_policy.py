from models.enums import UserRole
from models.models import Property


class ModelPolicy:
    @staticmethod
    def is_admin(user) -> bool:
        return user is not None and user.role == UserRole.ADMIN

    @staticmethod
    def can_access_property(property: Property, user) -> bool:
        if user is None:
            return False
        return ModelPolicy.is_admin(user) or property.owner_id == user.id
