import uuid

from models.enums import UserRole

from .errors import NotAuthorized


class CheckRolePermission:
    async def check_admin(self, role: UserRole, detail: str = "Access Denied."):
        if role != UserRole.ADMIN:
            raise NotAuthorized(detail)

    async def check_roles(self, role: UserRole, allowed: set, detail: str = "Access Denied"):
        if role not in allowed:
            raise NotAuthorized(detail)

    async def check_owner_or_admin(
        self,
        owner_id: uuid.UUID,
        caller_id: uuid.UUID,
        caller_role: UserRole,
        detail: str = "Not authorized",
    ):
        if caller_id != owner_id and caller_role != UserRole.ADMIN:
            raise NotAuthorized(detail)
