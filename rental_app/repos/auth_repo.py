import uuid
from typing import List, Optional

from core.store import EntityStore
from models.enums import UserRole
from models.models import User


class AuthRepo:
    def __init__(self, store: EntityStore):
        self.store = store
        self.users = store.users

    async def by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self.users.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        return self.users.get_by_email(email)

    async def get_all(self) -> List[User]:
        return self.users.get_all()

    async def get_by_role(self, role: UserRole) -> List[User]:
        return self.users.get_by_predicate(lambda user: user.role == role)

    async def create(self, user: User) -> User:
        return self.users.create(user)

    async def update(self, user_id: uuid.UUID, fields: dict, now=None) -> User | None:
        return self.users.update(user_id, fields, now)

    async def delete(self, user_id: uuid.UUID) -> bool:
        return self.users.delete(user_id)
