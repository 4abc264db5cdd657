import logging
import uuid
from typing import Callable

from core.check_permission import CheckRolePermission
from core.date_helper import utc_now
from core.errors import AlreadyExists, InvalidCredentials, InvalidInput, NotFound
from core.mapper import EntityMapper
from core.store import EntityStore
from core.validate_enum import validate_enum
from models.enums import UserRole
from models.models import User
from repos.auth_repo import AuthRepo
from schemas.schema import (
    LoginOut,
    PasswordUpdate,
    UserCreate,
    UserLogin,
    UserOut,
    UserUpdate,
)
from security.password_hasher import password_hasher
from security.tokens import access_tokens

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, store: EntityStore, clock: Callable = utc_now):
        self.store = store
        self.clock = clock
        self.repo: AuthRepo = AuthRepo(store)
        self.permission: CheckRolePermission = CheckRolePermission()
        self.mapper: EntityMapper = EntityMapper()

    async def _get_or_404(self, user_id: uuid.UUID) -> User:
        user = await self.repo.by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def register(self, data: UserCreate):
        hashed = await password_hasher.hash(data.password)
        async with self.store.locks.hold(f"email:{data.email}"):
            if await self.repo.get_by_email(data.email):
                raise AlreadyExists("User with this email already exists")

            now = self.clock()
            user = User(
                email=data.email,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
                role=data.role,
                hashed_password=hashed,
                created_at=now,
                updated_at=now,
            )
            user.normalize()
            await self.repo.create(user)

        logger.info("user.registered user_id=%s role=%s", user.id, user.role.value)
        return self.mapper.one(user, UserOut)

    async def login(self, data: UserLogin):
        user = await self.repo.get_by_email(data.email)
        if not user:
            raise InvalidCredentials("Invalid email or password")
        if not await password_hasher.verify(data.password, user.hashed_password):
            logger.warning("Failed login for user_id=%s", user.id)
            raise InvalidCredentials("Invalid email or password")

        token = access_tokens.issue(user, self.clock())
        logger.info("user.logged_in user_id=%s", user.id)
        return LoginOut(user=self.mapper.one(user, UserOut), token=token)

    async def verify_token(self, token: str) -> dict:
        return access_tokens.decode(token)

    async def get_user(self, user_id: uuid.UUID):
        return self.mapper.one(await self._get_or_404(user_id), UserOut)

    async def get_all_users(self):
        return self.mapper.many(await self.repo.get_all(), UserOut)

    async def get_users_by_role(self, role: str):
        role = validate_enum(role, UserRole, field="role")
        return self.mapper.many(await self.repo.get_by_role(role), UserOut)

    async def update_user(self, user_id: uuid.UUID, data: UserUpdate):
        update_data = data.changes()
        if not update_data:
            raise InvalidInput("No fields provided for update.")

        await self._get_or_404(user_id)
        email = update_data.get("email")
        async with self.store.locks.hold(f"user:{user_id}", f"email:{email}"):
            if email:
                existing = await self.repo.get_by_email(email)
                if existing and existing.id != user_id:
                    raise AlreadyExists("User with this email already exists")
            user = await self.repo.update(user_id, update_data, self.clock())

        logger.info("user.updated user_id=%s", user_id)
        return self.mapper.one(user, UserOut)

    async def update_password(self, user_id: uuid.UUID, data: PasswordUpdate):
        user = await self._get_or_404(user_id)
        if not await password_hasher.verify(
            data.current_password, user.hashed_password
        ):
            raise InvalidCredentials("Current password is incorrect")

        hashed = await password_hasher.hash(data.new_password)
        await self.repo.update(user_id, {"hashed_password": hashed}, self.clock())
        logger.info("user.password_changed user_id=%s", user_id)
        return {"message": "Password updated successfully"}

    async def update_user_role(
        self, user_id: uuid.UUID, role: str, current_user: User
    ):
        await self.permission.check_admin(
            current_user.role, "Only admins can change user roles"
        )
        new_role = validate_enum(role, UserRole, field="role")
        await self._get_or_404(user_id)
        user = await self.repo.update(user_id, {"role": new_role}, self.clock())

        logger.info("user.role_changed user_id=%s role=%s", user_id, new_role.value)
        return self.mapper.one(user, UserOut)

    async def delete_user(self, user_id: uuid.UUID, current_user: User):
        await self.permission.check_admin(
            current_user.role, "Only admins can delete users"
        )
        if not await self.repo.delete(user_id):
            raise NotFound("User not found")

        logger.info("user.deleted user_id=%s", user_id)
        return {"message": "User deleted successfully"}
