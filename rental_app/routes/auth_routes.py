import uuid

from fastapi import APIRouter, Depends, Response
from fastapi_utils.cbv import cbv

from core.get_current_user import get_current_user, require_roles
from core.safe_handler import safe_handler
from core.settings import settings
from core.store import EntityStore, get_store
from core.throttling import admin_rate_limit, auth_rate_limit, rate_limit
from models.enums import UserRole
from models.models import User
from schemas.schema import (
    LoginOut,
    MessageOut,
    PasswordUpdate,
    RoleUpdate,
    UserCreate,
    UserLogin,
    UserOut,
    UserUpdate,
)
from services.auth_service import AuthService

router = APIRouter(tags=["Users"])

admin_only = require_roles(UserRole.ADMIN)


@cbv(router=router)
class UserRoutes:
    @router.post(
        "/register",
        status_code=201,
        response_model=UserOut,
        dependencies=[auth_rate_limit],
    )
    @safe_handler
    async def register(
        self,
        data: UserCreate,
        store: EntityStore = Depends(get_store),
    ):
        return await AuthService(store).register(data)

    @router.post("/login", response_model=LoginOut, dependencies=[auth_rate_limit])
    @safe_handler
    async def login(
        self,
        data: UserLogin,
        response: Response,
        store: EntityStore = Depends(get_store),
    ):
        result = await AuthService(store).login(data)
        response.set_cookie(
            key="access_token",
            value=result.token,
            httponly=True,
            samesite="lax",
            max_age=settings.ACCESS_EXPIRE_MINUTES * 60,
        )
        return result

    @router.get("/profile", response_model=UserOut, dependencies=[rate_limit])
    @safe_handler
    async def get_profile(
        self,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await AuthService(store).get_user(current_user.id)

    @router.put("/profile", response_model=UserOut, dependencies=[rate_limit])
    @safe_handler
    async def update_profile(
        self,
        data: UserUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await AuthService(store).update_user(current_user.id, data)

    @router.put("/password", response_model=MessageOut, dependencies=[rate_limit])
    @safe_handler
    async def update_password(
        self,
        data: PasswordUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(get_current_user),
    ):
        return await AuthService(store).update_password(current_user.id, data)

    @router.get("/", response_model=list[UserOut], dependencies=[admin_rate_limit])
    @safe_handler
    async def get_all(
        self,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await AuthService(store).get_all_users()

    @router.get(
        "/role/{role}", response_model=list[UserOut], dependencies=[admin_rate_limit]
    )
    @safe_handler
    async def get_by_role(
        self,
        role: str,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await AuthService(store).get_users_by_role(role)

    @router.get("/{user_id}", response_model=UserOut, dependencies=[admin_rate_limit])
    @safe_handler
    async def get_user(
        self,
        user_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await AuthService(store).get_user(user_id)

    @router.put("/{user_id}", response_model=UserOut, dependencies=[admin_rate_limit])
    @safe_handler
    async def update_user(
        self,
        user_id: uuid.UUID,
        data: UserUpdate,
        store: EntityStore = Depends(get_store),
        _: User = Depends(admin_only),
    ):
        return await AuthService(store).update_user(user_id, data)

    @router.put(
        "/{user_id}/role", response_model=UserOut, dependencies=[admin_rate_limit]
    )
    @safe_handler
    async def update_role(
        self,
        user_id: uuid.UUID,
        data: RoleUpdate,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(admin_only),
    ):
        return await AuthService(store).update_user_role(
            user_id, data.role, current_user
        )

    @router.delete(
        "/{user_id}", response_model=MessageOut, dependencies=[admin_rate_limit]
    )
    @safe_handler
    async def delete_user(
        self,
        user_id: uuid.UUID,
        store: EntityStore = Depends(get_store),
        current_user: User = Depends(admin_only),
    ):
        return await AuthService(store).delete_user(user_id, current_user)
