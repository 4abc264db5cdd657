import uuid

from fastapi import Depends, HTTPException, Request

from models.enums import UserRole
from models.models import User

from .store import EntityStore, get_store
from .validators import jwt_protect


async def get_current_user(
    request: Request,
    user_id: uuid.UUID = Depends(jwt_protect),
    store: EntityStore = Depends(get_store),
) -> User:
    user = store.users.get(user_id)
    if not user:
        raise HTTPException(status_code=401, detail="Not Authenticated")

    request.state.user = user
    return user


def require_roles(*roles: UserRole):
    allowed = set(roles)

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=403, detail="Access denied")
        return current_user

    return checker
