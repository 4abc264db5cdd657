import uuid
from datetime import datetime, timedelta

import jwt

from core.date_helper import utc_now
from core.errors import InvalidCredentials
from core.settings import settings


class AccessTokens:
    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
        expire_minutes: int | None = None,
    ):
        self.secret_key = secret_key or settings.JWT_SECRET_KEY
        self.algorithm = algorithm or settings.ALGORITHM
        self.expire_minutes = expire_minutes or settings.ACCESS_EXPIRE_MINUTES

    def issue(self, user, now: datetime | None = None) -> str:
        exp = (now or utc_now()) + timedelta(minutes=self.expire_minutes)
        return jwt.encode(
            {
                "sub": str(user.id),
                "email": user.email,
                "role": user.role.value,
                "type": "access",
                "exp": exp,
            },
            self.secret_key,
            algorithm=self.algorithm,
        )

    def decode(self, token: str) -> dict:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise InvalidCredentials("Token expired")
        except jwt.InvalidTokenError:
            raise InvalidCredentials("Invalid or expired token")

        if payload.get("type") != "access" or not payload.get("sub"):
            raise InvalidCredentials("Invalid token type")
        return payload

    def user_id(self, token: str) -> uuid.UUID:
        payload = self.decode(token)
        try:
            return uuid.UUID(payload["sub"])
        except ValueError:
            raise InvalidCredentials("Invalid user ID format in token")


access_tokens = AccessTokens()
