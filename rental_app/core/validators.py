import uuid

from fastapi import HTTPException, Request

from security.tokens import access_tokens

from .errors import InvalidCredentials


def extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token:
        return token.strip()
    return request.cookies.get("access_token")


async def jwt_protect(request: Request) -> uuid.UUID:
    token = extract_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        return access_tokens.user_id(token)
    except InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=e.detail)
