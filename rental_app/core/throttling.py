import logging

from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter
from redis.asyncio import from_url

from .settings import settings

logger = logging.getLogger(__name__)


class RateLimitManager:
    def __init__(self):
        self.redis = None

    async def connect(self):
        if not settings.RATE_LIMIT_REDIS_URL:
            logger.info("RATE_LIMIT_REDIS_URL not set, rate limiting disabled.")
            return
        try:
            self.redis = from_url(
                settings.RATE_LIMIT_REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
            )
            await FastAPILimiter.init(self.redis, identifier=self.user_or_ip)
            logger.info("Rate limiter initialized successfully.")
        except Exception as e:
            self.redis = None
            logger.error(f"Rate limiter initialization failed: {e}")

    async def close(self):
        if self.redis is not None:
            await FastAPILimiter.close()
            self.redis = None

    @staticmethod
    async def limit_exceeded_handler(request: Request, exc):
        return JSONResponse(
            status_code=429,
            content={"detail": "Limit exceeded. Please try again later."},
        )

    async def user_or_ip(self, request: Request) -> str:
        user = getattr(request.state, "user", None)
        user_id = getattr(user, "id", None)
        if user_id is not None:
            return f"user:{user_id}"

        if request.client and request.client.host:
            return f"ip:{request.client.host}"

        return "anonymous"


rate_limiter_manager = RateLimitManager()


class Throttle:
    """RateLimiter that lets every request through until redis is connected."""

    def __init__(self, times: int, seconds: int):
        self.limiter = RateLimiter(
            times=times, seconds=seconds, identifier=rate_limiter_manager.user_or_ip
        )

    async def __call__(self, request: Request, response: Response):
        if FastAPILimiter.redis is None:
            return
        await self.limiter(request, response)


rate_limit = Depends(
    Throttle(times=settings.RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS)
)
auth_rate_limit = Depends(
    Throttle(
        times=settings.AUTH_RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
    )
)
admin_rate_limit = Depends(
    Throttle(
        times=settings.ADMIN_RATE_LIMIT_TIMES, seconds=settings.RATE_LIMIT_SECONDS
    )
)
