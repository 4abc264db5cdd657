import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.throttling import rate_limiter_manager

logger = logging.getLogger("startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Waiting for application startup...")

    try:
        await rate_limiter_manager.connect()
    except Exception:
        logger.exception("Rate limiter connection failed")

    logger.info(
        "Application startup complete. users=%d properties=%d agreements=%d",
        len(app.state.store.users),
        len(app.state.store.properties),
        len(app.state.store.agreements),
    )

    yield

    try:
        await rate_limiter_manager.close()
    except Exception:
        logger.exception("Failed to close rate limiter connection")
