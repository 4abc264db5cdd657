import logging

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from core.catch_error_middleware import ErrorHandlerMiddleware
from core.errors import DomainError
from core.exception_handler import DomainErrorHandler, ValidationErrorHandler
from core.lifespan import lifespan
from core.settings import settings
from core.store import EntityStore
from core.throttling import rate_limiter_manager
from routes.admin_routes import router as admin_router
from routes.auth_routes import router as user_router
from routes.property_routes import router as property_router
from routes.rental_agreement_routes import router as agreement_router
from routes.tenant_routes import router as tenant_router

logging.basicConfig(level=logging.INFO)


def create_app(store: EntityStore | None = None) -> FastAPI:
    app = FastAPI(
        lifespan=lifespan,
        title=settings.PROJECT_NAME,
        exception_handlers={429: rate_limiter_manager.limit_exceeded_handler},
        version="1.0.0",
    )
    app.state.store = store if store is not None else EntityStore()

    prefix = settings.API_PREFIX
    app.include_router(user_router, prefix=f"{prefix}/users")
    app.include_router(property_router, prefix=f"{prefix}/properties")
    app.include_router(agreement_router, prefix=f"{prefix}/agreements")
    app.include_router(tenant_router, prefix=f"{prefix}/tenants")
    app.include_router(admin_router, prefix=f"{prefix}/admin")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_HOSTS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["System"])
    async def health_check():
        return {"status": "ok"}

    app.add_exception_handler(RequestValidationError, ValidationErrorHandler())
    app.add_exception_handler(DomainError, DomainErrorHandler())
    app.add_middleware(ErrorHandlerMiddleware)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8001)
