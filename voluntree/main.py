from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from voluntree.core.config import settings
from voluntree.core.exceptions import VoluntreeException
from voluntree.core.logging import setup_logging
from voluntree.db.base import Base
from voluntree.db.session import engine
from voluntree.routers import auth, health, users

logger = logging.getLogger(__name__)


def _field_errors(exc: RequestValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "body", error.get("msg", "invalid"))
    return errors


def create_app() -> FastAPI:
    setup_logging(settings.LOG_LEVEL)
    settings.validate_runtime_security()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        if settings.AUTO_CREATE_TABLES:
            import voluntree.models  # noqa: F401

            Base.metadata.create_all(bind=engine)
            logger.info("Database tables ensured")
        yield

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(users.router, prefix="/api/v1/users", tags=["users"])
    app.include_router(auth.router, prefix="/api/v1/users", tags=["auth"])
    app.include_router(health.router, prefix="/api/v1", tags=["health"])

    @app.exception_handler(VoluntreeException)
    async def handle_voluntree_exception(_: Request, exc: VoluntreeException) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        content = {
            "statusCode": 400,
            "data": None,
            "message": "validation_error",
            "success": False,
            "errorCode": "VALIDATION_ERROR",
            "details": {"errors": _field_errors(exc)},
        }
        return JSONResponse(status_code=400, content=content)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        content = {
            "statusCode": 500,
            "data": None,
            "message": "internal_error",
            "success": False,
            "errorCode": "INTERNAL_ERROR",
            "details": {},
        }
        return JSONResponse(status_code=500, content=content)

    return app


app = create_app()
