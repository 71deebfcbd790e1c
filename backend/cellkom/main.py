from __future__ import annotations

import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.docs import get_swagger_ui_html
from fastapi.responses import JSONResponse
from sqlalchemy import text

import cellkom.models  # noqa: F401
from cellkom.api.v1.endpoints import public
from cellkom.api.v1.router import api_router
from cellkom.core.config import get_settings
from cellkom.core.db import get_engine
from cellkom.core.security import require_basic_auth
from cellkom.models.base import Base


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def init_db() -> None:
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=f"{settings.store_name} Store",
        version="1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    if settings.cors_origins:
        origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/healthz/deep")
    async def deep_healthz() -> JSONResponse:
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.exception("Database health check failed")
            return JSONResponse(
                status_code=503,
                content={"status": "error", "checks": {"database": "error"}, "error": f"{exc.__class__.__name__}: {exc}"},
            )
        return JSONResponse(content={"status": "ok", "checks": {"database": "ok"}})

    @app.get("/openapi.json", include_in_schema=False, dependencies=[Depends(require_basic_auth)])
    async def openapi_json() -> JSONResponse:
        return JSONResponse(app.openapi())

    @app.get("/docs", include_in_schema=False, dependencies=[Depends(require_basic_auth)])
    async def swagger_ui_html():
        return get_swagger_ui_html(openapi_url="/openapi.json", title=app.title)

    @app.on_event("startup")
    async def startup() -> None:
        await init_db()
        logger.info("Database ready")

    @app.on_event("shutdown")
    async def shutdown() -> None:
        await get_engine().dispose()

    app.include_router(public.router, prefix="/public", tags=["public"])
    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()
