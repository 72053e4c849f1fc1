import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inventory_desk.config import Settings, get_settings, setup_logging
from inventory_desk.db import init_db, make_engine
from inventory_desk.errors import PayloadTooLarge
from inventory_desk.routers import admin, auth, health, inventory, realtime, reports, tasks, toolbox
from inventory_desk.services.notifier import Broker

logger = logging.getLogger(__name__)


def error_body(code: str, message: str, **extra) -> dict:
    return {"detail": {"code": code, "message": message, **extra}}


class BodyLimitMiddleware:
    """Reject request bodies over ``limit`` bytes, declared or streamed."""

    def __init__(self, app, limit: int):
        self.app = app
        self.limit = limit

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        length = dict(scope["headers"]).get(b"content-length", b"")
        if length.isdigit() and int(length) > self.limit:
            exc = self.too_large()
            response = JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                # chunked uploads carry no content-length
                if received > self.limit:
                    raise self.too_large()
            return message

        await self.app(scope, limited_receive, send)

    def too_large(self) -> PayloadTooLarge:
        return PayloadTooLarge(f"Request body exceeds {self.limit} bytes")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        init_db(app.state.engine, settings)
        logger.info("Inventory Desk starting (env=%s, port=%s)", settings.env, settings.port)
        yield
        app.state.engine.dispose()
        logger.info("Inventory Desk shut down")

    app = FastAPI(title="Inventory Desk", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = make_engine(settings.database_url)
    app.state.notifier = Broker()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(BodyLimitMiddleware, limit=settings.body_limit)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_body(
                "VALIDATION_ERROR",
                "Request validation failed",
                errors=jsonable_encoder(exc.errors()),
            ),
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        message = "Internal server error"
        if settings.is_development:
            message = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=500, content=error_body("INTERNAL_ERROR", message))

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(admin.router)
    app.include_router(inventory.router)
    app.include_router(toolbox.router)
    app.include_router(tasks.router)
    app.include_router(reports.router)
    app.include_router(realtime.router)

    return app


app = create_app()
