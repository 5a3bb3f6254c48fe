import logging
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers tables on Base.metadata
from .api import admin, auth as auth_routes, store_owner, stores, users
from .auth import AuthService
from .config import Settings, get_settings
from .db import Base, create_db_engine, make_session_factory
from .errors import AppError, ServerError, ValidationFailed, field_errors

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around one explicit ``Settings`` object."""
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    engine = create_db_engine(settings.database_url, echo=settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables if not existing. For managed databases run migration/init_db.py.
        if settings.create_schema:
            Base.metadata.create_all(bind=engine)
        yield
        engine.dispose()

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.auth = AuthService(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        try:
            response = await call_next(request)
        except Exception:
            logger.info("%s %s -> %s", request.method, request.url.path, 500)
            raise
        logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        failed = ValidationFailed(errors=field_errors(exc.errors()))
        return JSONResponse(status_code=failed.status_code, content=failed.to_dict())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        if settings.is_production:
            error = ServerError()
        else:
            error = ServerError(
                str(exc) or None,
                stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            )
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    app.include_router(auth_routes.router)
    app.include_router(users.router)
    app.include_router(stores.router)
    app.include_router(admin.router)
    app.include_router(store_owner.router)
    return app


app = create_app()
