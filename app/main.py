import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import CORS_ORIGINS, DATABASE_URL, LOG_LEVEL
from .errors import ApiError
from .routes import dashboard, recommendation, sessions, swipes
from .services.identity import IdentityVerifier
from .services.store import Store

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg") or "invalid value"
    return f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"


def create_app(
    store: Optional[Store] = None,
    identity: Optional[IdentityVerifier] = None,
) -> FastAPI:
    app = FastAPI(title="PlayNext API", version="0.1.0")
    app.state.store = store or Store.from_url(DATABASE_URL)
    app.state.identity = identity or IdentityVerifier()

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _describe_validation_error(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Error in %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup() -> None:
        app.state.store.create_schema()

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        app.state.store.dispose()

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.head("/health")
    def health_check_head():
        return Response(status_code=200)

    app.include_router(recommendation.router, prefix="/api/recommendation", tags=["recommendation"])
    app.include_router(swipes.router, prefix="/api/swipes", tags=["swipes"])
    app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
    app.include_router(dashboard.router, prefix="/api/dashboard", tags=["dashboard"])
    return app


app = create_app()
