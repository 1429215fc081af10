import logging
from typing import Iterable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .core.cache import cache_client
from .core.config import (
    ADMIN_USER_IDS,
    BOT_TOKEN,
    CORS_ORIGINS,
    INIT_DATA_MAX_AGE_SECONDS,
    RATE_LIMIT_ENABLED,
)
from .core.errors import ServiceError
from .middleware import RateLimitMiddleware
from .routes import admin, games, roblox, users
from .services.accounts import AccountService
from .services.roblox import RobloxClient, roblox_client
from .services.watchlist import WatchlistService
from .stores import Storage, open_storage

logger = logging.getLogger(__name__)


def _is_origin_allowed(origin: str) -> bool:
    if not origin:
        return False
    return "*" in CORS_ORIGINS or origin in CORS_ORIGINS


def _json_error(request: Request, status_code: int, detail) -> JSONResponse:
    origin = request.headers.get("origin", "")
    response = JSONResponse(status_code=status_code, content={"detail": detail})
    # Add CORS headers for cross-origin error responses
    if _is_origin_allowed(origin):
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


def _attach_storage(app: FastAPI, storage: Storage) -> None:
    app.state.storage = storage
    app.state.accounts = AccountService(storage.users, storage.watchlist, app.state.admin_ids)
    app.state.watchlist = WatchlistService(storage.watchlist, app.state.roblox)


def create_app(
    storage: Optional[Storage] = None,
    *,
    bot_token: Optional[str] = None,
    admin_ids: Optional[Iterable[int]] = None,
    roblox_api: Optional[RobloxClient] = None,
    init_data_max_age: Optional[int] = None,
    rate_limit: Optional[bool] = None,
) -> FastAPI:
    app = FastAPI(title="Roblox Game Stats API", version="0.1.0")
    app.state.bot_token = BOT_TOKEN if bot_token is None else bot_token
    app.state.admin_ids = frozenset(ADMIN_USER_IDS if admin_ids is None else admin_ids)
    app.state.roblox = roblox_api or roblox_client
    app.state.init_data_max_age = (
        INIT_DATA_MAX_AGE_SECONDS if init_data_max_age is None else init_data_max_age
    )
    owns_storage = storage is None
    if storage is not None:
        _attach_storage(app, storage)

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return _json_error(request, exc.status_code, exc.detail)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Custom exception handler that adds CORS headers to all HTTP exceptions."""
        return _json_error(request, exc.status_code, exc.detail)

    # Middleware is executed in REVERSE order of addition.
    if RATE_LIMIT_ENABLED if rate_limit is None else rate_limit:
        app.add_middleware(RateLimitMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup() -> None:
        cache_client.connect()
        if owns_storage:
            _attach_storage(app, open_storage())
        if not app.state.bot_token:
            logger.warning("BOT_TOKEN is not set; every /api request will be rejected")
        print(
            f"Roblox Game Stats API ready (storage={app.state.storage.backend}, "
            f"cache={'redis' if cache_client.is_redis else 'memory'}, "
            f"admins={len(app.state.admin_ids)})"
        )

    @app.on_event("shutdown")
    def on_shutdown() -> None:
        cache_client.disconnect()
        if owns_storage and getattr(app.state, "storage", None) is not None:
            app.state.storage.close()

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.head("/health")
    def health_check_head():
        return Response(status_code=200)

    app.include_router(users.router, prefix="/api/user", tags=["user"])
    app.include_router(games.router, prefix="/api/games", tags=["games"])
    app.include_router(admin.router, prefix="/api/admin", tags=["admin"])
    app.include_router(roblox.router, prefix="/api/roblox", tags=["roblox"])
    return app


app = create_app()
