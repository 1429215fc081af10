from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from ..core.cache import cache_client
from ..core.config import (
    CORS_ORIGINS,
    RATE_LIMIT_DEFAULT_PER_MINUTE,
    RATE_LIMIT_WRITE_PER_MINUTE,
)

_WRITE_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _resolve_limit(method: str, path: str) -> int:
    if method in _WRITE_METHODS and path.startswith("/api/"):
        return RATE_LIMIT_WRITE_PER_MINUTE
    return RATE_LIMIT_DEFAULT_PER_MINUTE


def _add_cors_headers(response: JSONResponse, request: Request) -> JSONResponse:
    """Add CORS headers to error responses."""
    origin = request.headers.get("origin", "")
    if origin and (origin in CORS_ORIGINS or "*" in CORS_ORIGINS):
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"
    return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Skip rate limiting for preflight OPTIONS requests
        if request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        allowed = cache_client.check_rate_limit(
            f"ratelimit:{client_ip}:{method}:{path}",
            _resolve_limit(method, path),
            window_seconds=60,
        )
        if not allowed:
            response = JSONResponse(
                status_code=429,
                content={"detail": "Too many requests"},
            )
            response.headers["Retry-After"] = "60"
            return _add_cors_headers(response, request)

        return await call_next(request)
