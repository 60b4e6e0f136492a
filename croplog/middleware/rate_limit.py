"""Redis-backed rate limiting middleware."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from croplog.auth.dependencies import extract_identity_hint
from croplog.config import get_settings

BYPASS_PREFIXES = ("/docs", "/redoc", "/openapi", "/health")


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-client quota limiter backed by Redis atomic counters."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		if self._is_bypass_path(request.url.path):
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		settings = get_settings()
		identity = extract_identity_hint(request)
		quota = (
			settings.rate_limit_user_per_minute
			if identity == "jwt"
			else settings.rate_limit_anonymous_per_minute
		)

		client_host = request.client.host if request.client else "unknown"
		minute_bucket = datetime.now(UTC).strftime("%Y%m%d%H%M")
		key = f"ratelimit:{identity}:{client_host}:{minute_bucket}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, 65)

		if current > quota:
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Request quota exceeded",
						"quota": quota,
					}
				},
			)

		return await call_next(request)

	@staticmethod
	def _is_bypass_path(path: str) -> bool:
		return path.startswith(BYPASS_PREFIXES)
