"""structlog setup and the per-request access log."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from croplog.config import LogFormat, get_settings

REQUEST_ID_HEADER = "x-request-id"
SERVICE_NAME = "croplog"

# The Sheets/Drive client logs one INFO line per upstream call.
_NOISY_LOGGERS = ("httpx", "httpcore")

_configured = False


def _add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", SERVICE_NAME)
	return event_dict


def configure_structured_logging() -> None:
	global _configured
	if _configured:
		return

	settings = get_settings()
	level = getattr(logging, settings.log_level.upper(), logging.INFO)
	json_output = settings.log_format == LogFormat.json

	logging.basicConfig(level=level, format="%(message)s")
	for name in _NOISY_LOGGERS:
		logging.getLogger(name).setLevel(max(level, logging.WARNING))

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			_add_service,
			structlog.processors.add_log_level,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.format_exc_info,
			structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
		],
		wrapper_class=structlog.make_filtering_bound_logger(level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


def _route_template(request: Request) -> str:
	# "/api/v1/sheets/{spreadsheet_id}/sync" groups better than the raw path.
	route = request.scope.get("route")
	return getattr(route, "path", None) or request.url.path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind a request id for the duration of the request and log its outcome."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
		request.state.request_id = request_id
		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)

		logger = structlog.get_logger("croplog.request")
		started = time.perf_counter()
		try:
			response = await call_next(request)
		except Exception:
			logger.exception(
				"request_failed",
				method=request.method,
				route=_route_template(request),
				elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
			)
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		logger.info(
			"request_completed",
			method=request.method,
			route=_route_template(request),
			status_code=response.status_code,
			elapsed_ms=round((time.perf_counter() - started) * 1000.0, 2),
		)
		return response
