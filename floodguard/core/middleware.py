import logging
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from floodguard.core.exceptions import AppException, create_http_exception

logger = logging.getLogger(__name__)

# Request ID for HTTP requests, cycle ID inside a prediction cycle.
request_id_context = ContextVar("request_id", default=None)

# Polled by probes and scrapers; not worth a log line per hit
QUIET_PATHS = frozenset({"/health", "/metrics"})


def error_response(
    request_id: str,
    status_code: int,
    code: str,
    message: Any,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Uniform error envelope returned for every failed request."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details,
                "request_id": request_id,
                "status_code": status_code,
            }
        },
        headers={"X-Request-ID": request_id, **(headers or {})},
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Stamps each request with an id and logs its method, path, status and latency.
    Must wrap ErrorHandlingMiddleware so the id is set before errors are rendered.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id_context.set(request_id)
        quiet = request.url.path in QUIET_PATHS

        try:
            if not quiet:
                logger.info(f"Request: {request.method} {request.url.path}")

            response = await call_next(request)

            if not quiet:
                logger.info(
                    f"Response: {response.status_code} - {time.time() - start_time:.3f}s"
                )
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_id_context.reset(token)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Converts exceptions escaping the routers into the JSON error envelope.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request_id_context.get() or str(uuid.uuid4())

        try:
            return await call_next(request)

        except AppException as exc:
            http_exc = create_http_exception(exc)
            logger.warning(f"Application Error: {exc.message} ({exc.__class__.__name__})")
            return error_response(
                request_id,
                http_exc.status_code,
                exc.__class__.__name__,
                http_exc.detail,
                exc.details,
                http_exc.headers,
            )

        except StarletteHTTPException as exc:
            return error_response(
                request_id, exc.status_code, "HTTPException", exc.detail
            )

        except RequestValidationError as exc:
            return error_response(
                request_id,
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "ValidationError",
                "Data validation failed",
                exc.errors(),
            )

        except Exception as exc:
            logger.error(f"Unhandled exception: {exc}", exc_info=True)
            debug = logging.getLogger().isEnabledFor(logging.DEBUG)
            return error_response(
                request_id,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "InternalServerException",
                "An unexpected error occurred.",
                str(exc) if debug else None,
            )
