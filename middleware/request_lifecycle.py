"""
Per-request context for the Todu API: a short request id (echoed back as
``X-Request-ID``), the caller's user id when the bearer token decodes, one
log line in and one out, and a JSON 500 for anything a route let escape.
"""

import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse
from logging_config import get_logger, request_id_var, user_id_var
from jose import jwt, JWTError
from config import config

logger = get_logger("middleware")

REQUEST_ID_HEADER = "X-Request-ID"


def user_id_from_request(request: Request) -> str:
    """``sub`` of the bearer token, or ``-``. Authentication itself happens in the route dependency."""
    scheme, _, token = request.headers.get("authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return "-"
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return "-"
    return payload.get("sub") or "-"


class RequestLifecycleMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = uuid.uuid4().hex[:8]
        request_id_var.set(request_id)
        user_id_var.set(user_id_from_request(request))

        started = time.perf_counter()
        label = f"{request.method} {request.url.path}"
        logger.info(
            f"→ {label}",
            extra={"data": {"query": str(request.query_params) if request.query_params else None}}
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = round((time.perf_counter() - started) * 1000, 1)
            logger.error(
                f"✖ {label} unhandled error ({duration_ms}ms): {exc}",
                exc_info=True,
                extra={"data": {"duration_ms": duration_ms, "error": str(exc)}}
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error", "request_id": request_id},
                headers={REQUEST_ID_HEADER: request_id}
            )

        duration_ms = round((time.perf_counter() - started) * 1000, 1)
        log = logger.info if response.status_code < 400 else logger.warning
        log(
            f"← {label} {response.status_code} ({duration_ms}ms)",
            extra={"data": {"status": response.status_code, "duration_ms": duration_ms}}
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
