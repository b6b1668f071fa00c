"""
Request middleware for the Talent Match API: error envelopes and timing
"""
import time
import uuid
from datetime import datetime
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError

from app.utils.exceptions import TalentMatchBaseException, map_to_http_exception
from app.utils.logging_config import get_logger

logger = get_logger(__name__)


def error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Standard error body: success flag, timestamp, request id, status and detail fields"""
    if not isinstance(detail, dict):
        detail = {"message": str(detail)}

    content = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail,
    }
    return JSONResponse(status_code=status_code, content=content, headers={"X-Request-ID": request_id})


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """
    Tags each request with an id and turns escaped exceptions into JSON errors.

    Matcher errors use the status from map_to_http_exception; a pydantic error
    raised while building a model from stored data is a 400; anything else is
    a 500 whose message does not leak internals.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        where = f"{request.method} {request.url.path}"

        try:
            response = await call_next(request)
        except TalentMatchBaseException as exc:
            logger.error(
                f"{exc.__class__.__name__} in {where}: {exc.message}",
                extra={"request_id": request_id, "error_code": exc.error_code, "details": exc.details},
            )
            http_exc = map_to_http_exception(exc)
            return error_response(request_id, http_exc.status_code, http_exc.detail)
        except ValidationError as exc:
            logger.error(f"Model validation failed in {where}: {exc}", extra={"request_id": request_id})
            return error_response(request_id, 400, {
                "error": "Data validation failed",
                "message": "Invalid data format or values",
                "validation_errors": exc.errors(include_url=False),
            })
        except Exception as exc:
            logger.error(f"Unhandled exception in {where}: {exc}", extra={"request_id": request_id}, exc_info=True)
            return error_response(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            })

        response.headers["X-Request-ID"] = request_id
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """One log line per request with its status and duration; warns on slow requests"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        processing_time = time.time() - start_time

        request_id = getattr(request.state, 'request_id', 'unknown')
        line = f"{request.method} {request.url.path} - {response.status_code} in {processing_time:.3f}s"
        if processing_time > self.slow_request_threshold:
            logger.warning(f"Slow request: {line}", extra={"request_id": request_id})
        else:
            logger.info(line, extra={"request_id": request_id})

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
