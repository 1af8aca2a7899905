"""Error Handlers - every failure leaves the companion API as an error envelope.

Invariants:
    - CalmishError -> its own status and to_response(), plus Retry-After when known
    - RequestValidationError -> 400 with one detail per offending field
    - Anything else -> 500 with the generic chat message, details only in logs
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from calmish.core.errors import CalmishError, ErrorCategory, ErrorSeverity
from calmish.services.companion_responder import GENERIC_ERROR_MESSAGE

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CalmishError, handle_calmish_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def _envelope(code: str, message: str, category: ErrorCategory,
              severity: ErrorSeverity, **extra) -> dict:
    return {"error": {
        "code": code, "message": message,
        "category": category.value, "severity": severity.value, **extra,
    }}


async def handle_calmish_error(request: Request, exc: CalmishError) -> JSONResponse:
    log = logger.warning if exc.recoverable else logger.error
    log(
        f"{type(exc).__name__}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    headers = {}
    retry_after_ms = exc.context.retry_after_ms
    if retry_after_ms:
        headers["Retry-After"] = str(math.ceil(retry_after_ms / 1000))
    return JSONResponse(exc.to_response(), status_code=exc.http_status, headers=headers)


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Rejected request body: {[d['field'] for d in details]}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        _envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, details=details,
        ),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        _envelope(
            "INTERNAL_ERROR", GENERIC_ERROR_MESSAGE,
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
