"""
Error Handling Middleware

Turns registry errors into HTTP responses. This is the only place that
knows which status code goes with which error kind.
"""

import logging
from typing import Any, Callable, Dict

from fastapi import HTTPException, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.errors import ErrorKind, RegistryError
from app.services.error_handler import error_handler

logger = logging.getLogger(__name__)


STATUS_CODES = {
    ErrorKind.PENDING_WORK: 409,
    ErrorKind.INVALID_TOKEN: 403,
    ErrorKind.ALREADY_APPROVED: 409,
    ErrorKind.ALREADY_CANCELLED: 409,
    ErrorKind.ALREADY_DELETED: 409,
    ErrorKind.UNSUPPORTED_ACTION: 500,
    ErrorKind.UNSUPPORTED_COMBINATION: 500,
    ErrorKind.INVALID_STAGE: 500,
    ErrorKind.NOT_SUPPORTED: 405,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.WRONG_INSTITUTION: 400,
    ErrorKind.INVALID_PARAM: 400,
    ErrorKind.NOT_FOUND: 404,
}


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "method": request.method,
        "url": str(request.url),
        "client_ip": request.client.host if request.client else None,
    }


async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    """Exception handler for every RegistryError raised by a route."""
    record = error_handler.handle_error(
        exc,
        context=_request_context(request),
        user_id=getattr(request.state, "user_id", None),
        operation=f"{request.method} {request.url.path}",
    )
    body: Dict[str, Any] = {
        "error": True,
        "error_id": record.error_id,
        "kind": exc.kind.value,
        "message": exc.message,
    }
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(
        status_code=STATUS_CODES.get(exc.kind, 500),
        content=body,
        headers={"X-Error-ID": record.error_id},
    )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware for handling unhandled exceptions."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except HTTPException:
            raise
        except Exception as e:
            record = error_handler.handle_error(
                e,
                context=_request_context(request),
                user_id=getattr(request.state, "user_id", None),
                operation=f"{request.method} {request.url.path}",
            )
            body: Dict[str, Any] = {
                "error": True,
                "error_id": record.error_id,
                "message": "An internal system error occurred. Please try again later.",
            }
            if logger.isEnabledFor(logging.DEBUG):
                body["debug"] = {"error_type": record.error_type, "operation": record.operation}
            return JSONResponse(status_code=500, content=body, headers={"X-Error-ID": record.error_id})
