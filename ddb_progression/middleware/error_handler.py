"""
Progression API - Error Handlers
Formats all exceptions into structured JSON responses.
"""
import traceback
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ddb_progression.core.errors import ErrorCode, ProgressionError

logger = logging.getLogger("ddb_progression.errors")

# Map status codes to error codes
HTTP_STATUS_ERROR_CODES = {
    400: ErrorCode.VALIDATION_ERROR,
    404: ErrorCode.NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
    500: ErrorCode.UNKNOWN,
    503: ErrorCode.REFERENCE_UNAVAILABLE,
}


def _generate_error_id() -> str:
    """Generate a short error ID for tracking."""
    return str(uuid.uuid4())[:8]


def _stamp(content: Dict[str, Any], error_id: str) -> Dict[str, Any]:
    content["error"]["error_id"] = error_id
    content["error"]["timestamp"] = datetime.now(timezone.utc).isoformat()
    return content


def setup_error_handlers(app: FastAPI, debug: bool = False):
    """
    Setup all error handlers for the FastAPI application.

    Call this function after creating the FastAPI app to register
    exception handlers for ProgressionError and standard exceptions.
    """

    @app.exception_handler(ProgressionError)
    async def progression_error_handler(request: Request, exc: ProgressionError):
        """Handle ProgressionError exceptions."""
        error_id = _generate_error_id()

        logger.warning(
            f"[{error_id}] ProgressionError: {exc.code.value} - {exc.message}",
            extra={
                "error_id": error_id,
                "error_code": exc.code.value,
                "path": str(request.url.path),
            }
        )

        return JSONResponse(
            status_code=exc.http_status,
            content=_stamp(exc.to_dict(), error_id)
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors from request parsing."""
        errors = []
        for error in exc.errors():
            field = " -> ".join(str(loc) for loc in error.get("loc", []))
            errors.append({
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error")
            })

        content = {
            "error": {
                "code": ErrorCode.VALIDATION_ERROR.value,
                "message": "Request validation failed",
                "details": {"errors": errors},
                "recoverable": True,
                "recovery_hint": "Check the request data and correct any invalid fields",
            }
        }
        return JSONResponse(status_code=422, content=_stamp(content, _generate_error_id()))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle standard HTTP exceptions."""
        error_code = HTTP_STATUS_ERROR_CODES.get(exc.status_code, ErrorCode.UNKNOWN)

        content = {
            "error": {
                "code": error_code.value,
                "message": str(exc.detail) if exc.detail else "An error occurred",
                "details": {},
                "recoverable": exc.status_code < 500,
                "recovery_hint": None,
            }
        }
        return JSONResponse(status_code=exc.status_code, content=_stamp(content, _generate_error_id()))

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        error_id = _generate_error_id()

        logger.error(
            f"[{error_id}] Unhandled exception on {request.method} {request.url.path}: "
            f"{type(exc).__name__}: {exc}",
            extra={
                "error_id": error_id,
                "path": str(request.url.path),
                "method": request.method,
            },
            exc_info=True
        )

        content = {
            "error": {
                "code": ErrorCode.UNKNOWN.value,
                "message": "An unexpected error occurred",
                "details": {},
                "recoverable": False,
                "recovery_hint": "Please try again or contact support",
            }
        }

        # Add debug info if in debug mode
        if debug:
            content["error"]["debug"] = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "traceback": traceback.format_exc().split("\n")
            }

        return JSONResponse(status_code=500, content=_stamp(content, error_id))

    return app
