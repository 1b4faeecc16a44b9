"""
Operational error taxonomy.

Every error a caller is expected to handle carries a stable machine-readable
code next to the human message and is rendered as
``{"error": {"code": ..., "message": ...}}``. Anything else is an internal
error: logged with full context, surfaced as a generic 500.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict] = None):
        self.code = code or self.code
        self.message = message
        self.details = details
        super().__init__(status_code=self.status_code, detail=message)

    def to_dict(self) -> dict:
        body = {"code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return {"error": body}


class ValidationError(AppError):
    """Malformed input or missing required identity"""

    status_code = 400
    code = "VALIDATION"


class AuthenticationError(AppError):
    status_code = 401
    code = "UNAUTHENTICATED"


class AuthorizationError(AppError):
    """Actor lacks permission for the transition or resource"""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(AppError):
    """Slot overlap or duplicate resource"""

    status_code = 409
    code = "CONFLICT"


class BusinessRuleError(AppError):
    """Out-of-hours, expired cancellation window, invalid status transition"""

    status_code = 422
    code = "BUSINESS_RULE"


# Stable codes
SLOT_CONFLICT = "SLOT_CONFLICT"
OUT_OF_HOURS = "OUT_OF_HOURS"
INVALID_TRANSITION = "INVALID_TRANSITION"
CANCELLATION_WINDOW_EXPIRED = "CANCELLATION_WINDOW_EXPIRED"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Authorization header problems are authentication failures, not bad input
        for error in exc.errors():
            if error.get("loc") and "authorization" in str(error.get("loc")).lower():
                logger.warning(f"Authentication failed for {request.url.path}: invalid Authorization header")
                return JSONResponse(
                    status_code=401,
                    content={"error": {"code": "UNAUTHENTICATED", "message": "Not authenticated"}},
                )

        logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
        errors = [
            {"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")}
            for e in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "error": {
                    "code": "VALIDATION",
                    "message": "Invalid request data",
                    "details": {"errors": errors},
                }
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": f"HTTP_{exc.status_code}", "message": str(exc.detail)}},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": {"code": "INTERNAL_ERROR", "message": "Internal server error"}},
        )
