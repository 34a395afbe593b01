from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class ApiError(Exception):
    """
    Base class for failures that map onto a precise HTTP status.

    Every subclass is rendered as `{"success": false, "msg": <message>}`.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class MissingCredentials(ValidationError):
    default_message = "Please enter valid email and password"


class UnauthenticatedError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid Token"


class NoTokenError(UnauthenticatedError):
    default_message = "No token provided"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UserNotFound(NotFoundError):
    default_message = "User Not Found"


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class UserAlreadyExists(ConflictError):
    default_message = "User already exists"


class StoreError(ApiError):
    """Underlying persistence failure. The cause is logged, never returned."""

    default_message = "Error Try after some time"


def _error_body(message: str) -> dict:
    return {"success": False, "msg": message}


# PUBLIC_INTERFACE
def install_exception_handlers(app: FastAPI) -> None:
    """
    Register JSON error handlers on the app.

    Response format for every failure:
        {"success": false, "msg": "<human readable message>"}
    Request validation failures additionally carry "detail".
    """

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        if isinstance(exc, StoreError):
            logger.error(
                "Store failure on %s %s: %s",
                request.method,
                request.url.path,
                exc.__cause__ or exc,
                exc_info=exc.__cause__ or exc,
            )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Routing failures (unknown path, wrong method) raised by Starlette itself
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a consistent JSON structure for request validation errors.

        Response format:
            {
                "success": false,
                "msg": "Request validation failed",
                "detail": [... pydantic/fastapi error details ...]
            }
        """
        body = _error_body("Request validation failed")
        body["detail"] = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Server error"),
        )
