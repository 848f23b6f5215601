"""
Error taxonomy for the Student Support API.

Services raise these instead of building HTTP responses themselves; the
handlers registered by ``register_exception_handlers`` turn them into JSON
bodies of the form ``{"message": ...}``.

Usage:
    from errors import NotFoundError

    if not doc:
        raise NotFoundError("Complaint not found")
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import is_production

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for all API errors"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        body.update(self.details)
        return body


class InvalidInputError(AppError):
    """Missing or malformed required fields"""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    """A unique field (email, phone) is already taken"""

    # Registration clients expect 400 for "already exists"
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Credential present but invalid, or the identity no longer exists"""

    status_code = status.HTTP_401_UNAUTHORIZED


class MissingTokenError(AuthenticationError):
    """No bearer credential on the request"""

    status_code = status.HTTP_403_FORBIDDEN


class ForbiddenError(AppError):
    """Authenticated, but not the owner of the resource"""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class TokenError(Exception):
    """Token failed signature, payload or expiry checks"""


def _internal_body(exc: Exception) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": "Server Error"}
    if not is_production():
        body["error"] = str(exc)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, InternalError):
            return JSONResponse(status_code=exc.status_code, content=_internal_body(exc))
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        body: Dict[str, Any] = {"message": "Invalid request"}
        if not is_production():
            body["errors"] = jsonable_encoder(exc.errors())
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)

    @app.exception_handler(PyMongoError)
    async def storage_error_handler(request: Request, exc: PyMongoError):
        logger.exception("Storage failure on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_internal_body(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_internal_body(exc))
