# backend/utils/errors.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base class for failures reported to API callers."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class DuplicateEmail(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Email already exists"


class DuplicateSku(InventoryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "SKU already exists"


class InvalidCredentials(InventoryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class InvalidMovement(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid stock movement"


class PersistenceFailure(InventoryError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Storage operation failed"


def _failure(status_code: int, message: str, **extra) -> JSONResponse:
    body = {"success": False, "message": message}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def register_error_handlers(app: FastAPI):
    """Render every error as {success: false, message}."""

    @app.exception_handler(InventoryError)
    async def inventory_error(request: Request, exc: InventoryError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return _failure(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception(request: Request, exc: StarletteHTTPException):
        response = _failure(exc.status_code, str(exc.detail))
        if getattr(exc, "headers", None):
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _failure(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "Request data validation failed",
            errors=exc.errors(),
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error in %s %s", request.method, request.url.path)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")
