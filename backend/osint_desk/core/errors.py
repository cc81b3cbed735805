"""Error taxonomy and the handlers that turn it into JSON responses."""

import logging
from collections.abc import Awaitable, Callable
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    field: Optional[str] = None
    message: str
    code: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str
    message: str
    code: str
    status_code: int
    request_id: str
    details: Optional[list[ErrorDetail]] = None
    path: Optional[str] = None


class DeskError(Exception):
    """Base class for errors the API reports to its caller."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[list[ErrorDetail]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ValidationError(DeskError):
    """Malformed or out-of-range input."""

    def __init__(self, message: str = "Validation failed", field: Optional[str] = None):
        details = [ErrorDetail(field=field, message=message, code="invalid")] if field else None
        self.field = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class NotFoundError(DeskError):
    """Referenced record does not exist."""

    def __init__(self, resource: str, identifier: Optional[object] = None):
        message = f"{resource} not found"
        if identifier is not None:
            message = f"{resource} '{identifier}' not found"
        self.resource = resource
        super().__init__(message=message, code="NOT_FOUND", status_code=status.HTTP_404_NOT_FOUND)


class ConflictError(DeskError):
    """Write would break a consistency rule or lost a version race."""

    def __init__(self, message: str = "Resource conflict"):
        super().__init__(message=message, code="CONFLICT", status_code=status.HTTP_409_CONFLICT)


class AuthenticationError(DeskError):
    def __init__(self, message: str = "Invalid admin key"):
        super().__init__(
            message=message,
            code="AUTHENTICATION_REQUIRED",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class ExternalProviderError(DeskError):
    """A third-party lookup failed (timeout, non-2xx, unreadable body).

    Caught at the search and test-connection boundaries; it only reaches the
    handler if some caller forgets to.
    """

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(
            message=f"{provider}: {message}",
            code="PROVIDER_ERROR",
            status_code=status.HTTP_502_BAD_GATEWAY,
        )


def create_error_response(
    request: Request,
    error: str,
    message: str,
    code: str,
    status_code: int,
    details: Optional[list[ErrorDetail]] = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", str(uuid4()))
    body = ErrorResponse(
        error=error,
        message=message,
        code=code,
        status_code=status_code,
        request_id=request_id,
        details=details,
        path=str(request.url.path),
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def desk_exception_handler(request: Request, exc: DeskError) -> JSONResponse:
    return create_error_response(
        request=request,
        error=exc.__class__.__name__,
        message=exc.message,
        code=exc.code,
        status_code=exc.status_code,
        details=exc.details,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        ErrorDetail(
            field=".".join(str(loc) for loc in err["loc"]),
            message=err["msg"],
            code=err["type"],
        )
        for err in exc.errors()
    ]
    return create_error_response(
        request=request,
        error="ValidationError",
        message="Request validation failed",
        code="VALIDATION_ERROR",
        status_code=status.HTTP_400_BAD_REQUEST,
        details=details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error_map = {
        400: ("BadRequest", "BAD_REQUEST"),
        401: ("AuthenticationError", "AUTHENTICATION_REQUIRED"),
        404: ("NotFound", "NOT_FOUND"),
        405: ("MethodNotAllowed", "METHOD_NOT_ALLOWED"),
        409: ("Conflict", "CONFLICT"),
    }
    error_type, code = error_map.get(exc.status_code, ("HTTPError", f"HTTP_{exc.status_code}"))
    return create_error_response(
        request=request,
        error=error_type,
        message=str(exc.detail),
        code=code,
        status_code=exc.status_code,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return create_error_response(
        request=request,
        error="InternalServerError",
        message="An unexpected error occurred",
        code="INTERNAL_ERROR",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = request.headers.get("X-Request-ID", str(uuid4()))
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DeskError, desk_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    # base of fastapi.HTTPException; also what the router raises for unmatched paths and methods
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
    app.middleware("http")(request_id_middleware)
