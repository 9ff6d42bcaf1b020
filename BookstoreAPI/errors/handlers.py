"""
Centralized error responder.

Every failure raised by a route handler ends up in one of these handlers,
which turn it into a JSON body of the form
{"detail": <message>, "error_code": <code>}.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from BookstoreAPI.errors.exceptions import BookstoreError, NotFoundError, ValidationError
from BookstoreAPI.logger.logger import Logger

logger = Logger(__name__)

ERROR_CODE_TO_HTTP_STATUS = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
}


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    logger.warning(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": exc.message, "error_code": exc.error_code}
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": exc.message,
            "error_code": exc.error_code,
            "errors": exc.errors,
        }
    )


async def request_validation_error_handler(
        request: Request,
        exc: RequestValidationError
) -> JSONResponse:
    """
    Handle pydantic validation errors on request bodies and parameters.

    Uses the same response shape as ValidationError so that clients see
    a single format whether the body or the stored document is invalid.
    """
    errors = [
        {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Validation failed",
            "error_code": "VALIDATION_ERROR",
            "errors": errors,
        }
    )


async def bookstore_error_handler(request: Request, exc: BookstoreError) -> JSONResponse:
    http_status = ERROR_CODE_TO_HTTP_STATUS.get(
        exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(
        status_code=http_status,
        content={"detail": exc.message, "error_code": exc.error_code}
    )


async def database_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error(f"Database error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "An internal database error occurred",
            "error_code": "DATABASE_ERROR",
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error_code": "INTERNAL_SERVER_ERROR",
        }
    )


def register_exception_handlers(app: FastAPI):
    """Attach every handler to the application. Called once at startup."""
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(BookstoreError, bookstore_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
