"""
Error Handlers

Render errors that escape the routes in the platform's error shape:
{"success": false, "error": {"code", "message", "details"}}
"""
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from pymongo.errors import PyMongoError

from ...domain.errors import DomainError
from ...utils.logger import get_logger, get_correlation_id

logger = get_logger(__name__)


def _error_response(status_code: int, error: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": error}),
        headers={"X-Correlation-Id": get_correlation_id() or ""}
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Expected business errors: bad input, unknown IDs, lifecycle conflicts"""
    logger.warning(
        f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}",
        extra={"error_code": exc.error_code, "status": exc.http_status}
    )
    return _error_response(exc.http_status, exc.to_dict())


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body or query did not match the schema"""
    errors = exc.errors()
    logger.warning(
        f"Request validation failed: {request.method} {request.url.path}",
        extra={"error_code": "VALIDATION_ERROR", "fields": [".".join(map(str, e["loc"])) for e in errors]}
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, {
        "code": "VALIDATION_ERROR",
        "message": "Request validation failed",
        "details": {"errors": errors},
    })


async def database_error_handler(request: Request, exc: PyMongoError) -> JSONResponse:
    logger.error(f"Workflow store error: {exc}", exc_info=True)
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, {
        "code": "DATABASE_UNAVAILABLE",
        "message": "The workflow store is unavailable",
        "details": {},
    })


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled errors; full stack trace goes to the error log"""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, {
        "code": "INTERNAL_ERROR",
        "message": "An unexpected error occurred",
        "details": {"hint": "Check server logs for details"},
    })


def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PyMongoError, database_error_handler)
    app.add_exception_handler(Exception, general_exception_handler)
