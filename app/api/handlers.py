"""
Exception handlers translating domain errors into the standard error body.

Starlette picks the handler of the most specific class in the exception's
MRO, so RecordNotFoundError maps to 404 while other RepositoryErrors map to 500.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from app.shared.errors import (
    AttachmentError,
    AttachmentNotFoundError,
    RecordNotFoundError,
    RecordValidationError,
    RenoDeskError,
    RepositoryError,
    database_error,
    error_response,
    external_service_error,
    get_correlation_id,
    not_found_error,
    validation_error,
)

logger = logging.getLogger("RenoDesk.API.Errors")


async def _record_validation(request: Request, exc: RecordValidationError):
    return validation_error(exc.message, details=exc.details, correlation_id=get_correlation_id(request))


async def _request_validation(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return validation_error("Invalid request", details={"errors": errors}, correlation_id=get_correlation_id(request))


async def _record_not_found(request: Request, exc: RecordNotFoundError):
    return not_found_error(
        f"{exc.entity.capitalize()} not found",
        resource_type=exc.entity,
        resource_id=exc.record_id,
        correlation_id=get_correlation_id(request),
    )


async def _repository(request: Request, exc: RepositoryError):
    return database_error(operation=exc.operation, correlation_id=get_correlation_id(request))


async def _attachment_not_found(request: Request, exc: AttachmentNotFoundError):
    return not_found_error(exc.message, resource_type="file", correlation_id=get_correlation_id(request))


async def _attachment(request: Request, exc: AttachmentError):
    return external_service_error("supabase-storage", exc.message, correlation_id=get_correlation_id(request))


async def _fallback(request: Request, exc: RenoDeskError):
    logger.error(f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}")
    return error_response(exc.code, exc.message, status_code=500, correlation_id=get_correlation_id(request))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RecordValidationError, _record_validation)
    app.add_exception_handler(RequestValidationError, _request_validation)
    app.add_exception_handler(RecordNotFoundError, _record_not_found)
    app.add_exception_handler(RepositoryError, _repository)
    app.add_exception_handler(AttachmentNotFoundError, _attachment_not_found)
    app.add_exception_handler(AttachmentError, _attachment)
    app.add_exception_handler(RenoDeskError, _fallback)
