"""Map domain failures to HTTP responses.

Every failure is rendered as ``{"success": false, "message": ..., "errors": {...}}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from marketplace.errors import MarketplaceError

logger = structlog.get_logger(__name__)


def _first_message(messages: dict, default: str) -> str:
    for value in messages.values():
        if isinstance(value, list) and value:
            return str(value[0])
        if value:
            return str(value)
    return default


def _failure(status_code: int, message: str, errors: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": errors or {}},
    )


def _messages_of(exc) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0]
    return {}


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    messages = _messages_of(exc)
    return _failure(400, _first_message(messages, "Invalid request"), messages)


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body") or "body"
        errors.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return _failure(400, _first_message(errors, "Invalid request"), errors)


async def handle_not_found(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    messages = _messages_of(exc)
    return _failure(404, _first_message(messages, "Not found"), messages)


async def handle_stale_write(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    logger.warning("Concurrent update rejected", path=request.url.path)
    return _failure(409, "The record was changed by another request. Please retry.")


async def handle_marketplace_error(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Dependency failure", path=request.url.path, error=exc.message)
    return _failure(exc.status_code, exc.message, exc.messages)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ObjectNotFoundError, handle_not_found)
    app.add_exception_handler(ExpectedVersionError, handle_stale_write)
    app.add_exception_handler(MarketplaceError, handle_marketplace_error)
