"""Translate domain exceptions into HTTP responses.

Every failure leaves the API as ``{"status": "fail", "message", "errors"}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError

from ordering.shared.errors import OrderingError

logger = structlog.get_logger(__name__)


def _first_message(messages) -> str:
    for errors in (messages or {}).values():
        if errors:
            return errors[0] if isinstance(errors, list) else str(errors)
    return "Request failed"


def fail(status_code: int, messages: dict, message: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "status": "fail",
                "message": message or _first_message(messages),
                "errors": messages,
            }
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return fail(400, exc.messages)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        messages = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"] if part != "body") or "request"
            messages.setdefault(field, []).append(error["msg"])
        return fail(400, messages)

    @app.exception_handler(InvalidOperationError)
    async def invalid_operation_handler(request: Request, exc: InvalidOperationError):
        return fail(400, {"_entity": [str(exc)]})

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError):
        messages = exc.messages if isinstance(getattr(exc, "messages", None), dict) else {"_entity": [str(exc)]}
        return fail(404, messages)

    @app.exception_handler(OrderingError)
    async def ordering_error_handler(request: Request, exc: OrderingError):
        return fail(exc.status_code, exc.messages)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", path=request.url.path, method=request.method)
        return fail(500, {"_entity": ["Something went wrong"]})
