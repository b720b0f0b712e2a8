import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from squid_error.errors import DEFAULT_HTTP_STATUS_CODE, SquidError, SquidHttpError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = "INTERNAL_ERROR"
INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_payload(error: SquidError, include_stack: bool = False) -> Dict[str, Any]:
    record = dict(error.serialize())
    if not include_stack:
        record.pop("stack", None)
    return {"error": record}


def error_response(error: SquidError, include_stack: bool = False) -> JSONResponse:
    """Render a structured error, using its HTTP status code when it has one."""
    status_code = getattr(error, "http_status_code", None) or DEFAULT_HTTP_STATUS_CODE
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_payload(error, include_stack)),
    )


def log_error(error: SquidError, original: BaseException | None = None) -> None:
    if error.skip_log:
        return
    exc = original or error
    logger.error(
        "%s [%s]: %s",
        type(error).__name__,
        error.code,
        error.message,
        exc_info=(type(exc), exc, exc.__traceback__),
    )


def register_exception_handlers(app: FastAPI, include_stack: bool = False) -> None:
    """Attach handlers rendering SquidError and unexpected exceptions as JSON."""

    async def squid_error_handler(request: Request, exc: Exception) -> JSONResponse:
        error = SquidError.convert(exc, only_convert_non_squid_errors=True)
        log_error(error)
        return error_response(error, include_stack)

    async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        error = SquidHttpError.create(
            {"code": INTERNAL_ERROR_CODE, "message": INTERNAL_ERROR_MESSAGE},
            exc,
        )
        log_error(error, original=exc)
        return error_response(error, include_stack)

    app.add_exception_handler(SquidError, squid_error_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
