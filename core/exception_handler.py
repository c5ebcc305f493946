import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from core.exceptions import BaseCustomException, WriteError
from core.logging.providers import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation errors.

    Returns
    -------
    JSONResponse
        422 response listing the offending fields
    """
    errors = [
        {
            "field": ".".join(
                str(x) for x in error["loc"] if not isinstance(x, int) and x != "body"
            ) or "body",
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={"status": "error", "message": "Validation error", "errors": errors}
    )


async def custom_exception_handler(request: Request, exc: Exception):
    """
    Handler for migration errors and anything left unhandled.

    ``WriteError`` bodies also name the failed phase, page and addresses
    so an operator can tell which pages were committed.

    Parameters
    ----------
    request : Request
        FastAPI request
    exc : Exception
        Exception

    Returns
    -------
    JSONResponse
        Error response
    """
    if not isinstance(exc, BaseCustomException):
        logger.error("Unhandled error", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": "Internal server error"}
        )

    content = {"status": "error", "message": exc.message}
    if isinstance(exc, WriteError):
        content.update(
            phase=exc.phase,
            page_index=exc.page_index,
            addresses=exc.addresses
        )
    return JSONResponse(status_code=exc.get_status_code(), content=content)
