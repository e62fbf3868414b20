"""HTTP mapping for dispatch errors.

Protean's own errors (validation, not found) keep the mapping from
``protean.integrations.fastapi``; the dispatch rule violations are added
on top.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from dispatch.errors import (
    AlreadySettled,
    CompensationFailure,
    DispatchError,
    InvalidTransition,
    OrderNoLongerAvailable,
    TerminalStateViolation,
)

logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES: dict[type[DispatchError], int] = {
    InvalidTransition: 409,
    TerminalStateViolation: 409,
    OrderNoLongerAvailable: 409,
    AlreadySettled: 409,
    CompensationFailure: 500,
}


async def dispatch_error_handler(request: Request, exc: DispatchError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(type(exc), 400)
    if status_code >= 500:
        logger.error("Request failed", path=request.url.path, **exc.to_dict())
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def register_dispatch_error_handlers(app: FastAPI) -> None:
    register_exception_handlers(app)
    app.add_exception_handler(DispatchError, dispatch_error_handler)
