import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ProfiSlotsError(Exception):
    status_code = 500
    kind = "internal"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgument(ProfiSlotsError):
    status_code = 400
    kind = "invalid_argument"


class AuthenticationError(ProfiSlotsError):
    status_code = 401
    kind = "unauthenticated"


class NotFound(ProfiSlotsError):
    status_code = 404
    kind = "not_found"


class Conflict(ProfiSlotsError):
    status_code = 409
    kind = "conflict"


class StoreUnavailable(ProfiSlotsError):
    status_code = 503
    kind = "store_unavailable"


SLOT_TAKEN_MESSAGE = "This slot is no longer available"


async def profislots_error_handler(request: Request, exc: ProfiSlotsError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "kind": exc.kind},
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProfiSlotsError, profislots_error_handler)
