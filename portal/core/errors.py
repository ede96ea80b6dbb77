"""
Error Taxonomy Module

Domain exceptions raised by services and the billing client, plus the FastAPI
handlers that turn them into JSON responses.

- NotFoundError: identifier matches no local or remote record (404)
- RemoteUnavailableError: billing provider unreachable or non-success (502)
- InvalidInputError: malformed input fields (400)
- PermissionDeniedError: actor lacks the required role or ownership (403)
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PortalError(Exception):
    """Base class for all portal domain errors."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND


class RemoteNotFoundError(NotFoundError):
    """The billing provider answered 404 for a resource."""


class RemoteUnavailableError(PortalError):
    """The billing provider could not be reached or answered with an error."""
    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, upstream_status: int = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class InvalidInputError(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST


class PermissionDeniedError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    if isinstance(exc, RemoteUnavailableError):
        logger.warning("%s %s failed upstream: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PortalError, portal_error_handler)
