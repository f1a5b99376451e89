"""Error taxonomy for the gallery lifecycle and its HTTP translation."""

import logging
from typing import Literal

from litestar import Request, Response
from litestar.exceptions import HTTPException
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
)

from artverse.lib import observability

logger = logging.getLogger(__name__)


class ArtverseError(Exception):
    """Base class for lifecycle errors."""

    status_code = HTTP_400_BAD_REQUEST

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else self.__class__.__name__


class ValidationError(ArtverseError):
    """Rejected input (bad MIME type, size, or missing field). Raised before any mutation."""

    def __init__(self, message: str, reason: Literal["type", "size", "field"] = "field") -> None:
        super().__init__(message)
        self.reason = reason


class NotFoundError(ArtverseError):
    """Unknown gallery, artwork, or user."""

    status_code = HTTP_404_NOT_FOUND


class QuotaExceededError(ArtverseError):
    """The gallery already holds the maximum number of artworks."""

    status_code = HTTP_409_CONFLICT


class DuplicateOwnerError(ArtverseError):
    """The user already owns a gallery."""

    status_code = HTTP_409_CONFLICT


class StorageError(ArtverseError):
    """A storage backend upload or delete failed."""

    status_code = HTTP_502_BAD_GATEWAY

    def __init__(self, message: str, transient: bool = True) -> None:
        super().__init__(message)
        self.transient = transient


def artverse_exception_handler(request: Request, exc: ArtverseError) -> Response:
    """Render lifecycle errors as ``{success: false, error}`` JSON."""
    return Response(
        content={"success": False, "error": exc.message},
        status_code=exc.status_code,
        media_type="application/json",
    )


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Render framework HTTP errors in the same envelope."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return Response(
        content={"success": False, "error": detail},
        status_code=exc.status_code,
        media_type="application/json",
    )


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Handle unexpected exceptions without leaking their details."""
    logged = observability.exception(
        "Unhandled exception on {method} {path}",
        method=request.method,
        path=request.url.path,
    )
    if not logged:
        logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return Response(
        content={"success": False, "error": "Internal Server Error"},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        media_type="application/json",
    )
