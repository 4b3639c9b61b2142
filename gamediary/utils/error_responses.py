"""Translate curation errors into structured API error payloads.

Every handler in :mod:`gamediary.main` funnels through these builders so the
JSON body, status code and request id stay consistent no matter which
component raised.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from fastapi import status

from gamediary.errors import (
    CurationError,
    DuplicateItem,
    EditModeRequired,
    FavoriteSlotsFull,
    ItemNotFound,
    ListAccessDenied,
    ListNotFound,
    NotAuthenticated,
    RemoteStoreError,
    ValidationError,
)
from gamediary.schemas.error import (
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from gamediary.utils.request_context import get_request_id

__all__ = [
    "ErrorMapping",
    "build_curation_error_response",
    "build_error_response",
    "build_validation_error_response",
    "map_curation_error",
]

REMOTE_RETRY_AFTER_SECONDS = 2


@dataclass(frozen=True)
class ErrorMapping:
    error_type: ErrorType
    status_code: int
    retry_after: int | None = None


# Ordered most specific first; BatchWriteError resolves through RemoteStoreError.
_MAPPINGS: tuple[tuple[type[CurationError], ErrorMapping], ...] = (
    (NotAuthenticated, ErrorMapping(ErrorType.AUTHENTICATION_ERROR, status.HTTP_401_UNAUTHORIZED)),
    (ListAccessDenied, ErrorMapping(ErrorType.AUTHORIZATION_ERROR, status.HTTP_403_FORBIDDEN)),
    (ValidationError, ErrorMapping(ErrorType.VALIDATION_ERROR, status.HTTP_400_BAD_REQUEST)),
    (DuplicateItem, ErrorMapping(ErrorType.CONFLICT, status.HTTP_409_CONFLICT)),
    (FavoriteSlotsFull, ErrorMapping(ErrorType.CAPACITY_EXCEEDED, status.HTTP_409_CONFLICT)),
    (EditModeRequired, ErrorMapping(ErrorType.CONFLICT, status.HTTP_409_CONFLICT)),
    (ListNotFound, ErrorMapping(ErrorType.NOT_FOUND, status.HTTP_404_NOT_FOUND)),
    (ItemNotFound, ErrorMapping(ErrorType.NOT_FOUND, status.HTTP_404_NOT_FOUND)),
    (
        RemoteStoreError,
        ErrorMapping(
            ErrorType.REMOTE_STORE_ERROR,
            status.HTTP_503_SERVICE_UNAVAILABLE,
            retry_after=REMOTE_RETRY_AFTER_SECONDS,
        ),
    ),
)

_FALLBACK = ErrorMapping(ErrorType.INTERNAL_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)


def _current_timestamp() -> datetime:
    """Separate helper so tests can monkeypatch the clock."""

    return datetime.now(UTC)


def map_curation_error(exc: CurationError) -> ErrorMapping:
    for error_class, mapping in _MAPPINGS:
        if isinstance(exc, error_class):
            return mapping
    return _FALLBACK


def build_validation_error_response(
    *,
    errors: Sequence[ValidationErrorDetail],
    message: str,
    detail: str,
    status_code: int,
    path: str,
    request_id: str | None = None,
) -> ValidationErrorResponse:
    return ValidationErrorResponse(
        error_type=ErrorType.VALIDATION_ERROR,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        errors=list(errors),
    )


def build_error_response(
    *,
    error_type: ErrorType,
    message: str,
    detail: str | None,
    status_code: int,
    path: str,
    retry_after: int | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    return ErrorResponse(
        error_type=error_type,
        message=message,
        detail=detail,
        status_code=status_code,
        timestamp=_current_timestamp(),
        request_id=request_id or get_request_id(),
        path=path,
        retry_after=retry_after,
    )


def build_curation_error_response(exc: CurationError, *, path: str) -> ErrorResponse:
    """Payload for any :class:`CurationError`; the exception class becomes ``detail``."""

    mapping = map_curation_error(exc)
    return build_error_response(
        error_type=mapping.error_type,
        message=str(exc) or type(exc).__name__,
        detail=type(exc).__name__,
        status_code=mapping.status_code,
        path=path,
        retry_after=mapping.retry_after,
    )
