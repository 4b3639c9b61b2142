"""Tests covering the helpers that turn curation errors into API payloads."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from gamediary.errors import (
    BatchWriteError,
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
from gamediary.schemas.error import ErrorType, ValidationErrorDetail
from gamediary.utils import error_responses
from gamediary.utils.error_responses import (
    REMOTE_RETRY_AFTER_SECONDS,
    build_curation_error_response,
    build_error_response,
    build_validation_error_response,
    map_curation_error,
)
from gamediary.utils.request_context import clear_request_id, set_request_id


def _freeze_timestamp(monkeypatch: pytest.MonkeyPatch, fixed: datetime) -> None:
    monkeypatch.setattr(error_responses, "_current_timestamp", lambda: fixed)


@pytest.mark.parametrize(
    ("exc", "error_type", "status_code"),
    [
        (NotAuthenticated(), ErrorType.AUTHENTICATION_ERROR, 401),
        (ListAccessDenied("nope"), ErrorType.AUTHORIZATION_ERROR, 403),
        (ValidationError("bad"), ErrorType.VALIDATION_ERROR, 400),
        (DuplicateItem(1, 2), ErrorType.CONFLICT, 409),
        (FavoriteSlotsFull(5), ErrorType.CAPACITY_EXCEEDED, 409),
        (EditModeRequired("enter edit mode"), ErrorType.CONFLICT, 409),
        (ListNotFound("gone"), ErrorType.NOT_FOUND, 404),
        (ItemNotFound("gone"), ErrorType.NOT_FOUND, 404),
        (RemoteStoreError("down"), ErrorType.REMOTE_STORE_ERROR, 503),
        (BatchWriteError([3], {}), ErrorType.REMOTE_STORE_ERROR, 503),
    ],
)
def test_map_curation_error(exc, error_type, status_code) -> None:
    mapping = map_curation_error(exc)

    assert mapping.error_type is error_type
    assert mapping.status_code == status_code


def test_only_store_failures_suggest_retry() -> None:
    assert map_curation_error(RemoteStoreError("down")).retry_after == REMOTE_RETRY_AFTER_SECONDS
    assert map_curation_error(ListNotFound("gone")).retry_after is None


def test_curation_error_response_carries_context(monkeypatch: pytest.MonkeyPatch) -> None:
    fixed = datetime(2026, 3, 14, 10, 30, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed)

    token = set_request_id("req-7")
    try:
        response = build_curation_error_response(FavoriteSlotsFull(5), path="/logs/1/favorite")
    finally:
        clear_request_id(token)

    assert response.status_code == 409
    assert response.detail == "FavoriteSlotsFull"
    assert "5 favorite slots" in response.message
    assert response.request_id == "req-7"
    assert response.timestamp == fixed
    assert response.path == "/logs/1/favorite"


def test_build_validation_error_response_includes_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    fixed = datetime(2026, 1, 1, 12, tzinfo=UTC)
    _freeze_timestamp(monkeypatch, fixed)
    errors = [ValidationErrorDetail(field="body.rating", message="bad", value=4.2)]

    token = set_request_id("req-8")
    try:
        response = build_validation_error_response(
            message="Request validation failed",
            detail="1 validation error(s)",
            status_code=422,
            path="/logs/1/rating",
            errors=errors,
        )
    finally:
        clear_request_id(token)

    assert response.error_type is ErrorType.VALIDATION_ERROR
    assert response.request_id == "req-8"
    assert response.errors == errors


def test_build_error_response_allows_request_id_override() -> None:
    token = set_request_id("from-context")
    try:
        response = build_error_response(
            error_type=ErrorType.INTERNAL_ERROR,
            message="boom",
            detail=None,
            status_code=500,
            path="/x",
            request_id="explicit",
        )
    finally:
        clear_request_id(token)

    assert response.request_id == "explicit"
