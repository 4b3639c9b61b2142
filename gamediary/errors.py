"""Error taxonomy raised by the curation engine.

Every error derives from :class:`CurationError` and additionally from the
builtin exception a caller would naturally catch (``ValueError`` for bad input,
``LookupError`` for missing rows, ``PermissionError`` for ownership problems),
so routers can keep translating builtins the way they always have.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any


class CurationError(Exception):
    """Base class for every error surfaced by the curation services."""


class NotAuthenticated(CurationError, PermissionError):
    """Raised when an operation is attempted without an active user."""

    def __init__(self, message: str = "Sign in to curate your library") -> None:
        super().__init__(message)


class ValidationError(CurationError, ValueError):
    """Raised for empty or malformed input detected before any remote call."""


class DuplicateItem(CurationError, ValueError):
    """Raised when a game is added to a list that already contains it."""

    def __init__(self, list_id: Any, game_id: int) -> None:
        super().__init__(f"Game {game_id} is already in list {list_id}")
        self.list_id = list_id
        self.game_id = game_id


class FavoriteSlotsFull(CurationError, ValueError):
    """Raised when a user tries to favorite a game with every slot taken."""

    def __init__(self, capacity: int) -> None:
        super().__init__(
            f"All {capacity} favorite slots are taken; remove a favorite first"
        )
        self.capacity = capacity


class EditModeRequired(CurationError, RuntimeError):
    """Raised when the favorites buffer is mutated outside of edit mode."""


class ListNotFound(CurationError, LookupError):
    """Raised when a list identifier does not resolve to a stored list."""


class ItemNotFound(CurationError, LookupError):
    """Raised when a list item identifier does not belong to the list."""


class ListAccessDenied(CurationError, PermissionError):
    """Raised when a user mutates a list owned by somebody else."""


class RemoteStoreError(CurationError, RuntimeError):
    """Any failure reported by the record store (network, permission, conflict)."""

    def __init__(self, message: str, *, conflict: bool = False) -> None:
        super().__init__(message)
        self.conflict = conflict


class BatchWriteError(RemoteStoreError):
    """Raised when a multi-record write still has failures after every retry."""

    def __init__(self, failed_keys: Iterable[Any], errors: dict[Any, BaseException]) -> None:
        self.failed_keys = tuple(failed_keys)
        self.errors = dict(errors)
        super().__init__(
            f"{len(self.failed_keys)} write(s) failed after retries: "
            + ", ".join(str(key) for key in self.failed_keys)
        )


def ensure_authenticated(user_id: str | None) -> str:
    """Return the stripped user id or raise :class:`NotAuthenticated`."""

    if user_id is None or not str(user_id).strip():
        raise NotAuthenticated()
    return str(user_id).strip()


__all__ = [
    "BatchWriteError",
    "CurationError",
    "DuplicateItem",
    "EditModeRequired",
    "FavoriteSlotsFull",
    "ItemNotFound",
    "ListAccessDenied",
    "ListNotFound",
    "NotAuthenticated",
    "RemoteStoreError",
    "ValidationError",
    "ensure_authenticated",
]
