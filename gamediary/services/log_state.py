"""Explicit state model for one user's relationship to one game.

A game log is either absent, ``want_to_play`` or ``played``.  ``favorite`` is
an orthogonal flag attached to any present log, and ``rating`` only exists on
``played`` logs.  Each user action is a total function from the current state
to a :class:`Transition` describing which record effect to apply and which
fields it is allowed to touch:

=================  ===================  ======================================
action             current state        effect
=================  ===================  ======================================
want to play       absent               create ``want_to_play``, no rating
want to play       ``want_to_play``     delete (vacates any favorite slot)
want to play       ``played``           update status, clear rating
rate ``v``         absent               create ``played`` with ``v``
rate ``v``         present              update status ``played``, rating ``v``
clear rating       absent               nothing
clear rating       present              update rating only
review ``text``    absent               create ``played`` with ``text``
review blank       absent               nothing
review             present              update review only
favorite on        favorite             nothing
favorite on        slots full           :class:`FavoriteSlotsFull`
favorite on        absent               create ``played`` at ``count + 1``
favorite on        present              update flag, position ``count + 1``
favorite off       not favorite         nothing
favorite off       favorite             clear flag and position
remove             absent               nothing
remove             present              delete
=================  ===================  ======================================
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from gamediary.errors import FavoriteSlotsFull, ValidationError
from gamediary.store.base import Record

MIN_RATING = 0.5
MAX_RATING = 5.0
STAR_COUNT = 5

CLEAR_RATING = None


class LogStatus(str, Enum):
    WANT_TO_PLAY = "want_to_play"
    PLAYED = "played"


class Effect(str, Enum):
    NONE = "none"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class LogState:
    """Snapshot of a game log.  ``status is None`` means no record exists."""

    status: LogStatus | None = None
    rating: float | None = None
    review: str | None = None
    favorite: bool = False
    favorite_position: int | None = None
    log_id: int | None = None

    @property
    def exists(self) -> bool:
        return self.status is not None

    @property
    def active_star(self) -> int:
        if self.rating is None:
            return 0
        return math.ceil(self.rating)


ABSENT = LogState()


@dataclass(frozen=True, slots=True)
class Transition:
    effect: Effect
    state: LogState
    changes: dict[str, Any] = field(default_factory=dict)
    vacates_slot: bool = False


def _unchanged(state: LogState) -> Transition:
    return Transition(Effect.NONE, state)


def validate_rating(value: Any) -> float | None:
    """Return ``value`` as a float half-star rating, or ``None`` to clear."""

    if value is CLEAR_RATING:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"Rating must be a number, got {value!r}")
    rating = float(value)
    if not MIN_RATING <= rating <= MAX_RATING or (rating * 2) != int(rating * 2):
        raise ValidationError(
            f"Rating must be a multiple of 0.5 between {MIN_RATING} and {MAX_RATING}"
        )
    return rating


def validate_star(star: Any) -> int:
    if isinstance(star, bool) or not isinstance(star, int) or not 1 <= star <= STAR_COUNT:
        raise ValidationError(f"Star must be an integer between 1 and {STAR_COUNT}")
    return star


def next_star_rating(current: float | None, star: int) -> float | None:
    """Rating that results from clicking ``star`` while rated ``current``.

    Clicking the active star cycles full, half, cleared; any other star sets
    exactly that many stars.
    """

    star = validate_star(star)
    active = LogState(rating=current).active_star
    if star == active:
        if current == float(star):
            return star - 0.5
        if current == star - 0.5:
            return CLEAR_RATING
    return float(star)


def want_to_play_transition(state: LogState) -> Transition:
    if state.status is LogStatus.WANT_TO_PLAY:
        return Transition(Effect.DELETE, ABSENT, vacates_slot=state.favorite)
    if state.status is LogStatus.PLAYED:
        changes = {"status": LogStatus.WANT_TO_PLAY.value, "rating": None}
        return Transition(
            Effect.UPDATE,
            replace(state, status=LogStatus.WANT_TO_PLAY, rating=None),
            changes,
        )
    created = LogState(status=LogStatus.WANT_TO_PLAY)
    return Transition(Effect.CREATE, created, record_fields(created))


def rating_transition(state: LogState, value: Any) -> Transition:
    rating = validate_rating(value)
    if rating is None:
        if not state.exists or state.rating is None:
            return _unchanged(state)
        return Transition(
            Effect.UPDATE,
            replace(state, rating=None),
            {"rating": None},
        )
    if not state.exists:
        created = LogState(status=LogStatus.PLAYED, rating=rating)
        return Transition(Effect.CREATE, created, record_fields(created))
    if state.status is LogStatus.PLAYED and state.rating == rating:
        return _unchanged(state)
    return Transition(
        Effect.UPDATE,
        replace(state, status=LogStatus.PLAYED, rating=rating),
        {"status": LogStatus.PLAYED.value, "rating": rating},
    )


def normalize_review(text: str | None) -> str | None:
    if text is None or not text.strip():
        return None
    return text


def review_transition(state: LogState, text: str | None) -> Transition:
    review = normalize_review(text)
    if not state.exists:
        if review is None:
            return _unchanged(state)
        created = LogState(status=LogStatus.PLAYED, review=review)
        return Transition(Effect.CREATE, created, record_fields(created))
    if state.review == review:
        return _unchanged(state)
    return Transition(Effect.UPDATE, replace(state, review=review), {"review": review})


def favorite_transition(
    state: LogState, on: bool, *, favorite_count: int, capacity: int
) -> Transition:
    """Raises :class:`FavoriteSlotsFull` before any state change when full."""

    if on:
        if state.favorite:
            return _unchanged(state)
        if favorite_count >= capacity:
            raise FavoriteSlotsFull(capacity)
        position = favorite_count + 1
        if not state.exists:
            created = LogState(
                status=LogStatus.PLAYED, favorite=True, favorite_position=position
            )
            return Transition(Effect.CREATE, created, record_fields(created))
        return Transition(
            Effect.UPDATE,
            replace(state, favorite=True, favorite_position=position),
            {"favorite": True, "favorite_position": position},
        )

    if not state.favorite:
        return _unchanged(state)
    return Transition(
        Effect.UPDATE,
        replace(state, favorite=False, favorite_position=None),
        {"favorite": False, "favorite_position": None},
        vacates_slot=True,
    )


def remove_transition(state: LogState) -> Transition:
    if not state.exists:
        return _unchanged(state)
    return Transition(Effect.DELETE, ABSENT, vacates_slot=state.favorite)


def state_from_record(record: Record | None) -> LogState:
    if record is None:
        return ABSENT
    return LogState(
        status=LogStatus(record["status"]),
        rating=record.get("rating"),
        review=record.get("review"),
        favorite=bool(record.get("favorite")),
        favorite_position=record.get("favorite_position"),
        log_id=record.get("id"),
    )


def record_fields(state: LogState) -> dict[str, Any]:
    """Column values for inserting ``state`` as a new record."""

    return {
        "status": state.status.value if state.status is not None else None,
        "rating": state.rating,
        "review": state.review,
        "favorite": state.favorite,
        "favorite_position": state.favorite_position,
    }


__all__ = [
    "ABSENT",
    "CLEAR_RATING",
    "Effect",
    "LogState",
    "LogStatus",
    "MAX_RATING",
    "MIN_RATING",
    "STAR_COUNT",
    "Transition",
    "favorite_transition",
    "next_star_rating",
    "normalize_review",
    "rating_transition",
    "record_fields",
    "remove_transition",
    "review_transition",
    "state_from_record",
    "validate_rating",
    "validate_star",
    "want_to_play_transition",
]
