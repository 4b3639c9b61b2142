"""Unit tests for the explicit game log transition table."""

from __future__ import annotations

import pytest

from gamediary.errors import FavoriteSlotsFull, ValidationError
from gamediary.services.log_state import (
    ABSENT,
    CLEAR_RATING,
    Effect,
    LogState,
    LogStatus,
    favorite_transition,
    next_star_rating,
    rating_transition,
    remove_transition,
    review_transition,
    state_from_record,
    validate_rating,
    want_to_play_transition,
)

PLAYED_FOUR = LogState(status=LogStatus.PLAYED, rating=4.0, log_id=7)


@pytest.mark.parametrize(
    ("current", "star", "expected"),
    [
        (None, 3, 3.0),
        (4.0, 4, 3.5),
        (3.5, 4, None),
        (4.0, 2, 2.0),
        (2.5, 5, 5.0),
        (1.0, 1, 0.5),
        (0.5, 1, None),
        (4.5, 4, 4.0),
    ],
)
def test_next_star_rating_follows_click_cycle(current, star, expected) -> None:
    assert next_star_rating(current, star) == expected


def test_repeated_clicks_on_one_star_cycle_full_half_clear() -> None:
    """Clicking the same star keeps cycling regardless of the starting rating."""

    for start in (None, 0.5, 2.0, 3.5, 5.0):
        rating = start
        seen = []
        for _ in range(6):
            rating = next_star_rating(rating, 3)
            seen.append(rating)
        cycle_start = seen.index(3.0)
        assert seen[cycle_start : cycle_start + 3] == [3.0, 2.5, None]


@pytest.mark.parametrize("star", [0, 6, -1, 2.5, True])
def test_next_star_rating_rejects_invalid_star(star) -> None:
    with pytest.raises(ValidationError):
        next_star_rating(None, star)


@pytest.mark.parametrize("value", [0, 0.25, 5.5, 3.3, "4", False, float("nan")])
def test_validate_rating_rejects_off_grid_values(value) -> None:
    with pytest.raises(ValidationError):
        validate_rating(value)


def test_validate_rating_accepts_half_steps_and_clear() -> None:
    assert validate_rating(4) == 4.0
    assert validate_rating(0.5) == 0.5
    assert validate_rating(CLEAR_RATING) is None


@pytest.mark.parametrize("rating", [None, 0.5, 2.0, 3.5, 5.0])
def test_want_to_play_always_clears_rating(rating) -> None:
    state = LogState(status=LogStatus.PLAYED, rating=rating, favorite=True, favorite_position=2, log_id=1)

    transition = want_to_play_transition(state)

    assert transition.effect is Effect.UPDATE
    assert transition.state.rating is None
    assert transition.state.status is LogStatus.WANT_TO_PLAY
    assert transition.state.favorite is True
    assert transition.state.favorite_position == 2
    assert transition.changes == {"status": "want_to_play", "rating": None}


def test_want_to_play_toggles_off_by_deleting() -> None:
    state = LogState(status=LogStatus.WANT_TO_PLAY, favorite=True, favorite_position=1, log_id=3)

    transition = want_to_play_transition(state)

    assert transition.effect is Effect.DELETE
    assert transition.state == ABSENT
    assert transition.vacates_slot is True


def test_want_to_play_creates_missing_log() -> None:
    transition = want_to_play_transition(ABSENT)

    assert transition.effect is Effect.CREATE
    assert transition.changes["status"] == "want_to_play"
    assert transition.changes["rating"] is None
    assert transition.changes["favorite"] is False


def test_clearing_rating_never_creates_a_record() -> None:
    assert rating_transition(ABSENT, CLEAR_RATING).effect is Effect.NONE


def test_clearing_rating_keeps_status() -> None:
    transition = rating_transition(PLAYED_FOUR, CLEAR_RATING)

    assert transition.effect is Effect.UPDATE
    assert transition.changes == {"rating": None}
    assert transition.state.status is LogStatus.PLAYED


def test_rating_forces_played_status() -> None:
    state = LogState(status=LogStatus.WANT_TO_PLAY, log_id=4)

    transition = rating_transition(state, 3.5)

    assert transition.changes == {"status": "played", "rating": 3.5}
    assert transition.state.status is LogStatus.PLAYED


def test_same_rating_is_a_no_op() -> None:
    assert rating_transition(PLAYED_FOUR, 4).effect is Effect.NONE


def test_review_creates_played_log_only_for_text() -> None:
    assert review_transition(ABSENT, "   ").effect is Effect.NONE
    created = review_transition(ABSENT, "Loved the soundtrack")
    assert created.effect is Effect.CREATE
    assert created.changes["status"] == "played"
    assert created.changes["review"] == "Loved the soundtrack"


def test_blank_review_clears_existing_text() -> None:
    state = LogState(status=LogStatus.PLAYED, review="old", log_id=2)

    transition = review_transition(state, "")

    assert transition.changes == {"review": None}


def test_favorite_on_raises_when_slots_are_full() -> None:
    with pytest.raises(FavoriteSlotsFull):
        favorite_transition(PLAYED_FOUR, True, favorite_count=5, capacity=5)


def test_favorite_on_appends_after_existing_slots() -> None:
    transition = favorite_transition(PLAYED_FOUR, True, favorite_count=2, capacity=5)

    assert transition.changes == {"favorite": True, "favorite_position": 3}


def test_favorite_on_for_missing_log_creates_played() -> None:
    transition = favorite_transition(ABSENT, True, favorite_count=0, capacity=5)

    assert transition.effect is Effect.CREATE
    assert transition.changes["status"] == "played"
    assert transition.changes["favorite_position"] == 1


def test_favorite_on_for_existing_favorite_ignores_capacity() -> None:
    state = LogState(status=LogStatus.PLAYED, favorite=True, favorite_position=5, log_id=9)

    assert favorite_transition(state, True, favorite_count=5, capacity=5).effect is Effect.NONE


def test_favorite_off_clears_position_and_vacates() -> None:
    state = LogState(status=LogStatus.PLAYED, favorite=True, favorite_position=2, log_id=9)

    transition = favorite_transition(state, False, favorite_count=0, capacity=5)

    assert transition.changes == {"favorite": False, "favorite_position": None}
    assert transition.vacates_slot is True


def test_remove_absent_is_a_no_op() -> None:
    assert remove_transition(ABSENT).effect is Effect.NONE
    assert remove_transition(PLAYED_FOUR).effect is Effect.DELETE


def test_state_from_record_reads_all_fields() -> None:
    state = state_from_record(
        {
            "id": 11,
            "status": "played",
            "rating": 4.5,
            "review": "great",
            "favorite": True,
            "favorite_position": 1,
        }
    )

    assert state == LogState(
        status=LogStatus.PLAYED,
        rating=4.5,
        review="great",
        favorite=True,
        favorite_position=1,
        log_id=11,
    )
    assert state.active_star == 5
