"""Integration-style tests that drive the FastAPI routes over an in-memory store."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from gamediary.main import app
from gamediary.services.dependencies import get_curation_engine
from gamediary.store.base import GAME_LOGS, LIST_ITEMS, LISTS
from tests.gamediary.conftest import OTHER_USER, USER

AS_USER = {"X-User-Id": USER}
AS_OTHER = {"X-User-Id": OTHER_USER}


def _game(game_id: int) -> dict[str, str]:
    return {"slug": f"game-{game_id}", "name": f"Game {game_id}"}


@pytest_asyncio.fixture
async def api_client(engine) -> AsyncIterator[AsyncClient]:
    """``AsyncClient`` whose routes resolve the test curation engine."""

    app.dependency_overrides.clear()
    app.dependency_overrides[get_curation_engine] = lambda: engine

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client

    app.dependency_overrides.clear()


async def _create_list(client: AsyncClient, name: str = "Backlog", **extra) -> int:
    response = await client.post("/lists", json={"name": name, **extra}, headers=AS_USER)
    assert response.status_code == 201
    return response.json()["id"]


async def _add(client: AsyncClient, list_id: int, game_id: int):
    return await client.post(
        f"/lists/{list_id}/items",
        json={"game_id": game_id, "game": _game(game_id)},
        headers=AS_USER,
    )


@pytest.mark.asyncio
async def test_health_echoes_request_id(api_client: AsyncClient) -> None:
    response = await api_client.get("/health", headers={"X-Request-ID": "trace-42"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "trace-42"


@pytest.mark.asyncio
async def test_missing_identity_is_401(api_client: AsyncClient) -> None:
    response = await api_client.put("/logs/1/rating", json={"game": _game(1), "rating": 3})

    assert response.status_code == 401
    payload = response.json()
    assert payload["error_type"] == "authentication_error"
    assert payload["detail"] == "NotAuthenticated"
    assert payload["request_id"] == response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_star_clicks_cycle_through_api(api_client: AsyncClient) -> None:
    body = {"game": _game(3)}

    first = await api_client.post("/logs/3/stars/4", json=body, headers=AS_USER)
    second = await api_client.post("/logs/3/stars/4", json=body, headers=AS_USER)
    third = await api_client.post("/logs/3/stars/4", json=body, headers=AS_USER)

    assert first.json()["rating"] == 4.0
    assert first.json()["status"] == "played"
    assert second.json()["rating"] == 3.5
    assert second.json()["active_star"] == 4
    assert third.json()["rating"] is None
    assert third.json()["exists"] is True


@pytest.mark.asyncio
async def test_invalid_rating_is_400(api_client: AsyncClient, store) -> None:
    response = await api_client.put(
        "/logs/1/rating", json={"game": _game(1), "rating": 4.2}, headers=AS_USER
    )

    assert response.status_code == 400
    assert response.json()["error_type"] == "validation_error"
    assert store.rows(GAME_LOGS) == []


@pytest.mark.asyncio
async def test_malformed_body_is_422(api_client: AsyncClient) -> None:
    response = await api_client.put("/logs/1/favorite", json={"favorite": True}, headers=AS_USER)

    assert response.status_code == 422
    payload = response.json()
    assert payload["error_type"] == "validation_error"
    assert any(error["field"].endswith("game") for error in payload["errors"])


@pytest.mark.asyncio
async def test_sixth_favorite_is_409_capacity_exceeded(api_client: AsyncClient) -> None:
    for game_id in range(1, 6):
        response = await api_client.put(
            f"/logs/{game_id}/favorite",
            json={"game": _game(game_id), "favorite": True},
            headers=AS_USER,
        )
        assert response.json()["favorite_position"] == game_id

    response = await api_client.put(
        "/logs/6/favorite", json={"game": _game(6), "favorite": True}, headers=AS_USER
    )

    assert response.status_code == 409
    assert response.json()["error_type"] == "capacity_exceeded"


@pytest.mark.asyncio
async def test_remote_failure_is_503_with_retry_after(api_client: AsyncClient, store) -> None:
    store.fail("insert", GAME_LOGS)

    response = await api_client.put(
        "/logs/1/want-to-play", json={"game": _game(1)}, headers=AS_USER
    )

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "2"
    assert response.json()["error_type"] == "remote_store_error"


@pytest.mark.asyncio
async def test_get_and_remove_game_log(api_client: AsyncClient) -> None:
    missing = await api_client.get("/logs/9", headers=AS_USER)
    assert missing.json()["exists"] is False

    await api_client.put(
        "/logs/9/review", json={"game": _game(9), "review": "Great"}, headers=AS_USER
    )
    loaded = await api_client.get("/logs/9", headers=AS_USER)
    assert loaded.json()["review"] == "Great"

    removed = await api_client.delete("/logs/9", headers=AS_USER)
    assert removed.status_code == 200
    assert removed.json()["exists"] is False


@pytest.mark.asyncio
async def test_favorites_order_round_trip(api_client: AsyncClient) -> None:
    log_ids = []
    for game_id in (1, 2, 3):
        response = await api_client.put(
            f"/logs/{game_id}/favorite",
            json={"game": _game(game_id), "favorite": True},
            headers=AS_USER,
        )
        log_ids.append(response.json()["log_id"])

    response = await api_client.put(
        "/favorites/order",
        json={"game_log_ids": [log_ids[2], log_ids[0]]},
        headers=AS_USER,
    )

    assert response.status_code == 200
    payload = response.json()
    assert [entry["game_id"] for entry in payload["favorites"]] == [3, 1]
    assert [entry["position"] for entry in payload["favorites"]] == [1, 2]
    assert len(payload["slots"]) == payload["capacity"] == 5
    assert payload["slots"][2] is None

    listing = await api_client.get("/favorites", headers=AS_USER)
    assert [entry["game_id"] for entry in listing.json()["favorites"]] == [3, 1]


@pytest.mark.asyncio
async def test_favorites_order_rejects_unknown_ids(api_client: AsyncClient) -> None:
    response = await api_client.put(
        "/favorites/order", json={"game_log_ids": [12345]}, headers=AS_USER
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_lifecycle(api_client: AsyncClient, store) -> None:
    list_id = await _create_list(api_client)
    for game_id in (1, 2, 3):
        response = await _add(api_client, list_id, game_id)
        assert response.status_code == 201
        assert response.json()["position"] == game_id - 1

    reordered = await api_client.post(
        f"/lists/{list_id}/reorder", json={"from_index": 2, "to_index": 0}, headers=AS_USER
    )
    assert [item["game_id"] for item in reordered.json()["items"]] == [3, 1, 2]

    removed = await api_client.delete(f"/lists/{list_id}/games/1", headers=AS_USER)
    assert [(item["game_id"], item["position"]) for item in removed.json()["items"]] == [
        (3, 0),
        (2, 1),
    ]

    ranked = await api_client.put(
        f"/lists/{list_id}/ranked", json={"is_ranked": True}, headers=AS_USER
    )
    assert ranked.json()["is_ranked"] is True
    assert ranked.json()["item_count"] == 2

    mine = await api_client.get("/lists", headers=AS_USER)
    assert mine.json()["total"] == 1

    deleted = await api_client.delete(f"/lists/{list_id}", headers=AS_USER)
    assert deleted.status_code == 204
    assert store.rows(LIST_ITEMS) == []


@pytest.mark.asyncio
async def test_duplicate_item_is_409(api_client: AsyncClient) -> None:
    list_id = await _create_list(api_client)
    await _add(api_client, list_id, 1)

    response = await _add(api_client, list_id, 1)

    assert response.status_code == 409
    assert response.json()["detail"] == "DuplicateItem"


@pytest.mark.asyncio
async def test_blank_list_name_is_400(api_client: AsyncClient) -> None:
    response = await api_client.post("/lists", json={"name": "   "}, headers=AS_USER)

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_foreign_list_mutation_is_403_and_missing_is_404(api_client: AsyncClient) -> None:
    list_id = await _create_list(api_client)

    forbidden = await api_client.post(
        f"/lists/{list_id}/items",
        json={"game_id": 1, "game": _game(1)},
        headers=AS_OTHER,
    )
    missing = await api_client.delete(f"/lists/{list_id}/items/999", headers=AS_USER)
    unknown = await api_client.get("/lists/4040")

    assert forbidden.status_code == 403
    assert forbidden.json()["error_type"] == "authorization_error"
    assert missing.status_code == 404
    assert unknown.status_code == 404


@pytest.mark.asyncio
async def test_private_list_visible_only_to_owner(api_client: AsyncClient) -> None:
    list_id = await _create_list(api_client, "Secret", is_public=False)

    assert (await api_client.get(f"/lists/{list_id}", headers=AS_USER)).status_code == 200
    assert (await api_client.get(f"/lists/{list_id}", headers=AS_OTHER)).status_code == 404
    assert (await api_client.get(f"/lists/{list_id}")).status_code == 404


@pytest.mark.asyncio
async def test_lists_containing_reports_membership(api_client: AsyncClient) -> None:
    with_game = await _create_list(api_client, "Has it")
    without_game = await _create_list(api_client, "Lacks it")
    await _add(api_client, with_game, 7)

    response = await api_client.get("/lists/containing/7", headers=AS_USER)

    assert response.status_code == 200
    flags = {entry["list_id"]: entry["contains_game"] for entry in response.json()["lists"]}
    assert flags == {with_game: True, without_game: False}


@pytest.mark.asyncio
async def test_list_description_longer_than_column_is_422(api_client: AsyncClient, store) -> None:
    too_long = "x" * 1025

    created = await api_client.post(
        "/lists", json={"name": "Backlog", "description": too_long}, headers=AS_USER
    )
    assert created.status_code == 422

    list_id = await _create_list(api_client, description="y" * 1024)
    updated = await api_client.patch(
        f"/lists/{list_id}", json={"description": too_long}, headers=AS_USER
    )
    assert updated.status_code == 422
    assert len(store.rows(LISTS)[0]["description"]) == 1024


@pytest.mark.asyncio
async def test_failed_favorites_order_leaves_stored_order_visible(
    api_client: AsyncClient, engine, store
) -> None:
    log_ids = []
    for game_id in (1, 2, 3):
        response = await api_client.put(
            f"/logs/{game_id}/favorite",
            json={"game": _game(game_id), "favorite": True},
            headers=AS_USER,
        )
        log_ids.append(response.json()["log_id"])
    store.fail("update", GAME_LOGS, times=9)

    failed = await api_client.put(
        "/favorites/order", json={"game_log_ids": list(reversed(log_ids))}, headers=AS_USER
    )
    assert failed.status_code == 503

    listing = await api_client.get("/favorites", headers=AS_USER)
    assert [entry["game_id"] for entry in listing.json()["favorites"]] == [1, 2, 3]

    retried = await api_client.put(
        "/favorites/order", json={"game_log_ids": list(reversed(log_ids))}, headers=AS_USER
    )
    assert retried.status_code == 200
    assert [entry["game_id"] for entry in retried.json()["favorites"]] == [3, 2, 1]
    assert engine._rankers == {}


@pytest.mark.asyncio
async def test_favorites_order_reloads_after_changes_made_elsewhere(
    api_client: AsyncClient, store
) -> None:
    log_ids = []
    for game_id in (1, 2):
        response = await api_client.put(
            f"/logs/{game_id}/favorite",
            json={"game": _game(game_id), "favorite": True},
            headers=AS_USER,
        )
        log_ids.append(response.json()["log_id"])
    store.fail("update", GAME_LOGS, times=6)
    failed = await api_client.put(
        "/favorites/order", json={"game_log_ids": [log_ids[1], log_ids[0]]}, headers=AS_USER
    )
    assert failed.status_code == 503

    added = await api_client.put(
        "/logs/3/favorite", json={"game": _game(3), "favorite": True}, headers=AS_USER
    )
    new_id = added.json()["log_id"]

    response = await api_client.put(
        "/favorites/order",
        json={"game_log_ids": [new_id, log_ids[1], log_ids[0]]},
        headers=AS_USER,
    )

    assert response.status_code == 200
    assert [entry["game_id"] for entry in response.json()["favorites"]] == [3, 2, 1]
