"""FastAPI router exposing CRUD and ordering operations for game lists."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from gamediary.schemas.lists import (
    ListCollectionResponse,
    ListCreate,
    ListItemCreate,
    ListItemSchema,
    ListItemsResponse,
    ListMembershipResponse,
    ListMembershipSchema,
    ListRankedRequest,
    ListReorderRequest,
    ListSchema,
    ListUpdate,
)
from gamediary.services.dependencies import (
    get_current_user_id,
    get_list_manager,
    get_optional_user_id,
)
from gamediary.services.list_service import ListCollectionManager

router = APIRouter()


def _items_response(list_id: int, items) -> ListItemsResponse:
    return ListItemsResponse(
        list_id=list_id,
        items=[ListItemSchema.model_validate(item) for item in items],
    )


@router.get("", response_model=ListCollectionResponse)
async def list_my_lists(
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListCollectionResponse:
    """Return every list the caller owns, newest first."""

    lists = await manager.lists_for_user(user_id, viewer_id=user_id)
    return ListCollectionResponse(
        total=len(lists), lists=[ListSchema.from_view(view) for view in lists]
    )


@router.post("", response_model=ListSchema, status_code=status.HTTP_201_CREATED)
async def create_list(
    payload: ListCreate,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListSchema:
    view = await manager.create_list(
        user_id,
        payload.name,
        description=payload.description,
        is_public=payload.is_public,
        is_ranked=payload.is_ranked,
    )
    return ListSchema.from_view(view)


@router.get("/containing/{game_id}", response_model=ListMembershipResponse)
async def lists_containing(
    game_id: int,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListMembershipResponse:
    """Membership toggles for ``game_id`` across all of the caller's lists."""

    memberships = await manager.lists_containing(user_id, game_id)
    return ListMembershipResponse(
        game_id=game_id,
        lists=[ListMembershipSchema.model_validate(entry) for entry in memberships],
    )


@router.get("/{list_id}", response_model=ListSchema)
async def get_list(
    list_id: int,
    viewer_id: str | None = Depends(get_optional_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListSchema:
    """Retrieve a list; private lists are only visible to their owner."""

    return ListSchema.from_view(await manager.get_list(list_id, viewer_id=viewer_id))


@router.patch("/{list_id}", response_model=ListSchema)
async def update_list(
    list_id: int,
    payload: ListUpdate,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListSchema:
    view = await manager.update_list(
        user_id,
        list_id,
        name=payload.name,
        description=payload.description,
        is_public=payload.is_public,
    )
    return ListSchema.from_view(view)


@router.delete("/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(
    list_id: int,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> Response:
    """Remove a list and all of its items."""

    await manager.delete_list(user_id, list_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{list_id}/items",
    response_model=ListItemSchema,
    status_code=status.HTTP_201_CREATED,
)
async def add_item(
    list_id: int,
    payload: ListItemCreate,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListItemSchema:
    """Append a game to the end of the list."""

    item = await manager.add_item(
        user_id, list_id, payload.game.to_ref(payload.game_id), notes=payload.notes
    )
    return ListItemSchema.model_validate(item)


@router.delete("/{list_id}/items/{item_id}", response_model=ListItemsResponse)
async def remove_item(
    list_id: int,
    item_id: int,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListItemsResponse:
    items = await manager.remove_item(user_id, list_id, item_id)
    return _items_response(list_id, items)


@router.delete("/{list_id}/games/{game_id}", response_model=ListItemsResponse)
async def remove_game(
    list_id: int,
    game_id: int,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListItemsResponse:
    """Remove ``game_id`` from the list, as the membership toggle does."""

    items = await manager.remove_game(user_id, list_id, game_id)
    return _items_response(list_id, items)


@router.post("/{list_id}/reorder", response_model=ListItemsResponse)
async def reorder_items(
    list_id: int,
    payload: ListReorderRequest,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListItemsResponse:
    """Move one item and renumber the whole list."""

    items = await manager.reorder(user_id, list_id, payload.from_index, payload.to_index)
    return _items_response(list_id, items)


@router.put("/{list_id}/ranked", response_model=ListSchema)
async def set_ranked(
    list_id: int,
    payload: ListRankedRequest,
    user_id: str = Depends(get_current_user_id),
    manager: ListCollectionManager = Depends(get_list_manager),
) -> ListSchema:
    view = await manager.set_ranked(user_id, list_id, payload.is_ranked)
    return ListSchema.from_view(view)
