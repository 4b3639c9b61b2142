"""Pydantic schemas that power the lists API surface."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from gamediary.schemas.game_log import GameInfo
from gamediary.services.types import GameListView


class ListCreate(BaseModel):
    """Payload for creating a list.  Blank names are rejected by the service."""

    name: str = Field(..., max_length=200)
    description: str | None = Field(None, max_length=1024)
    is_public: bool = True
    is_ranked: bool = False


class ListUpdate(BaseModel):
    """Partial update payload; omitted fields are left untouched."""

    name: str | None = Field(None, max_length=200)
    description: str | None = Field(None, max_length=1024)
    is_public: bool | None = None


class ListItemCreate(BaseModel):
    game_id: int = Field(..., description="Identifier of the game being added")
    game: GameInfo
    notes: str | None = Field(None, max_length=1024)


class ListReorderRequest(BaseModel):
    from_index: int = Field(..., description="Zero-based index of the item to move")
    to_index: int = Field(..., description="Zero-based index to reinsert the item at")


class ListRankedRequest(BaseModel):
    is_ranked: bool


class ListItemSchema(BaseModel):
    """Read model for one list membership."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None
    list_id: int
    game_id: int
    game_slug: str
    game_name: str
    game_cover_id: str | None = None
    position: int = Field(..., ge=0, description="Zero-based ordering index")
    notes: str | None = None


class ListSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    description: str | None = None
    is_public: bool
    is_ranked: bool
    item_count: int = 0
    items: list[ListItemSchema] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_view(cls, view: GameListView) -> ListSchema:
        return cls(
            id=view.id,
            user_id=view.user_id,
            name=view.name,
            description=view.description,
            is_public=view.is_public,
            is_ranked=view.is_ranked,
            item_count=len(view.items),
            items=[ListItemSchema.model_validate(item) for item in view.items],
            created_at=view.created_at,
            updated_at=view.updated_at,
        )


class ListCollectionResponse(BaseModel):
    total: int
    lists: list[ListSchema] = Field(default_factory=list)


class ListItemsResponse(BaseModel):
    list_id: int
    items: list[ListItemSchema] = Field(default_factory=list)


class ListMembershipSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    list_id: int
    list_name: str
    contains_game: bool
    item_id: int | None = None


class ListMembershipResponse(BaseModel):
    game_id: int
    lists: list[ListMembershipSchema] = Field(default_factory=list)
