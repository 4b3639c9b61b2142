"""Pydantic schemas for API requests and responses."""

from gamediary.schemas.error import (  # noqa: F401
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from gamediary.schemas.favorites import (  # noqa: F401
    FavoriteOrderRequest,
    FavoriteSlot,
    FavoritesResponse,
)
from gamediary.schemas.game_log import (  # noqa: F401
    FavoriteRequest,
    GameInfo,
    GameLogResponse,
    RatingRequest,
    ReviewRequest,
    StarClickRequest,
    WantToPlayRequest,
)
from gamediary.schemas.lists import (  # noqa: F401
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
