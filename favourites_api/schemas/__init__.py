"""Pydantic schemas package."""

from favourites_api.schemas.asset import Asset, AssetType, Audience, Chart, Insight
from favourites_api.schemas.favourite import (
    AddFavouriteRequest,
    ErrorResponse,
    FavouriteRecord,
    MessageResponse,
    UpdateDescriptionRequest,
)

__all__ = [
    "Asset",
    "AssetType",
    "Chart",
    "Insight",
    "Audience",
    "AddFavouriteRequest",
    "UpdateDescriptionRequest",
    "FavouriteRecord",
    "MessageResponse",
    "ErrorResponse",
]
