"""Favourite schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from favourites_api.schemas.asset import Asset, AssetType, dump_asset, parse_asset


class AddFavouriteRequest(BaseModel):
    """Schema for adding an asset to the user's favourites."""

    asset_type: str = Field(..., description="Type of the asset: chart, insight or audience")
    description: str = Field(default="", description="Optional note about the favourite")
    asset_data: dict[str, Any] = Field(..., description="Asset payload matching asset_type")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v: str | None) -> str:
        """Normalize description by stripping whitespace."""
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("asset_type", mode="before")
    @classmethod
    def normalize_asset_type(cls, v: str) -> str:
        """Normalize asset type to lowercase."""
        return v.strip().lower() if isinstance(v, str) else v


class UpdateDescriptionRequest(BaseModel):
    """Schema for replacing a favourite's description."""

    description: str | None = Field(default=None, description="New description")

    @field_validator("description", mode="before")
    @classmethod
    def normalize_description(cls, v: str | None) -> str | None:
        """Normalize description by stripping whitespace."""
        if v is None:
            return None
        return v.strip() if isinstance(v, str) else v


class FavouriteRecord(BaseModel):
    """A stored favourite with its reconstructed asset.

    ``id`` is the asset id and ``user_id`` the owner; together they identify
    the record.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Identifier of the favourited asset")
    user_id: str = Field(..., description="Owner of the favourite")
    asset_type: AssetType = Field(..., description="Type tag of the asset")
    description: str = Field(..., description="User supplied description")
    created_at: datetime = Field(..., description="Timestamp when the favourite was created")
    updated_at: datetime = Field(..., description="Timestamp when the description was last changed")
    data: Asset = Field(..., description="Asset payload")

    @model_validator(mode="before")
    @classmethod
    def reconstruct_asset(cls, values: Any) -> Any:
        """Pick the asset variant from ``asset_type`` when ``data`` arrives as a plain dict."""
        if isinstance(values, dict) and isinstance(values.get("data"), dict):
            values = dict(values)
            values["data"] = parse_asset(values.get("asset_type"), values["data"])
        return values

    @field_serializer("data")
    def serialize_data(self, data: Asset) -> dict[str, Any]:
        return dump_asset(data)


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned for every rejected request."""

    error: str
