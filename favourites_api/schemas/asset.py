"""Asset schemas.

An asset is one of a closed set of platform entities a user can favourite.
Each variant carries its ``asset_type`` tag as a class attribute; the tag is
not part of the payload, it travels next to it (``asset_type`` in requests,
the ``asset_type`` column in the database). Assets are frozen once built.
"""

from enum import Enum
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from favourites_api.core.exceptions import ValidationFailedError


class AssetType(str, Enum):
    """Discriminant for the asset variants."""

    CHART = "chart"
    INSIGHT = "insight"
    AUDIENCE = "audience"


class BaseAsset(BaseModel):
    """Fields shared by every asset variant."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    asset_type: ClassVar[AssetType]

    id: str = Field(default="", description="Identifier of the asset on the platform")


class Chart(BaseAsset):
    """A chart with axis titles and an opaque data payload."""

    asset_type: ClassVar[AssetType] = AssetType.CHART

    title: str = Field(default="", description="Chart title")
    x_axis_title: str = Field(default="", description="X axis title")
    y_axis_title: str = Field(default="", description="Y axis title")
    data: dict[str, Any] | None = Field(default=None, description="Chart data points, stored as given")


class Insight(BaseAsset):
    """A short free-text insight."""

    asset_type: ClassVar[AssetType] = AssetType.INSIGHT

    text: str = Field(default="", description="Insight text")


class Audience(BaseAsset):
    """An audience segment described by demographic filters."""

    asset_type: ClassVar[AssetType] = AssetType.AUDIENCE

    gender: list[str] = Field(default_factory=list, description="Genders included in the segment")
    birth_country: list[str] = Field(default_factory=list, description="Countries of birth")
    age_groups: list[str] = Field(default_factory=list, description="Age brackets")
    social_media_hours_daily: str = Field(default="", description="Daily social media usage bracket")
    purchases_last_month: int = Field(default=0, description="Purchases made in the last month")


Asset = Union[Chart, Insight, Audience]

ASSET_MODELS: dict[AssetType, type[BaseAsset]] = {
    AssetType.CHART: Chart,
    AssetType.INSIGHT: Insight,
    AssetType.AUDIENCE: Audience,
}


def asset_identifier(asset: Asset) -> str:
    """Return the asset's identifier."""
    return asset.id


def asset_type_of(asset: Asset) -> AssetType:
    """Return the asset's type tag."""
    return asset.asset_type


def parse_asset_type(value: str) -> AssetType:
    """Convert a raw tag into an ``AssetType``.

    Raises:
        ValidationFailedError: If the tag is not one of the known variants
    """
    try:
        return AssetType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in AssetType)
        raise ValidationFailedError([f"asset_type has invalid value {value!r} (allowed: {allowed})"])


def parse_asset(asset_type: AssetType | str, data: dict[str, Any]) -> Asset:
    """Build the concrete asset variant selected by ``asset_type``.

    Args:
        asset_type: Type tag, either an ``AssetType`` or its string value
        data: JSON payload of the asset

    Returns:
        Asset: Chart, Insight or Audience instance

    Raises:
        ValidationFailedError: If the tag is unknown or the payload has wrongly typed fields
    """
    if not isinstance(asset_type, AssetType):
        asset_type = parse_asset_type(asset_type)
    if not isinstance(data, dict):
        raise ValidationFailedError(["asset_data must be a JSON object"])

    model = ASSET_MODELS[asset_type]
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationFailedError([_format_pydantic_error(error) for error in exc.errors()])


def dump_asset(asset: Asset) -> dict[str, Any]:
    """Serialize an asset to a JSON-compatible dict."""
    return asset.model_dump(mode="json")


def _format_pydantic_error(error: dict[str, Any]) -> str:
    location = ""
    for part in error.get("loc", ()):
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f".{part}" if location else str(part)
    return f"{location or 'asset_data'}: {error.get('msg', 'invalid value')}"
