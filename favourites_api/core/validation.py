"""Field-level validation for assets and favourite descriptions.

Checks never stop at the first failure: every rule for a payload runs and the
messages are collected, so a client gets the full list in one response.
"""

from typing import Callable, Iterable

from favourites_api.core.exceptions import ValidationFailedError
from favourites_api.schemas.asset import (
    Asset,
    AssetType,
    Audience,
    Chart,
    Insight,
    asset_type_of,
)

MAX_STRING_LENGTH = 255

VALID_GENDERS = ("Male", "Female")
VALID_AGE_GROUPS = ("18-24", "25-34", "35-44", "45-54", "55+")
VALID_SOCIAL_MEDIA_HOURS = ("0-1", "1-3", "3-5", "5+")


def require_non_empty(field: str, value: str | None) -> str | None:
    if value is None or value.strip() == "":
        return f"{field} is required"
    return None


def check_max_length(field: str, value: str | None, limit: int = MAX_STRING_LENGTH) -> str | None:
    if value is not None and len(value) > limit:
        return f"{field} exceeds maximum length of {limit}"
    return None


def check_in_list(field: str, value: str, allowed: Iterable[str]) -> str | None:
    allowed = tuple(allowed)
    if value not in allowed:
        return f"{field} has invalid value {value!r} (allowed: {', '.join(allowed)})"
    return None


def check_non_negative(field: str, value: int) -> str | None:
    if value < 0:
        return f"{field} must not be negative"
    return None


def _collect(messages: Iterable[str | None]) -> list[str]:
    return [message for message in messages if message]


def _validate_required_text(field: str, value: str) -> list[str | None]:
    return [require_non_empty(field, value), check_max_length(field, value)]


def validate_chart(chart: Chart) -> list[str]:
    return _collect(
        _validate_required_text("id", chart.id)
        + _validate_required_text("title", chart.title)
        + _validate_required_text("x_axis_title", chart.x_axis_title)
        + _validate_required_text("y_axis_title", chart.y_axis_title)
    )


def validate_insight(insight: Insight) -> list[str]:
    return _collect(
        _validate_required_text("id", insight.id)
        + _validate_required_text("text", insight.text)
    )


def validate_audience(audience: Audience) -> list[str]:
    """Validate an audience. Only ``id`` is required; other fields are checked when set."""
    checks = _validate_required_text("id", audience.id)
    checks.append(check_non_negative("purchases_last_month", audience.purchases_last_month))

    for i, gender in enumerate(audience.gender):
        checks.append(check_in_list(f"gender[{i}]", gender, VALID_GENDERS))
    for i, country in enumerate(audience.birth_country):
        checks.append(require_non_empty(f"birth_country[{i}]", country))
    for i, age_group in enumerate(audience.age_groups):
        checks.append(check_in_list(f"age_groups[{i}]", age_group, VALID_AGE_GROUPS))
    if audience.social_media_hours_daily:
        checks.append(
            check_in_list("social_media_hours_daily", audience.social_media_hours_daily, VALID_SOCIAL_MEDIA_HOURS)
        )

    return _collect(checks)


_VALIDATORS: dict[AssetType, Callable[..., list[str]]] = {
    AssetType.CHART: validate_chart,
    AssetType.INSIGHT: validate_insight,
    AssetType.AUDIENCE: validate_audience,
}


def validate_asset(asset: Asset) -> list[str]:
    """Run the validator registered for the asset's type.

    Args:
        asset: Asset to validate

    Returns:
        list[str]: Validation messages, empty when the asset is valid
    """
    return _VALIDATORS[asset_type_of(asset)](asset)


def validate_description(description: str | None, *, required: bool = True) -> list[str]:
    """Validate a favourite description.

    Args:
        description: Description text
        required: Whether a blank description is a violation (updates) or allowed (creates)

    Returns:
        list[str]: Validation messages, empty when the description is valid
    """
    checks = [check_max_length("description", description)]
    if required:
        checks.insert(0, require_non_empty("description", description))
    return _collect(checks)


def validate_asset_id(asset_id: str | None) -> None:
    """Reject a blank asset identifier taken from a request path.

    Raises:
        ValidationFailedError: If the identifier is empty or whitespace only
    """
    errors = _collect([require_non_empty("asset_id", asset_id)])
    if errors:
        raise ValidationFailedError(errors)


def ensure_valid_favourite(asset: Asset, description: str | None) -> None:
    """Validate an asset together with the description it is saved with.

    Raises:
        ValidationFailedError: Carrying every violation in the asset and description
    """
    errors = validate_asset(asset) + validate_description(description, required=False)
    if errors:
        raise ValidationFailedError(errors)


def ensure_valid_description(description: str | None) -> None:
    """Validate a replacement description.

    Raises:
        ValidationFailedError: If the description is blank or too long
    """
    errors = validate_description(description, required=True)
    if errors:
        raise ValidationFailedError(errors)
