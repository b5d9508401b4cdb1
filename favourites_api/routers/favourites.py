"""Favourites router.

Handlers are plain functions, so FastAPI runs each request on its worker
threadpool while the store call blocks.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from favourites_api.core.dependencies import (
    RequestContext,
    favourites_pipeline,
    get_request_context,
    get_store,
    read_json_body,
)
from favourites_api.core.exceptions import (
    FavouriteAlreadyExistsError,
    FavouriteNotFoundError,
    StoreError,
    ValidationFailedError,
)
from favourites_api.core.store import FavouritesStore
from favourites_api.core.validation import validate_asset_id
from favourites_api.schemas.asset import parse_asset
from favourites_api.schemas.favourite import (
    AddFavouriteRequest,
    FavouriteRecord,
    MessageResponse,
    UpdateDescriptionRequest,
)

router = APIRouter(
    prefix="/api/v1/favourites",
    tags=["favourites"],
    dependencies=favourites_pipeline,
)


def _parse_body(model, body: Any, context: RequestContext):
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        context.logger.warning(f"Invalid request body: {exc.error_count()} error(s)")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body")


def _check_asset_id(asset_id: str, context: RequestContext) -> None:
    try:
        validate_asset_id(asset_id)
    except ValidationFailedError as exc:
        context.logger.warning(f"Rejected asset id {asset_id!r}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _store_failure(context: RequestContext, action: str, exc: StoreError) -> HTTPException:
    context.logger.error(f"Failed to {action}: {exc}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"failed to {action}")


@router.get("", response_model=list[FavouriteRecord], status_code=status.HTTP_200_OK)
def list_favourites(
    context: Annotated[RequestContext, Depends(get_request_context)],
    store: Annotated[FavouritesStore, Depends(get_store)],
) -> list[FavouriteRecord]:
    """List the current user's favourites, newest first.

    Args:
        context: Request context with the authenticated user
        store: Favourites store

    Returns:
        list[FavouriteRecord]: The user's favourites with their asset payloads
    """
    context.logger.info("Received get favourites request")
    try:
        favourites = store.list(context.user_id)
    except StoreError as exc:
        raise _store_failure(context, "get favourites", exc)

    context.logger.info(f"Retrieved {len(favourites)} favourites")
    return favourites


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def add_favourite(
    context: Annotated[RequestContext, Depends(get_request_context)],
    store: Annotated[FavouritesStore, Depends(get_store)],
    body: Annotated[Any, Depends(read_json_body)],
) -> MessageResponse:
    """Add an asset to the current user's favourites.

    Args:
        context: Request context with the authenticated user
        store: Favourites store
        body: Decoded JSON body: asset_type, description, asset_data

    Returns:
        MessageResponse: Acknowledgement

    Raises:
        HTTPException: 400 on a malformed body or invalid asset, 409 if already a favourite
    """
    payload = _parse_body(AddFavouriteRequest, body, context)
    context.logger.info(f"Received add favourite request for asset_type={payload.asset_type}")

    try:
        asset = parse_asset(payload.asset_type, payload.asset_data)
        store.create(context.user_id, asset, payload.description)
    except ValidationFailedError as exc:
        context.logger.warning(f"Invalid add favourite request: {exc}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except FavouriteAlreadyExistsError:
        context.logger.warning(f"Favourite already exists for asset {asset.id}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Favourite already exists")
    except StoreError as exc:
        raise _store_failure(context, "add favourite", exc)

    context.logger.info(f"Favourite {asset.id} ({asset.asset_type.value}) added")
    return MessageResponse(message="Favourite added successfully")


@router.patch("/{asset_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def update_favourite(
    asset_id: str,
    context: Annotated[RequestContext, Depends(get_request_context)],
    store: Annotated[FavouritesStore, Depends(get_store)],
    body: Annotated[Any, Depends(read_json_body)],
) -> MessageResponse:
    """Replace the description of one of the current user's favourites.

    Args:
        asset_id: Identifier of the favourited asset
        context: Request context with the authenticated user
        store: Favourites store
        body: Decoded JSON body: description

    Returns:
        MessageResponse: Acknowledgement

    Raises:
        HTTPException: 400 on a blank asset id, malformed body or invalid description, 404 if absent
    """
    _check_asset_id(asset_id, context)
    payload = _parse_body(UpdateDescriptionRequest, body, context)
    context.logger.info(f"Received update favourite request for asset {asset_id}")

    try:
        store.update(context.user_id, asset_id, payload.description)
    except ValidationFailedError as exc:
        context.logger.warning(f"Validation error on update favourite {asset_id}: {exc}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except FavouriteNotFoundError:
        context.logger.warning(f"Favourite {asset_id} not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Favourite not found")
    except StoreError as exc:
        raise _store_failure(context, "update favourite", exc)

    context.logger.info(f"Favourite {asset_id} updated")
    return MessageResponse(message="Description updated successfully")


@router.delete("/{asset_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def remove_favourite(
    asset_id: str,
    context: Annotated[RequestContext, Depends(get_request_context)],
    store: Annotated[FavouritesStore, Depends(get_store)],
) -> MessageResponse:
    """Remove one of the current user's favourites.

    Raises:
        HTTPException: 400 on a blank asset id, 404 if absent
    """
    _check_asset_id(asset_id, context)
    context.logger.info(f"Received remove favourite request for asset {asset_id}")

    try:
        store.delete(context.user_id, asset_id)
    except FavouriteNotFoundError:
        context.logger.warning(f"Favourite {asset_id} not found")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Favourite not found")
    except StoreError as exc:
        raise _store_failure(context, "remove favourite", exc)

    context.logger.info(f"Favourite {asset_id} removed")
    return MessageResponse(message="Favourite removed successfully")
