"""Favourites store abstraction and the in-memory reference backend."""

import logging
import threading
from datetime import datetime, timedelta, timezone

from favourites_api.core.exceptions import (
    FavouriteAlreadyExistsError,
    FavouriteNotFoundError,
)
from favourites_api.core.validation import ensure_valid_description, ensure_valid_favourite
from favourites_api.schemas.asset import Asset, asset_identifier, asset_type_of
from favourites_api.schemas.favourite import FavouriteRecord

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def next_update_time(previous: datetime) -> datetime:
    """Current time, nudged forward if needed so it is strictly after ``previous``."""
    now = utc_now()
    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def newest_first(records: list[FavouriteRecord]) -> list[FavouriteRecord]:
    """Order records by ``created_at`` descending, ties broken by asset id ascending."""
    by_id = sorted(records, key=lambda r: r.id)
    return sorted(by_id, key=lambda r: r.created_at, reverse=True)


class FavouritesStore:
    """Keyed collection of favourites, one record per (user_id, asset_id).

    ``create`` and ``update`` validate their input here before handing over
    to the backend, so no backend ever persists an invalid record.
    """

    def list(self, user_id: str) -> list[FavouriteRecord]:
        """List a user's favourites, newest first; equal timestamps are ordered by asset id.

        Args:
            user_id: Owner of the favourites

        Returns:
            list[FavouriteRecord]: Favourites, empty for an unknown user

        Raises:
            StoreError: If the backend fails
        """
        raise NotImplementedError

    def get(self, user_id: str, asset_id: str) -> FavouriteRecord:
        """Fetch one favourite.

        Raises:
            FavouriteNotFoundError: If the user has no favourite for asset_id
            StoreError: If the backend fails
        """
        raise NotImplementedError

    def create(self, user_id: str, asset: Asset, description: str = "") -> FavouriteRecord:
        """Validate and store a new favourite.

        Args:
            user_id: Owner of the favourite
            asset: Asset being favourited
            description: Optional note, at most 255 characters

        Returns:
            FavouriteRecord: The stored record

        Raises:
            ValidationFailedError: If the asset or description is invalid; nothing is stored
            FavouriteAlreadyExistsError: If the user already has this asset as a favourite
            StoreError: If the backend fails
        """
        ensure_valid_favourite(asset, description)
        now = utc_now()
        record = FavouriteRecord(
            id=asset_identifier(asset),
            user_id=user_id,
            asset_type=asset_type_of(asset),
            description=description or "",
            created_at=now,
            updated_at=now,
            data=asset,
        )
        return self._insert(record)

    def update(self, user_id: str, asset_id: str, description: str | None) -> FavouriteRecord:
        """Replace a favourite's description.

        Only ``description`` and ``updated_at`` change; the asset payload and
        ``created_at`` are kept.

        Raises:
            ValidationFailedError: If the description is blank or too long
            FavouriteNotFoundError: If the favourite does not exist
            StoreError: If the backend fails
        """
        ensure_valid_description(description)
        return self._update_description(user_id, asset_id, description)

    def delete(self, user_id: str, asset_id: str) -> None:
        """Remove a favourite permanently.

        Raises:
            FavouriteNotFoundError: If the favourite does not exist
            StoreError: If the backend fails
        """
        raise NotImplementedError

    def ping(self) -> None:
        """Check the backend is reachable.

        Raises:
            StoreError: If the backend cannot be reached
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release backend resources."""
        pass

    def _insert(self, record: FavouriteRecord) -> FavouriteRecord:
        raise NotImplementedError

    def _update_description(self, user_id: str, asset_id: str, description: str) -> FavouriteRecord:
        raise NotImplementedError


class MemoryFavouritesStore(FavouritesStore):
    """In-memory store for tests and local experiments.

    Records live in a nested dict ``user_id -> asset_id -> record``. A single
    lock covers the whole mapping, which serializes every mutation; that is
    fine at test scale but not meant for production traffic. Records are
    deep-copied on the way in and out, so callers never share the stored
    payload.
    """

    def __init__(self):
        self._favourites: dict[str, dict[str, FavouriteRecord]] = {}
        self._lock = threading.Lock()

    def list(self, user_id: str) -> list[FavouriteRecord]:
        with self._lock:
            records = [r.model_copy(deep=True) for r in self._favourites.get(user_id, {}).values()]
        return newest_first(records)

    def get(self, user_id: str, asset_id: str) -> FavouriteRecord:
        with self._lock:
            record = self._favourites.get(user_id, {}).get(asset_id)
            if record is None:
                raise FavouriteNotFoundError()
            return record.model_copy(deep=True)

    def delete(self, user_id: str, asset_id: str) -> None:
        with self._lock:
            user_favourites = self._favourites.get(user_id)
            if user_favourites is None or asset_id not in user_favourites:
                raise FavouriteNotFoundError()
            del user_favourites[asset_id]
            if not user_favourites:
                del self._favourites[user_id]

    def ping(self) -> None:
        return None

    def _insert(self, record: FavouriteRecord) -> FavouriteRecord:
        stored = record.model_copy(deep=True)
        with self._lock:
            user_favourites = self._favourites.setdefault(record.user_id, {})
            if record.id in user_favourites:
                raise FavouriteAlreadyExistsError()
            user_favourites[record.id] = stored
        return stored.model_copy(deep=True)

    def _update_description(self, user_id: str, asset_id: str, description: str) -> FavouriteRecord:
        with self._lock:
            record = self._favourites.get(user_id, {}).get(asset_id)
            if record is None:
                raise FavouriteNotFoundError()
            updated = record.model_copy(
                update={
                    "description": description,
                    "updated_at": next_update_time(record.updated_at),
                },
                deep=True,
            )
            self._favourites[user_id][asset_id] = updated
            return updated.model_copy(deep=True)
