"""Relational favourites store backed by SQLAlchemy."""

import logging
from datetime import timezone

from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from favourites_api.core.exceptions import (
    FavouriteAlreadyExistsError,
    FavouriteNotFoundError,
    StoreError,
    ValidationFailedError,
)
from favourites_api.core.store import FavouritesStore, newest_first, next_update_time
from favourites_api.database import create_session_factory, init_schema
from favourites_api.models.favourite import Favourite
from favourites_api.schemas.asset import dump_asset, parse_asset
from favourites_api.schemas.favourite import FavouriteRecord

logger = logging.getLogger(__name__)

PG_UNIQUE_VIOLATION = "23505"


class SQLFavouritesStore(FavouritesStore):
    """Favourites persisted in the ``favourites`` table.

    Duplicate creates are rejected by the (user_id, asset_id) primary key, so
    concurrent inserts for one key leave exactly one row without any
    application-level locking. The asset payload is stored as JSON and rebuilt
    from the ``asset_type`` column on read.
    """

    def __init__(self, session_factory: sessionmaker, engine: Engine | None = None):
        self._session_factory = session_factory
        self._engine = engine

    @classmethod
    def from_engine(cls, engine: Engine) -> "SQLFavouritesStore":
        return cls(create_session_factory(engine), engine=engine)

    def create_schema(self) -> None:
        if self._engine is None:
            raise StoreError("no engine bound to this store")
        try:
            init_schema(self._engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"initializing schema: {exc}") from exc

    def list(self, user_id: str):
        query = (
            select(Favourite)
            .where(Favourite.user_id == user_id)
            .order_by(Favourite.created_at.desc(), Favourite.asset_id)
        )
        try:
            with self._session_factory() as session:
                rows = session.scalars(query).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"querying user favourites: {exc}") from exc
        # Final ordering happens here so ties do not depend on the database collation
        return newest_first([_to_record(row) for row in rows])

    def get(self, user_id: str, asset_id: str) -> FavouriteRecord:
        try:
            with self._session_factory() as session:
                row = session.get(Favourite, (user_id, asset_id))
        except SQLAlchemyError as exc:
            raise StoreError(f"fetching favourite: {exc}") from exc
        if row is None:
            raise FavouriteNotFoundError()
        return _to_record(row)

    def delete(self, user_id: str, asset_id: str) -> None:
        try:
            with self._session_factory() as session:
                result = session.execute(
                    Favourite.__table__.delete().where(
                        Favourite.user_id == user_id,
                        Favourite.asset_id == asset_id,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"deleting favourite: {exc}") from exc
        if result.rowcount == 0:
            raise FavouriteNotFoundError()

    def ping(self) -> None:
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StoreError(f"pinging database: {exc}") from exc

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()

    def _insert(self, record: FavouriteRecord) -> FavouriteRecord:
        row = Favourite(
            user_id=record.user_id,
            asset_id=record.id,
            asset_type=record.asset_type.value,
            description=record.description,
            data=dump_asset(record.data),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        with self._session_factory() as session:
            try:
                session.add(row)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if _is_unique_violation(exc):
                    raise FavouriteAlreadyExistsError() from exc
                raise StoreError(f"inserting favourite: {exc}") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(f"inserting favourite: {exc}") from exc
        return record.model_copy(deep=True)

    def _update_description(self, user_id: str, asset_id: str, description: str) -> FavouriteRecord:
        with self._session_factory() as session:
            try:
                row = session.get(Favourite, (user_id, asset_id), with_for_update=True)
                if row is None:
                    session.rollback()
                    raise FavouriteNotFoundError()
                row.description = description
                row.updated_at = next_update_time(row.updated_at)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise StoreError(f"updating favourite: {exc}") from exc
            return _to_record(row)


def _to_record(row: Favourite) -> FavouriteRecord:
    """Rebuild a FavouriteRecord, choosing the asset variant from the stored type tag."""
    try:
        asset = parse_asset(row.asset_type, row.data or {})
    except ValidationFailedError as exc:
        raise StoreError(f"unmarshalling {row.asset_type} data: {exc}") from exc
    return FavouriteRecord(
        id=row.asset_id,
        user_id=row.user_id,
        asset_type=row.asset_type,
        description=row.description or "",
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
        data=asset,
    )


def _as_utc(value):
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == PG_UNIQUE_VIOLATION:
        return True
    message = str(orig).lower()
    return "unique" in message or "duplicate" in message
