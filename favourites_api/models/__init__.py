"""Database models package."""

from favourites_api.models.favourite import Favourite

__all__ = ["Favourite"]
