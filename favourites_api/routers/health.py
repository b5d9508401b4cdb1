"""Health check router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from favourites_api.core.dependencies import get_store
from favourites_api.core.exceptions import StoreError
from favourites_api.core.store import FavouritesStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health_check(request: Request) -> dict[str, str]:
    """Liveness probe; does not touch the store."""
    return {"status": "healthy", "service": request.app.state.settings.app_name}


@router.get("/ready")
def readiness_check(store: Annotated[FavouritesStore, Depends(get_store)]):
    """Readiness probe; succeeds only when the store answers a ping."""
    try:
        store.ping()
    except StoreError as exc:
        logger.error(f"Readiness check failed: {exc}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"error": "database not ready"},
        )
    return {"status": "ready"}
