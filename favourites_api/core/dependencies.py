"""FastAPI dependencies forming the favourites request pipeline.

The router declares them in order: authentication, rate limiting, Accept
negotiation, Content-Type enforcement. FastAPI resolves them in that order
and the first failure ends the request.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, HTTPException, Request, status

from favourites_api.core.exceptions import AuthenticationError, RateLimitExceededError
from favourites_api.core.logging_utils import RequestLoggerAdapter, request_logger
from favourites_api.core.store import FavouritesStore

logger = logging.getLogger(__name__)

JSON_MEDIA_TYPE = "application/json"
# Ranges that admit JSON, most specific first
JSON_MEDIA_RANGES = (JSON_MEDIA_TYPE, "application/*", "*/*")
BODY_METHODS = {"POST", "PUT", "PATCH"}


@dataclass(frozen=True)
class RequestContext:
    """Per-request values handed to route handlers."""

    user_id: str
    request_id: str
    logger: RequestLoggerAdapter


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "-"


def get_store(request: Request) -> FavouritesStore:
    """Return the store the application was built with."""
    return request.app.state.store


def get_current_user_id(request: Request) -> str:
    """Authenticate the request and return the user id.

    Raises:
        HTTPException: 401 if the Authorization header is missing or the token is rejected
    """
    gate = request.app.state.auth_gate
    try:
        user_id = gate.authenticate(request.headers.get("Authorization"))
    except AuthenticationError as exc:
        request_logger(logger, get_request_id(request)).warning(f"Authentication failed: {exc}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    return user_id


def get_request_context(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> RequestContext:
    request_id = get_request_id(request)
    return RequestContext(
        user_id=user_id,
        request_id=request_id,
        logger=request_logger(logging.getLogger("favourites_api.routers.favourites"), request_id, user_id),
    )


def enforce_rate_limit(
    request: Request,
    context: Annotated[RequestContext, Depends(get_request_context)],
) -> None:
    """Count the request against the user's rate limit.

    Raises:
        HTTPException: 429 once the user has exhausted the current window
    """
    limiter = request.app.state.rate_limiter
    if limiter is None:
        return
    try:
        limiter.hit(context.user_id)
    except RateLimitExceededError as exc:
        context.logger.warning("Rate limit exceeded")
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=str(exc),
            headers={"Retry-After": str(max(math.ceil(exc.retry_after), 1))},
        )


def accepts_json(accept: str | None) -> bool:
    """Whether an Accept header value admits application/json.

    The most specific matching range decides, so ``application/json;q=0``
    refuses JSON even next to ``*/*``. Other quality values only rank
    preferences and do not matter here.
    """
    if not accept:
        return False
    qualities: dict[str, float] = {}
    for part in accept.split(","):
        media_type, *params = part.split(";")
        media_type = media_type.strip().lower()
        if media_type in JSON_MEDIA_RANGES:
            qualities[media_type] = max(qualities.get(media_type, 0.0), _quality(params))
    for media_range in JSON_MEDIA_RANGES:
        if media_range in qualities:
            return qualities[media_range] > 0
    return False


def _quality(params: list[str]) -> float:
    for param in params:
        name, _, value = param.partition("=")
        if name.strip().lower() == "q":
            try:
                return float(value.strip())
            except ValueError:
                return 0.0
    return 1.0


def is_json_content_type(content_type: str | None) -> bool:
    """Whether a Content-Type header value is application/json (parameters allowed)."""
    if not content_type:
        return False
    return content_type.split(";", 1)[0].strip().lower() == JSON_MEDIA_TYPE


def require_json_accept(request: Request) -> None:
    """Reject requests that cannot take a JSON response.

    Raises:
        HTTPException: 406 if Accept is missing or excludes application/json
    """
    if not accepts_json(request.headers.get("Accept")):
        raise HTTPException(
            status_code=status.HTTP_406_NOT_ACCEPTABLE,
            detail="Accept header must include application/json",
        )


def require_json_content_type(request: Request) -> None:
    """Reject body-bearing requests that do not send JSON.

    Raises:
        HTTPException: 415 if a POST, PUT or PATCH lacks Content-Type: application/json
    """
    if request.method in BODY_METHODS and not is_json_content_type(request.headers.get("Content-Type")):
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail="Content-Type header must be application/json",
        )


async def read_json_body(request: Request) -> Any:
    """Read and decode the JSON request body.

    Raises:
        HTTPException: 400 if the body is empty or not valid JSON
    """
    body = await request.body()
    try:
        return json.loads(body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body")


favourites_pipeline = [
    Depends(get_current_user_id),
    Depends(enforce_rate_limit),
    Depends(require_json_accept),
    Depends(require_json_content_type),
]
