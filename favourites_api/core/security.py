"""Bearer token authentication and token helpers."""

import json
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from jose import JWTError, jwt
from jose.utils import base64url_encode

from favourites_api.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

SIGNED_ALGORITHM = "HS256"
UNSIGNED_ALGORITHM = "none"
DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


class AuthMode(str, Enum):
    """Authentication modes, derived from configuration.

    SIGNED: a secret is configured, only HS256 tokens are accepted
    UNSIGNED_ALLOWED: no secret and an explicit opt-in, only alg=none tokens are accepted
    LOCKED: no secret and no opt-in, every request is rejected
    """

    SIGNED = "signed"
    UNSIGNED_ALLOWED = "unsigned_allowed"
    LOCKED = "locked"


class AuthenticationGate:
    """Verify bearer tokens and extract the user id from the ``sub`` claim.

    The gate runs in exactly one mode. A configured secret always selects
    SIGNED, even when unsigned tokens are also allowed.
    """

    def __init__(self, secret: str | None = None, allow_unsigned_tokens: bool = False):
        self._secret = secret or None
        if self._secret:
            self.mode = AuthMode.SIGNED
        elif allow_unsigned_tokens:
            self.mode = AuthMode.UNSIGNED_ALLOWED
        else:
            self.mode = AuthMode.LOCKED

    @classmethod
    def from_settings(cls, settings) -> "AuthenticationGate":
        gate = cls(secret=settings.jwt_secret, allow_unsigned_tokens=settings.allow_unsigned_tokens)
        if gate.mode == AuthMode.UNSIGNED_ALLOWED:
            logger.warning("Unsigned tokens are accepted; do not run this configuration in production")
        elif gate.mode == AuthMode.LOCKED:
            logger.warning("No JWT secret configured and unsigned tokens not allowed; all requests will be rejected")
        return gate

    def authenticate(self, authorization: str | None) -> str:
        """Authenticate a raw ``Authorization`` header value.

        Args:
            authorization: Header value, expected as ``Bearer <token>``

        Returns:
            str: The token subject (user id)

        Raises:
            AuthenticationError: If the header, the token or its claims are not acceptable
        """
        token = extract_bearer_token(authorization)
        if token is None:
            raise AuthenticationError("missing or malformed Authorization header")

        if self.mode == AuthMode.LOCKED:
            raise AuthenticationError("unauthorized")

        if self.mode == AuthMode.UNSIGNED_ALLOWED:
            claims = self._parse_unsigned(token)
        else:
            claims = self._parse_signed(token)

        subject = claims.get("sub")
        if not isinstance(subject, str) or subject == "":
            raise AuthenticationError("token missing sub claim")
        return subject

    def _parse_unsigned(self, token: str) -> dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
            claims = jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise AuthenticationError(f"invalid token: {exc}")

        if header.get("alg") != UNSIGNED_ALGORITHM:
            raise AuthenticationError(
                "no jwt secret configured; only unsigned tokens (alg=none) are accepted"
            )
        return claims

    def _parse_signed(self, token: str) -> dict[str, Any]:
        try:
            # Tokens are not scoped to this service, so aud is not checked
            return jwt.decode(
                token,
                self._secret,
                algorithms=[SIGNED_ALGORITHM],
                options={"verify_aud": False},
            )
        except JWTError as exc:
            raise AuthenticationError(f"invalid token: {exc}")


def extract_bearer_token(authorization: str | None) -> str | None:
    """Pull the token out of ``Bearer <token>``, or return None if the header does not have that shape."""
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    token = parts[1].strip()
    return token or None


def _token_claims(subject: str, expires_delta: timedelta | None) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta if expires_delta is not None else DEFAULT_TOKEN_LIFETIME)
    return {"sub": subject, "iat": int(now.timestamp()), "exp": int(expire.timestamp())}


def create_access_token(
    subject: str,
    secret: str,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create an HS256-signed access token.

    Args:
        subject: User id stored in the ``sub`` claim
        secret: Signing secret
        expires_delta: Token lifetime, 24 hours when not given
        extra_claims: Additional claims to embed

    Returns:
        Encoded JWT token string

    Example:
        ```python
        from favourites_api.core.security import create_access_token

        token = create_access_token("alice", secret="change-me")
        ```
    """
    to_encode = _token_claims(subject, expires_delta)
    if extra_claims:
        to_encode.update(extra_claims)
    return jwt.encode(to_encode, secret, algorithm=SIGNED_ALGORITHM)


def create_unsigned_token(
    subject: str | None,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """Create an unsigned (alg=none) token for local development and tests.

    Args:
        subject: User id stored in the ``sub`` claim, omitted when None
        expires_delta: Token lifetime, 24 hours when not given
        extra_claims: Additional claims to embed

    Returns:
        Token string with an empty signature segment
    """
    claims = _token_claims(subject or "", expires_delta)
    if subject is None:
        claims.pop("sub")
    if extra_claims:
        claims.update(extra_claims)

    header = {"alg": UNSIGNED_ALGORITHM, "typ": "JWT"}
    segments = [
        base64url_encode(json.dumps(header, separators=(",", ":")).encode("utf-8")),
        base64url_encode(json.dumps(claims, separators=(",", ":")).encode("utf-8")),
    ]
    return (b".".join(segments) + b".").decode("utf-8")
