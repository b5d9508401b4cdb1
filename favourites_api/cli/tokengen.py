"""Command line tool that mints access tokens for local use.

Usage:
    favourites-token --user alice
    favourites-token --user alice --secret change-me --expires-minutes 60

The secret and lifetime default to the JWT_SECRET and
ACCESS_TOKEN_EXPIRE_MINUTES settings. Without a secret the token is unsigned
(alg=none) and only accepted by a server running with ALLOW_UNSIGNED_TOKENS=true.
"""

import argparse
import sys
from datetime import datetime, timedelta, timezone

from favourites_api.config import get_settings
from favourites_api.core.security import create_access_token, create_unsigned_token


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="favourites-token",
        description="Generate a bearer token for the favourites API",
    )
    parser.add_argument("--user", required=True, help="user id embedded as the token subject")
    parser.add_argument("--secret", default=None, help="HS256 signing secret (default: JWT_SECRET setting)")
    parser.add_argument(
        "--expires-minutes",
        type=int,
        default=None,
        help="token lifetime in minutes (default: ACCESS_TOKEN_EXPIRE_MINUTES setting)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.user.strip():
        parser.error("--user must not be blank")

    settings = get_settings()
    expires_minutes = args.expires_minutes if args.expires_minutes is not None else settings.access_token_expire_minutes
    if expires_minutes <= 0:
        parser.error("--expires-minutes must be positive")

    expires_delta = timedelta(minutes=expires_minutes)
    secret = args.secret or settings.jwt_secret

    if secret:
        token = create_access_token(args.user, secret, expires_delta=expires_delta)
    else:
        token = create_unsigned_token(args.user, expires_delta=expires_delta)
        print("Warning: token is unsigned (alg=none); do not use in production", file=sys.stderr)

    expires_at = datetime.now(timezone.utc) + expires_delta
    print(f"Token for user {args.user} (expires {expires_at.isoformat(timespec='seconds')}):", file=sys.stderr)
    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
