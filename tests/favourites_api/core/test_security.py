"""Tests for the authentication gate and token helpers."""

from datetime import timedelta

import pytest
from jose import jwt

from favourites_api.core.exceptions import AuthenticationError
from favourites_api.core.security import (
    AuthenticationGate,
    AuthMode,
    create_access_token,
    create_unsigned_token,
    extract_bearer_token,
)

SECRET = "gate-secret"


def bearer(token: str) -> str:
    return f"Bearer {token}"


def test_mode_signed_when_secret_set():
    assert AuthenticationGate(secret=SECRET).mode == AuthMode.SIGNED


def test_secret_wins_over_unsigned_opt_in():
    """A configured secret selects signed mode even if unsigned tokens are allowed."""
    gate = AuthenticationGate(secret=SECRET, allow_unsigned_tokens=True)

    assert gate.mode == AuthMode.SIGNED
    with pytest.raises(AuthenticationError):
        gate.authenticate(bearer(create_unsigned_token("alice")))


def test_mode_unsigned_allowed():
    assert AuthenticationGate(secret=None, allow_unsigned_tokens=True).mode == AuthMode.UNSIGNED_ALLOWED


def test_mode_locked_by_default():
    assert AuthenticationGate().mode == AuthMode.LOCKED
    assert AuthenticationGate(secret="").mode == AuthMode.LOCKED


@pytest.mark.parametrize(
    "header",
    [None, "", "Bearer", "Bearer ", "Basic abc", "Token abc", "bearerabc"],
)
def test_malformed_header_rejected(header):
    """Headers not shaped like 'Bearer <token>' are rejected in every mode."""
    for gate in (
        AuthenticationGate(secret=SECRET),
        AuthenticationGate(allow_unsigned_tokens=True),
        AuthenticationGate(),
    ):
        with pytest.raises(AuthenticationError, match="missing or malformed"):
            gate.authenticate(header)


def test_bearer_scheme_is_case_insensitive():
    gate = AuthenticationGate(secret=SECRET)
    token = create_access_token("alice", SECRET)

    assert gate.authenticate(f"bearer {token}") == "alice"
    assert gate.authenticate(f"BEARER {token}") == "alice"


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"
    assert extract_bearer_token("Bearer   ") is None
    assert extract_bearer_token("abc") is None


def test_signed_gate_accepts_valid_token():
    gate = AuthenticationGate(secret=SECRET)
    token = create_access_token("alice", SECRET)

    assert gate.authenticate(bearer(token)) == "alice"


@pytest.mark.parametrize("audience", ["platform", ["platform", "reports"]])
def test_signed_gate_ignores_audience(audience):
    gate = AuthenticationGate(secret=SECRET)
    token = create_access_token("alice", SECRET, extra_claims={"aud": audience})

    assert gate.authenticate(bearer(token)) == "alice"


def test_signed_gate_rejects_unsigned_token():
    gate = AuthenticationGate(secret=SECRET)

    with pytest.raises(AuthenticationError, match="invalid token"):
        gate.authenticate(bearer(create_unsigned_token("alice")))


def test_signed_gate_rejects_wrong_secret():
    gate = AuthenticationGate(secret=SECRET)
    token = create_access_token("alice", "another-secret")

    with pytest.raises(AuthenticationError, match="invalid token"):
        gate.authenticate(bearer(token))


def test_signed_gate_rejects_other_algorithm():
    """Tokens signed with the right secret but a different HMAC algorithm are rejected."""
    gate = AuthenticationGate(secret=SECRET)
    token = jwt.encode({"sub": "alice"}, SECRET, algorithm="HS512")

    with pytest.raises(AuthenticationError, match="invalid token"):
        gate.authenticate(bearer(token))


def test_signed_gate_rejects_expired_token():
    gate = AuthenticationGate(secret=SECRET)
    token = create_access_token("alice", SECRET, expires_delta=timedelta(seconds=-10))

    with pytest.raises(AuthenticationError, match="invalid token"):
        gate.authenticate(bearer(token))


def test_signed_gate_rejects_garbage():
    gate = AuthenticationGate(secret=SECRET)

    with pytest.raises(AuthenticationError, match="invalid token"):
        gate.authenticate(bearer("not-a-jwt"))


@pytest.mark.parametrize("claims", [{}, {"sub": ""}])
def test_signed_gate_rejects_missing_subject(claims):
    gate = AuthenticationGate(secret=SECRET)
    token = jwt.encode(claims, SECRET, algorithm="HS256")

    with pytest.raises(AuthenticationError, match="token missing sub claim"):
        gate.authenticate(bearer(token))


def test_unsigned_gate_accepts_unsigned_token():
    gate = AuthenticationGate(allow_unsigned_tokens=True)

    assert gate.authenticate(bearer(create_unsigned_token("bob"))) == "bob"


def test_unsigned_gate_rejects_signed_token():
    gate = AuthenticationGate(allow_unsigned_tokens=True)
    token = create_access_token("bob", SECRET)

    with pytest.raises(AuthenticationError, match="only unsigned tokens"):
        gate.authenticate(bearer(token))


def test_unsigned_gate_rejects_structurally_invalid_token():
    gate = AuthenticationGate(allow_unsigned_tokens=True)

    with pytest.raises(AuthenticationError, match="invalid token"):
        gate.authenticate(bearer("definitely.not.json"))


@pytest.mark.parametrize("subject, extra", [(None, None), ("", None), ("ignored", {"sub": 42})])
def test_unsigned_gate_rejects_bad_subject(subject, extra):
    gate = AuthenticationGate(allow_unsigned_tokens=True)
    token = create_unsigned_token(subject, extra_claims=extra)

    with pytest.raises(AuthenticationError, match="token missing sub claim"):
        gate.authenticate(bearer(token))


@pytest.mark.parametrize(
    "token",
    [
        create_access_token("alice", SECRET),
        create_unsigned_token("alice"),
        "garbage",
    ],
)
def test_locked_gate_rejects_everything(token):
    gate = AuthenticationGate()

    with pytest.raises(AuthenticationError, match="unauthorized"):
        gate.authenticate(bearer(token))


def test_create_access_token_contains_claims():
    token = create_access_token("alice", SECRET, expires_delta=timedelta(minutes=5), extra_claims={"role": "admin"})
    decoded = jwt.decode(token, SECRET, algorithms=["HS256"])

    assert decoded["sub"] == "alice"
    assert decoded["role"] == "admin"
    assert decoded["exp"] - decoded["iat"] == 300


def test_create_unsigned_token_shape():
    token = create_unsigned_token("alice")

    assert token.endswith(".")
    assert jwt.get_unverified_header(token)["alg"] == "none"
    assert jwt.get_unverified_claims(token)["sub"] == "alice"
