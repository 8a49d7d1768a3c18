from __future__ import annotations

from datetime import datetime, timedelta, timezone

from labor_app.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
    verify_token,
)


def test_password_hash_round_trip():
    hashed = get_password_hash("Admin123!")
    assert hashed.startswith("sha256$")
    assert verify_password("Admin123!", hashed)
    assert not verify_password("admin123!", hashed)


def test_hashes_are_salted():
    assert get_password_hash("same") != get_password_hash("same")


def test_malformed_hashes_never_verify():
    assert not verify_password("x", None)
    assert not verify_password("x", "")
    assert not verify_password("x", "$2b$10$bcrypthash")
    assert not verify_password("x", "sha256$only-two")


def test_token_types():
    access = verify_token(create_access_token({"sub": "u1"}))
    refresh = verify_token(create_refresh_token({"sub": "u1"}))
    assert access["sub"] == "u1" and access["type"] == "access"
    assert refresh["type"] == "refresh"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "u1"}, expires_delta=timedelta(seconds=-10))
    assert verify_token(token) is None


def test_token_expiry_is_measured_from_current_utc_time():
    before = int(datetime.now(timezone.utc).timestamp())
    payload = verify_token(create_access_token({"sub": "u1"}, expires_delta=timedelta(minutes=10)))

    assert payload["iat"] >= before - 1
    assert payload["exp"] - payload["iat"] in (599, 600, 601)
