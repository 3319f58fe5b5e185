# tests/test_domain.py
import pytest

from pkg_session.domain.entities import Session, TokenGrant, TokenPair, UserProfile
from pkg_session.domain.value_objects import Credentials, EmailAddress, TokenClaims


def test_email_value_object():
    email = EmailAddress("test@example.com")
    assert str(email) == "test@example.com"

    with pytest.raises(ValueError):
        EmailAddress("invalid-email")


def test_credentials():
    creds = Credentials("ada@example.com", "secret")
    assert creds.email == EmailAddress("ada@example.com")
    assert creds.as_payload() == {"email": "ada@example.com", "password": "secret"}
    assert "secret" not in repr(creds)

    with pytest.raises(ValueError):
        Credentials("ada@example.com", "")
    with pytest.raises(ValueError):
        Credentials("not-an-email", "secret")


def test_token_pair_requires_both_halves():
    pair = TokenPair(access_token="secret-access", refresh_token="secret-refresh")
    assert pair == TokenPair("secret-access", "secret-refresh")
    assert "secret" not in repr(pair)

    with pytest.raises(ValueError):
        TokenPair(access_token="a", refresh_token="")
    with pytest.raises(ValueError):
        TokenPair(access_token="", refresh_token="r")


def test_token_pair_records():
    pair = TokenPair("a", "r")
    assert pair.to_record() == {"access_token": "a", "refresh_token": "r"}
    assert TokenPair.from_record(pair.to_record()) == pair

    # --- partial or missing records read as signed out ---
    assert TokenPair.from_record(None) is None
    assert TokenPair.from_record({}) is None
    assert TokenPair.from_record({"access_token": "a", "refresh_token": None}) is None
    assert TokenPair.from_record({"access_token": None, "refresh_token": "r"}) is None
    assert TokenPair.from_record({"access_token": 1, "refresh_token": "r"}) is None


def test_session_state():
    assert Session().is_signed_out
    signed_in = Session(tokens=TokenPair("a", "r"))
    assert signed_in.is_signed_in
    assert not signed_in.is_signed_out


def test_token_grant_and_claims():
    assert TokenGrant("a").refresh_token is None
    assert TokenGrant("a", "r2").refresh_token == "r2"
    assert TokenClaims().exp is None
    assert TokenClaims(exp=10.0).exp == 10.0


def test_user_profile_from_payload():
    profile = UserProfile.from_payload({
        "status": "success",
        "data": {"id": 7, "email": "ada@example.com", "first_name": "Ada", "last_name": "Lovelace"},
    })
    assert profile.id == 7
    assert str(profile.email) == "ada@example.com"
    assert profile.full_name == "Ada Lovelace"

    bare = UserProfile.from_payload({"id": 8})
    assert bare.email is None
    assert bare.full_name is None

    with pytest.raises(ValueError):
        UserProfile.from_payload({"status": "success"})
