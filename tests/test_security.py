from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from cathealth.auth.session import Identity, TokenAuthSession
from cathealth.core.exceptions import AuthRequired
from cathealth.core.security import ALGORITHM, create_access_token, decode_token


def test_token_round_trip():
    payload = decode_token(create_access_token("user-1", email="owner@example.com"))
    assert payload["sub"] == "user-1"
    assert payload["email"] == "owner@example.com"


def test_wrong_audience_is_rejected():
    token = jwt.encode(
        {"sub": "user-1", "aud": "someone-else", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "test-secret-key",
        algorithm=ALGORITHM,
    )
    with pytest.raises(AuthRequired):
        decode_token(token)


def test_wrong_secret_is_rejected():
    token = jwt.encode({"sub": "user-1", "aud": "authenticated"}, "another-secret", algorithm=ALGORITHM)
    with pytest.raises(AuthRequired):
        decode_token(token)


def test_session_reads_token_every_time():
    session = TokenAuthSession(create_access_token("user-1", email="owner@example.com"))
    assert session.get_current() == Identity("user-1", "owner@example.com")

    seen = []
    unsubscribe = session.on_change(seen.append)
    session.set_token("garbage")
    assert session.get_current() is None
    assert seen == [None]

    unsubscribe()
    session.set_token(None)
    assert seen == [None]
