import asyncio
from datetime import timedelta

import pytest
from fastapi import HTTPException
from jose import jwt

from subsync.auth import dependencies as auth_deps
from subsync.auth.jwt import create_session_token, decode_session_token


def test_create_and_decode_session_token():
    token = create_session_token({"sub": "user_1", "email": "a@b.c", "name": "A"})
    data = decode_session_token(token)

    assert data is not None
    assert data.sub == "user_1"
    assert data.email == "a@b.c"
    assert data.picture is None


def test_decode_rejects_bad_tokens():
    assert decode_session_token("not-a-token") is None

    forged = jwt.encode({"sub": "user_1"}, "some-other-key", algorithm="HS256")
    assert decode_session_token(forged) is None

    expired = create_session_token({"sub": "user_1"}, expires_delta=timedelta(seconds=-10))
    assert decode_session_token(expired) is None

    no_sub = create_session_token({"email": "a@b.c"})
    assert decode_session_token(no_sub) is None


def test_get_current_user_requires_token():
    with pytest.raises(HTTPException) as ei:
        asyncio.run(auth_deps.get_current_user(token_data=None))

    assert ei.value.status_code == 401
    assert ei.value.detail == "Unauthorized"
