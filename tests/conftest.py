import time
from collections.abc import Callable

import jwt
import pytest


def make_token(expires_in: float, **claims: object) -> str:
    """Mint an HS256 JWT whose `exp` is `expires_in` seconds from now."""
    payload = {"sub": "itera-user", "exp": int(time.time() + expires_in), **claims}
    return jwt.encode(payload, "test-secret-key-of-sufficient-length", algorithm="HS256")


@pytest.fixture()
def token_factory() -> Callable[..., str]:
    return make_token


@pytest.fixture()
def valid_token() -> str:
    return make_token(3600)


@pytest.fixture()
def expired_token() -> str:
    return make_token(-3600)
