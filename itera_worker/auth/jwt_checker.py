from datetime import datetime, timezone

import jwt


def is_token_expired(token: str | None, now: datetime | None = None) -> bool:
    """Return True if the bearer token is missing, unreadable or past its `exp`.

    The signature is not verified: the check only decides whether a cached
    token is still worth sending, not whether it is authentic.
    """
    if not token:
        return True

    try:
        claims = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
    except jwt.PyJWTError:
        return True

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return True

    current = now if now is not None else datetime.now(timezone.utc)
    return datetime.fromtimestamp(exp, tz=timezone.utc) < current
