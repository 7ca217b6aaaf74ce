import asyncio
import time
from collections.abc import Awaitable, Callable

from itera_worker.auth.exceptions import AuthError
from itera_worker.auth.jwt_checker import is_token_expired
from itera_worker.logging.logger import Log

TokenRequester = Callable[[], Awaitable[str]]


class TokenCache:
    """Holds a single Itera access token and renews it on expiry.

    Reads of a valid cached token never block. Renewal is serialized by a
    lock, so concurrent callers that find the cache empty or stale share a
    single token request.
    """

    def __init__(
        self,
        requester: TokenRequester,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._requester = requester
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()

    async def get_access_token(self) -> str:
        """Return a cached token, requesting a new one if absent or expired.

        Raises:
            AuthError: if a new token could not be obtained.
        """
        token = self._cached_token()
        if token is not None:
            return token

        async with self._lock:
            # Another caller may have renewed while we waited for the lock
            token = self._cached_token()
            if token is not None:
                return token
            return await self._renew()

    def invalidate(self, token: str | None = None) -> None:
        """Drop the cached token so the next call requests a new one.

        If token is given, drop it only while it is still the cached one, so a
        late rejection of an old token leaves a freshly renewed one in place.
        """
        if token is not None and token != self._token:
            return
        self._token = None
        self._expires_at = 0.0

    def _cached_token(self) -> str | None:
        if self._token is None or self._clock() >= self._expires_at:
            return None
        if is_token_expired(self._token):
            return None
        return self._token

    async def _renew(self) -> str:
        Log.info("Requesting new Itera access token")
        try:
            token = await self._requester()
        except AuthError:
            raise
        except Exception as exc:
            raise AuthError(f"Token request failed: {exc}") from exc

        if not token:
            raise AuthError("Token request returned an empty token")

        self._token = token
        self._expires_at = self._clock() + self._ttl_seconds
        Log.debug(f"Access token cached for {self._ttl_seconds} seconds")
        return token
