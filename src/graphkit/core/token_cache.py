"""
Access token cache.

Holds the current credential with its expiry and makes sure that concurrent
callers asking for a token share a single call to the credential source.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

import structlog

from graphkit.core.errors import permission_error, sdk_error

logger = structlog.get_logger(__name__)

# Tokens closer than this to expiry are treated as expired
EXPIRY_MARGIN_MS = 5_000
DEFAULT_EXPIRES_IN_SECONDS = 60 * 60


@dataclass
class LoginStatus:
    """Login status reported by a credential source."""
    status: str                          # connected, not_authorized or unknown
    access_token: Optional[str] = None
    expires_in: Optional[int] = None     # Seconds until the token expires

    @property
    def connected(self) -> bool:
        return self.status == "connected" and bool(self.access_token)


class CredentialSource(ABC):
    """
    Abstract source of access tokens.

    Implementations wrap whatever holds the user session (a login flow, a
    secrets store, a static token).
    """

    @abstractmethod
    async def get_login_status(self) -> LoginStatus:
        """
        Get the current login status.

        Returns:
            Connected status with a token and expiry, or a not connected status
        """
        pass


@dataclass(frozen=True)
class CachedToken:
    """A cached credential and the moment it stops being valid."""
    value: str
    expires_at_ms: int

    def is_valid(self, now_ms: int) -> bool:
        return self.expires_at_ms > now_ms + EXPIRY_MARGIN_MS


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class TokenCache:
    """
    Credential cache with single-flight resolution.

    At most one token is cached and at most one resolution against the
    credential source runs at a time. All state changes go through the public
    methods; no lock is needed on a single event loop.

    Usage:
        ```python
        cache = TokenCache(source=StaticCredentialSource("EAAB..."))
        token = await cache.resolve()
        ```
    """

    def __init__(
        self,
        source: Optional[CredentialSource] = None,
        clock: Callable[[], int] = _wall_clock_ms,
    ):
        """
        Initialize the token cache.

        Args:
            source: Credential source queried when no token is cached
            clock: Returns the current time in milliseconds
        """
        self.source = source
        self._clock = clock
        self._token: Optional[CachedToken] = None
        self._in_flight: Optional["asyncio.Task[str]"] = None
        # Bumped on clear() so detached resolutions do not write the cache
        self._generation = 0

    async def resolve(
        self,
        explicit_token: Optional[str] = None,
        missing_scopes: Iterable[str] = (),
        *,
        use_cache: bool = True,
        force_refresh: bool = False,
    ) -> str:
        """
        Resolve the access token to use for a call.

        Args:
            explicit_token: Token supplied by the caller, returned as-is when non-blank
            missing_scopes: Scopes reported on the error if the user is not logged in
            use_cache: Whether a cached token may be returned
            force_refresh: Skip both the cache and any in-flight resolution

        Returns:
            The access token

        Raises:
            GraphError: PERMISSION (NOT_LOGGED_IN) or SDK (NO_TOKEN)
        """
        if isinstance(explicit_token, str) and explicit_token.strip():
            return explicit_token

        if use_cache and not force_refresh:
            cached = self.peek()
            if cached is not None:
                return cached

        if self._in_flight is not None and not force_refresh:
            return await asyncio.shield(self._in_flight)

        if self.source is None:
            raise sdk_error(
                "No access token provided and no credential source available.",
                "NO_TOKEN",
            )

        task = asyncio.ensure_future(self._load(list(missing_scopes), self._generation))
        self._in_flight = task
        task.add_done_callback(self._release)
        return await asyncio.shield(task)

    async def _load(self, missing_scopes: list, generation: int) -> str:
        status = await self.source.get_login_status()

        if not status.connected:
            logger.info("credential_not_connected", status=status.status)
            raise permission_error(
                "User not logged in. Cannot proceed without an access token.",
                missing_scopes,
                "NOT_LOGGED_IN",
            )

        if generation == self._generation:
            self.set(status.access_token, status.expires_in)
            logger.debug("credential_resolved", expires_in=status.expires_in)
        return status.access_token

    def _release(self, task: "asyncio.Task[str]") -> None:
        if self._in_flight is task:
            self._in_flight = None
        # Mark the outcome as retrieved; waiters get it through shield()
        if not task.cancelled():
            task.exception()

    def set(self, value: Optional[str], expires_in_seconds: Optional[int] = None) -> None:
        """
        Seed or overwrite the cached token.

        A non-string value clears the cache.
        """
        if not isinstance(value, str):
            self._token = None
            return

        expires_in = expires_in_seconds or DEFAULT_EXPIRES_IN_SECONDS
        self._token = CachedToken(value, self._clock() + expires_in * 1000)

    def clear(self) -> None:
        """Drop the cached token and stop sharing any in-flight resolution."""
        self._token = None
        self._in_flight = None
        self._generation += 1

    def peek(self) -> Optional[str]:
        """Get the cached token if it is still valid for more than the safety margin."""
        if self._token is not None and self._token.is_valid(self._clock()):
            return self._token.value
        return None

    @property
    def resolving(self) -> bool:
        """Whether a resolution is currently shared."""
        return self._in_flight is not None


# Global token cache instance
_token_cache: Optional[TokenCache] = None


def get_token_cache() -> TokenCache:
    """Get or create the process-wide token cache."""
    global _token_cache
    if _token_cache is None:
        _token_cache = TokenCache()
    return _token_cache


def set_token_cache(cache: TokenCache) -> None:
    """Set the process-wide token cache."""
    global _token_cache
    _token_cache = cache
