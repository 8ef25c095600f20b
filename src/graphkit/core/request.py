"""
Request models.

Immutable descriptions of one outbound call and of the retry policy that
governs it.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional

from graphkit.config import GraphConfig


def _frozen(mapping: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class RequestSpec:
    """
    One Graph API call.

    Attributes:
        endpoint: Path below the version prefix (empty string for the root)
        credential: Access token sent with the call
        method: HTTP method
        params: Query parameters (GET) or JSON body (other methods)
        headers: Extra request headers
        version: API version override, config default when None
    """

    endpoint: str
    credential: str
    method: str = "GET"
    params: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    version: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "params", _frozen(self.params))
        object.__setattr__(self, "headers", _frozen(self.headers))

    @property
    def is_get(self) -> bool:
        return self.method == "GET"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Timeout and backoff settings for one call.

    Attributes:
        max_attempts: Retries allowed after the first attempt
        base_delay_ms: Delay before the first retry, doubled each time
        timeout_ms: Deadline of a single attempt
    """

    max_attempts: int = 3
    base_delay_ms: int = 1_000
    timeout_ms: int = 10_000

    def __post_init__(self):
        if self.max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        if self.base_delay_ms <= 0:
            raise ValueError("base_delay_ms must be positive")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")

    @classmethod
    def from_config(
        cls,
        config: GraphConfig,
        retry_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
        timeout_ms: Optional[int] = None,
    ) -> "RetryPolicy":
        """Build a policy from config defaults with per-call overrides."""
        return cls(
            max_attempts=config.retry_attempts if retry_attempts is None else retry_attempts,
            base_delay_ms=config.retry_delay_ms if retry_delay_ms is None else retry_delay_ms,
            timeout_ms=config.timeout_ms if timeout_ms is None else timeout_ms,
        )

    def backoff_ms(self, attempt: int) -> int:
        """Delay to wait after the given (zero-based) attempt failed."""
        return self.base_delay_ms * 2 ** attempt

    def override(self, **changes) -> "RetryPolicy":
        return replace(self, **changes)
