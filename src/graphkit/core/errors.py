"""
Error model for Graph API calls.

Every failure surfaced by graphkit is a single exception type, GraphError,
tagged with an ErrorKind. API errors carry an additional subkind.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import httpx
import structlog

from graphkit.config import get_config

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    """Discriminant of a GraphError."""
    SDK = "sdk"                   # Credential infrastructure unusable
    AUTH = "auth"                 # Credential invalid or expired
    API = "api"                   # Provider-side fault
    PERMISSION = "permission"     # Credential lacks a required grant
    TIMEOUT = "timeout"           # Deadline exceeded
    NETWORK = "network"           # Transport failure before any response


class ApiErrorSubkind(str, Enum):
    """Refinement of ErrorKind.API."""
    UNKNOWN = "unknown"
    SERVICE = "service"
    RATE_LIMIT = "rate_limit"
    GENERIC = "generic"


class GraphError(Exception):
    """
    Classified failure of a Graph API operation.

    Attributes:
        kind: Error discriminant
        message: Human readable message
        code: Stable string code (e.g. AUTH_TOKEN_INVALID)
        subkind: API error refinement, None for other kinds
        status_code: HTTP status of the failing response, if any
        payload: Raw provider error object, if any
        missing_scopes: Scopes the caller needs (permission errors)
        operation: Name of the first operation that observed the error
        metadata: Call context (identifiers, endpoint, attempt count)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        code: str,
        subkind: Optional[ApiErrorSubkind] = None,
        status_code: Optional[int] = None,
        payload: Optional[Dict[str, Any]] = None,
        missing_scopes: Iterable[str] = (),
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code
        self.subkind = subkind
        self.status_code = status_code
        self.payload = payload
        self.missing_scopes: List[str] = list(missing_scopes)
        self.operation: Optional[str] = None
        self.metadata: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return (
            f"GraphError(kind={self.kind.value!r}, code={self.code!r}, "
            f"status_code={self.status_code!r}, message={self.message!r})"
        )

    @property
    def retryable(self) -> bool:
        """Whether waiting and repeating the call can succeed."""
        if self.kind in (ErrorKind.TIMEOUT, ErrorKind.NETWORK):
            return True
        if self.kind != ErrorKind.API:
            return False
        if self.status_code is None:
            return self.subkind == ApiErrorSubkind.RATE_LIMIT
        # Client errors are final unless the provider is throttling us
        return self.status_code >= 500 or self.status_code == 429

    def with_context(self, operation: str, metadata: Optional[Dict[str, Any]] = None) -> "GraphError":
        """
        Attach call context.

        The operation name is recorded only by the first boundary that sees the
        error. Later boundaries can add metadata keys but never overwrite them.
        """
        if self.operation is None:
            self.operation = operation
        for key, value in (metadata or {}).items():
            self.metadata.setdefault(key, value)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary for logging and serialization."""
        return {
            "kind": self.kind.value,
            "subkind": self.subkind.value if self.subkind else None,
            "code": self.code,
            "message": self.message,
            "status_code": self.status_code,
            "missing_scopes": self.missing_scopes,
            "operation": self.operation,
            "metadata": self.metadata,
            "payload": self.payload,
        }


# Provider numeric codes
AUTH_CODES = frozenset({190, 102, 459})
PERMISSION_CODES = frozenset({10, 200})
RATE_LIMIT_CODES = frozenset({4, 613})

API_CODE_MAP: Dict[int, tuple] = {
    1: (ApiErrorSubkind.UNKNOWN, "API_UNKNOWN"),
    2: (ApiErrorSubkind.SERVICE, "API_SERVICE"),
    100: (ApiErrorSubkind.GENERIC, "API_PARAMETER"),
}


def sdk_error(message: str, code: str = "SDK_ERROR") -> GraphError:
    return GraphError(ErrorKind.SDK, message, code)


def auth_error(message: str, code: str = "AUTH_ERROR") -> GraphError:
    return GraphError(ErrorKind.AUTH, message, code)


def permission_error(
    message: str,
    missing_scopes: Iterable[str] = (),
    code: str = "PERMISSION_ERROR",
) -> GraphError:
    return GraphError(ErrorKind.PERMISSION, message, code, missing_scopes=missing_scopes)


def timeout_error(message: str, code: str = "TIMEOUT_ERROR") -> GraphError:
    return GraphError(ErrorKind.TIMEOUT, message, code)


def network_error(message: str, code: str = "NETWORK_ERROR") -> GraphError:
    return GraphError(ErrorKind.NETWORK, message, code)


def api_error(
    message: str,
    code: str = "API_ERROR",
    subkind: ApiErrorSubkind = ApiErrorSubkind.GENERIC,
    status_code: Optional[int] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> GraphError:
    return GraphError(
        ErrorKind.API,
        message,
        code,
        subkind=subkind,
        status_code=status_code,
        payload=payload,
    )


def classify(error_body: Optional[Dict[str, Any]], status_code: Optional[int] = None) -> GraphError:
    """
    Map a provider error object and HTTP status to a GraphError.

    Args:
        error_body: The ``error`` member of the provider response, if any
        status_code: HTTP status of the response

    Returns:
        The classified error. The provider code decides the kind; the HTTP
        status is only carried along.
    """
    if not error_body or not isinstance(error_body, dict):
        return api_error(
            "Unknown Graph API error",
            "API_UNKNOWN",
            ApiErrorSubkind.UNKNOWN,
            status_code=status_code,
        )

    message = error_body.get("message") or "Graph API error"
    code = error_body.get("code")

    if code in AUTH_CODES:
        error = auth_error(message, "AUTH_TOKEN_INVALID")
    elif code in PERMISSION_CODES:
        error = permission_error(message, [], "PERMISSION_DENIED")
    elif code in RATE_LIMIT_CODES:
        error = api_error(message, "API_RATE_LIMIT", ApiErrorSubkind.RATE_LIMIT)
    else:
        subkind, mapped = API_CODE_MAP.get(code, (ApiErrorSubkind.GENERIC, "API_ERROR"))
        error = api_error(message, mapped, subkind)

    error.status_code = status_code
    error.payload = dict(error_body)
    return error


def handle_error(
    error: BaseException,
    operation: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> GraphError:
    """
    Normalize any exception raised inside an operation into a GraphError.

    GraphErrors only get context attached. Transport exceptions are mapped to
    TIMEOUT or NETWORK; everything else becomes a generic API error chained to
    the original exception.
    """
    if isinstance(error, GraphError):
        return error.with_context(operation, metadata)

    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError)):
        wrapped = timeout_error(f"Timeout error in {operation}: {error}")
    elif isinstance(error, httpx.RequestError):
        wrapped = network_error(f"Network error in {operation}: {error}")
    else:
        wrapped = api_error(f"Error in {operation}: {error}", "GENERIC_ERROR")

    wrapped.__cause__ = error
    return wrapped.with_context(operation, metadata)


def log_error(error: GraphError) -> None:
    """Emit a diagnostic record for an error when GRAPH_DEBUG_ERRORS is set."""
    if not get_config().debug_errors:
        return

    logger.error(
        "graph_api_error",
        kind=error.kind.value,
        subkind=error.subkind.value if error.subkind else None,
        code=error.code,
        error=error.message,
        status=error.status_code,
        operation=error.operation,
        metadata=error.metadata,
        provider_error=error.payload,
    )
