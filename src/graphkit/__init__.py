"""
graphkit

A resilient async invocation layer for a Graph-style JSON API.
Calls are retried with exponential backoff, failures are classified into a
fixed set of error kinds, credentials are cached with single-flight
resolution, and list edges and batches are handled for you.
"""

__version__ = "0.1.0"

from graphkit.client import GraphClient
from graphkit.config import GraphConfig, get_config, set_config
from graphkit.core.errors import ApiErrorSubkind, ErrorKind, GraphError
from graphkit.core.request import RequestSpec, RetryPolicy
from graphkit.core.token_cache import TokenCache

__all__ = [
    "GraphClient",
    "GraphConfig",
    "get_config",
    "set_config",
    "ApiErrorSubkind",
    "ErrorKind",
    "GraphError",
    "RequestSpec",
    "RetryPolicy",
    "TokenCache",
]
