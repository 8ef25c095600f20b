"""
Core invocation layer.

This module contains the pieces that make raw Graph API calls safe to reuse:
error classification, the token cache, the request executor, pagination and
batching.
"""

from graphkit.core.errors import ApiErrorSubkind, ErrorKind, GraphError, classify
from graphkit.core.request import RequestSpec, RetryPolicy
from graphkit.core.token_cache import CredentialSource, LoginStatus, TokenCache
from graphkit.core.executor import RequestExecutor
from graphkit.core.paginator import Page, collect_all, page_from_response
from graphkit.core.batch import BatchDispatcher, BatchItem

__all__ = [
    "ApiErrorSubkind",
    "ErrorKind",
    "GraphError",
    "classify",
    "RequestSpec",
    "RetryPolicy",
    "CredentialSource",
    "LoginStatus",
    "TokenCache",
    "RequestExecutor",
    "Page",
    "collect_all",
    "page_from_response",
    "BatchDispatcher",
    "BatchItem",
]
