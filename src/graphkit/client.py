"""
Graph client facade.

Wires configuration, token cache, executor, paginator and batch dispatcher
behind one object that resource helpers call into.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import httpx
import structlog

from graphkit.config import GraphConfig, get_config
from graphkit.core.batch import BatchDispatcher, BatchItem
from graphkit.core.executor import RequestExecutor, Sleep
from graphkit.core.paginator import PROVIDER_PAGE_CAP, Page, collect_all, page_from_response
from graphkit.core.request import RequestSpec, RetryPolicy
from graphkit.core.token_cache import TokenCache, get_token_cache

logger = structlog.get_logger(__name__)


class GraphClient:
    """
    Async client for the Graph provider.

    Usage:
        ```python
        async with GraphClient() as client:
            profile = await client.request("me", params={"fields": "id,name"})
        ```
    """

    def __init__(
        self,
        config: Optional[GraphConfig] = None,
        token_cache: Optional[TokenCache] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize the client.

        Args:
            config: Graph configuration. Uses global config if not provided.
            token_cache: Token cache. Uses the process-wide cache if not provided,
                or a private cache when config carries a static access_token.
            http_client: Custom HTTP client (created on connect() if not provided)
            sleep: Coroutine used for retry backoff
        """
        self.config = config or get_config()
        if token_cache is None:
            token_cache = TokenCache() if self.config.access_token else get_token_cache()
        self.tokens = token_cache
        self._sleep = sleep
        self._client = http_client
        self._owns_client = http_client is None
        self._executor: Optional[RequestExecutor] = None
        self._dispatcher: Optional[BatchDispatcher] = None

    async def __aenter__(self) -> "GraphClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    async def connect(self) -> None:
        """Create the HTTP client and the core components."""
        if self._executor is not None:
            return

        if self._client is None:
            self._client = httpx.AsyncClient()
            self._owns_client = True

        self._executor = RequestExecutor(self._client, self.config, sleep=self._sleep)
        self._dispatcher = BatchDispatcher(self._executor)
        if self.config.access_token and self.tokens.peek() is None:
            self.tokens.set(self.config.access_token)
        logger.debug("graph_client_connected", host=self.config.api_host, version=self.config.version)

    async def disconnect(self) -> None:
        """Close the HTTP client if this object created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
        self._executor = None
        self._dispatcher = None

    @property
    def executor(self) -> RequestExecutor:
        if self._executor is None:
            raise RuntimeError("GraphClient is not connected; use 'async with' or connect()")
        return self._executor

    @property
    def dispatcher(self) -> BatchDispatcher:
        if self._dispatcher is None:
            raise RuntimeError("GraphClient is not connected; use 'async with' or connect()")
        return self._dispatcher

    def policy(
        self,
        timeout_ms: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
    ) -> RetryPolicy:
        """Retry policy with per-call overrides; the config is never modified."""
        return RetryPolicy.from_config(
            self.config,
            retry_attempts=retry_attempts,
            retry_delay_ms=retry_delay_ms,
            timeout_ms=timeout_ms,
        )

    async def request(
        self,
        endpoint: str,
        access_token: Optional[str] = None,
        method: str = "GET",
        params: Optional[Mapping[str, Any]] = None,
        *,
        version: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
        missing_scopes: Iterable[str] = (),
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """
        Make one Graph API call.

        Args:
            endpoint: Endpoint below the version prefix
            access_token: Explicit token; resolved through the token cache when omitted
            method: HTTP method
            params: Query parameters or JSON body
            version: API version override
            timeout_ms: Per-attempt deadline override
            retry_attempts: Retry count override
            retry_delay_ms: Backoff base override
            missing_scopes: Scopes reported if no credential can be resolved
            headers: Extra request headers

        Returns:
            Parsed provider response
        """
        credential = await self.tokens.resolve(access_token, missing_scopes)
        spec = RequestSpec(
            endpoint=endpoint,
            credential=credential,
            method=method,
            params=params or {},
            headers=headers or {},
            version=version,
        )
        return await self.executor.execute(
            spec,
            self.policy(timeout_ms, retry_attempts, retry_delay_ms),
        )

    async def batch(
        self,
        requests: Sequence[Any],
        access_token: Optional[str] = None,
        *,
        version: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
    ) -> List[Any]:
        """Run sub-requests through the batch dispatcher."""
        if not requests:
            raise ValueError("requests must be a non-empty sequence")

        credential = await self.tokens.resolve(access_token)
        return await self.dispatcher.dispatch(
            [BatchItem.coerce(r) for r in requests],
            credential,
            self.policy(timeout_ms, retry_attempts, retry_delay_ms),
            version=version,
        )

    async def collect(
        self,
        endpoint: str,
        access_token: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        max_items: int = 10_000,
        page_cap: int = PROVIDER_PAGE_CAP,
        after: Optional[str] = None,
        **options,
    ) -> List[Any]:
        """
        Fetch every item of a list edge, following ``after`` cursors.

        Args:
            endpoint: List edge (e.g. "<form-id>/leads")
            access_token: Explicit token
            params: Base query parameters; ``limit`` and ``after`` are managed here
            max_items: Upper bound on returned items
            page_cap: Largest page to request
            after: Cursor to start from
            **options: Passed to request()

        Returns:
            Items across all pages in provider order
        """
        base_params: Dict[str, Any] = dict(params or {})
        base_params.pop("limit", None)
        base_params.pop("after", None)

        async def fetch_page(cursor: Optional[str], limit: int) -> Page:
            page_params = dict(base_params, limit=limit)
            if cursor:
                page_params["after"] = cursor
            response = await self.request(endpoint, access_token, "GET", page_params, **options)
            return page_from_response(response)

        return await collect_all(fetch_page, max_items, page_cap, start_cursor=after)
