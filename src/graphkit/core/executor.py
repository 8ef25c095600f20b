"""
Request executor.

Issues a single Graph API call with a per-attempt deadline, retries transient
failures with exponential backoff and raises exactly one classified
GraphError when the call cannot succeed.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

import httpx
import structlog

from graphkit.config import GraphConfig, get_config
from graphkit.core.errors import (
    ApiErrorSubkind,
    GraphError,
    api_error,
    classify,
    log_error,
    network_error,
    timeout_error,
)
from graphkit.core.request import RequestSpec, RetryPolicy
from graphkit.core.retry import AttemptState, next_action

logger = structlog.get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


def encode_query_value(value: Any) -> Any:
    """Render a parameter value the way the provider expects it in a query string."""
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"))
    return value


class RequestExecutor:
    """
    Executes RequestSpecs against the Graph provider.

    The executor owns no state besides its HTTP client; every call gets its own
    deadline, so a timed out call never affects concurrent ones.

    Usage:
        ```python
        async with httpx.AsyncClient() as http:
            executor = RequestExecutor(http)
            me = await executor.execute(
                RequestSpec("me", credential=token, params={"fields": "id,name"}),
                RetryPolicy(),
            )
        ```
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: Optional[GraphConfig] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize the executor.

        Args:
            client: HTTP client used for all calls
            config: Graph configuration. Uses global config if not provided.
            sleep: Coroutine used for backoff waits (injectable for tests)
        """
        self.client = client
        self.config = config or get_config()
        self._sleep = sleep

    def build_url(self, spec: RequestSpec) -> str:
        version = spec.version or self.config.version
        return f"{self.config.base_url}/{version}/{spec.endpoint.lstrip('/')}"

    def build_request(self, spec: RequestSpec) -> httpx.Request:
        """Build the outbound HTTP request for a spec."""
        url = self.build_url(spec)
        headers = dict(spec.headers)

        if spec.is_get:
            query = {"access_token": spec.credential}
            query.update({k: encode_query_value(v) for k, v in spec.params.items()})
            return self.client.build_request("GET", url, params=query, headers=headers)

        headers.update({
            "Content-Type": "application/json",
            "Authorization": f"Bearer {spec.credential}",
        })
        return self.client.build_request(
            spec.method,
            url,
            content=json.dumps(dict(spec.params)),
            headers=headers,
        )

    async def execute(
        self,
        spec: RequestSpec,
        policy: Optional[RetryPolicy] = None,
        operation: Optional[str] = None,
    ) -> Any:
        """
        Execute a call, retrying transient failures.

        Args:
            spec: The call to make
            policy: Retry policy, built from config when omitted
            operation: Name recorded on a surfaced error

        Returns:
            The parsed JSON body of the successful response

        Raises:
            GraphError: The last classified failure
        """
        policy = policy or RetryPolicy.from_config(self.config)
        operation = operation or f"graph_api({spec.endpoint})"

        state = AttemptState.ATTEMPTING
        attempt = 0
        delay_ms = 0
        result: Any = None
        last_error: Optional[GraphError] = None

        while state in (AttemptState.ATTEMPTING, AttemptState.WAITING):
            if state == AttemptState.WAITING:
                logger.debug(
                    "graph_request_retry",
                    endpoint=spec.endpoint,
                    attempt=attempt,
                    delay_ms=delay_ms,
                    code=last_error.code if last_error else None,
                )
                await self._sleep(delay_ms / 1000)
                state = AttemptState.ATTEMPTING
                continue

            try:
                result = await self._attempt(spec, policy)
                state = AttemptState.SUCCEEDED
            except GraphError as e:
                last_error = e
                decision = next_action(attempt, e, policy)
                attempt += 1
                delay_ms = decision.delay_ms
                state = AttemptState.WAITING if decision.should_retry else AttemptState.FAILED

        if state == AttemptState.SUCCEEDED:
            return result

        last_error.with_context(
            operation,
            {"endpoint": spec.endpoint, "method": spec.method, "attempt": attempt},
        )
        logger.warning(
            "graph_request_failed",
            endpoint=spec.endpoint,
            method=spec.method,
            attempts=attempt,
            code=last_error.code,
            status=last_error.status_code,
        )
        log_error(last_error)
        raise last_error

    async def _attempt(self, spec: RequestSpec, policy: RetryPolicy) -> Any:
        """Run one attempt under its own deadline."""
        request = self.build_request(spec)

        try:
            response = await asyncio.wait_for(
                self.client.send(request),
                timeout=policy.timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise timeout_error(
                f"Request timed out after {policy.timeout_ms}ms",
                "REQUEST_TIMEOUT",
            )
        except httpx.TransportError as e:
            raise network_error(f"Network error calling {spec.endpoint or '/'}: {e}")
        except httpx.RequestError as e:
            # Decoding and redirect failures surface inside send()
            raise network_error(f"Request to {spec.endpoint or '/'} failed: {e}")

        body = self._parse_body(response)

        if response.is_success:
            if body is _UNPARSEABLE:
                raise api_error(
                    "Graph API returned a non-JSON response",
                    "INVALID_RESPONSE",
                    ApiErrorSubkind.GENERIC,
                    status_code=response.status_code,
                )
            return body

        error_body = body.get("error") if isinstance(body, dict) else None
        raise classify(error_body, response.status_code)

    @staticmethod
    def _parse_body(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return _UNPARSEABLE


_UNPARSEABLE = object()
