"""
Batch request dispatcher.

Packs many sub-requests into as few outer calls as the provider allows.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from urllib.parse import urlencode

import structlog

from graphkit.core.errors import ApiErrorSubkind, GraphError, api_error
from graphkit.core.executor import RequestExecutor, encode_query_value
from graphkit.core.request import RequestSpec, RetryPolicy

logger = structlog.get_logger(__name__)

# Provider limit on sub-requests per batch call
MAX_BATCH_SIZE = 50


@dataclass(frozen=True)
class BatchItem:
    """
    One sub-request of a batch call.

    Attributes:
        endpoint: Relative endpoint (e.g. "me/accounts")
        method: HTTP method of the sub-request
        params: Query parameters appended to the relative URL
        name: Name used to reference this sub-request's result
    """
    endpoint: str
    method: str = "GET"
    params: Mapping[str, Any] = field(default_factory=dict)
    name: Optional[str] = None

    @classmethod
    def coerce(cls, item: Union["BatchItem", Mapping[str, Any]]) -> "BatchItem":
        """Accept a BatchItem or a plain mapping with the same keys."""
        if isinstance(item, cls):
            return item
        if not isinstance(item, Mapping) or "endpoint" not in item:
            raise TypeError("batch items need at least an 'endpoint'")
        return cls(
            endpoint=item["endpoint"],
            method=item.get("method") or "GET",
            params=item.get("params") or {},
            name=item.get("name"),
        )

    @property
    def relative_url(self) -> str:
        if not self.params:
            return self.endpoint
        query = urlencode({k: encode_query_value(v) for k, v in self.params.items()})
        return f"{self.endpoint}?{query}"

    def serialize(self, index: int) -> Dict[str, Any]:
        """Wire form of the item; ``index`` is its position in the whole dispatch."""
        return {
            "method": self.method.upper(),
            "relative_url": self.relative_url,
            "include_headers": False,
            "name": self.name or f"request_{index}",
        }


class BatchDispatcher:
    """
    Sends sub-requests in groups of at most MAX_BATCH_SIZE.

    Groups run one after another. Results come back in request order, and the
    first failing group aborts the whole dispatch.
    """

    def __init__(self, executor: RequestExecutor, batch_size: int = MAX_BATCH_SIZE):
        if not 0 < batch_size <= MAX_BATCH_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_BATCH_SIZE}")
        self.executor = executor
        self.batch_size = batch_size

    async def dispatch(
        self,
        sub_requests: Sequence[Union[BatchItem, Mapping[str, Any]]],
        credential: str,
        policy: Optional[RetryPolicy] = None,
        version: Optional[str] = None,
    ) -> List[Any]:
        """
        Execute all sub-requests.

        Args:
            sub_requests: BatchItems or mappings with endpoint/method/params/name
            credential: Access token for the outer calls
            policy: Retry policy for each outer call
            version: API version override

        Returns:
            One provider response per sub-request, in input order

        Raises:
            ValueError: If sub_requests is empty
            GraphError: If any group fails
        """
        if not sub_requests:
            raise ValueError("sub_requests must be a non-empty sequence")

        items = [BatchItem.coerce(item) for item in sub_requests]
        results: List[Any] = []

        for start in range(0, len(items), self.batch_size):
            group = items[start:start + self.batch_size]
            payload = [item.serialize(start + offset) for offset, item in enumerate(group)]

            spec = RequestSpec(
                endpoint="",
                credential=credential,
                method="POST",
                params={"batch": json.dumps(payload)},
                version=version,
            )

            try:
                response = await self.executor.execute(spec, policy)
                if not isinstance(response, list):
                    raise api_error(
                        "Batch response is not a list",
                        "INVALID_RESPONSE",
                        ApiErrorSubkind.GENERIC,
                    )
            except GraphError as e:
                logger.warning(
                    "batch_group_failed",
                    group_start=start,
                    batch_size=len(group),
                    code=e.code,
                )
                raise e.with_context("batch_graph_api", {"batch_size": len(group)})

            results.extend(response)
            logger.debug("batch_group_complete", group_start=start, batch_size=len(group))

        return results
