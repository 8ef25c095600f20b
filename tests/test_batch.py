"""
Test suite for the batch dispatcher.
"""

import json

import httpx
import pytest

from graphkit.core.batch import MAX_BATCH_SIZE, BatchDispatcher, BatchItem
from graphkit.core.errors import ErrorKind, GraphError

from conftest import graph_error


def echo_batch(request: httpx.Request) -> httpx.Response:
    """Answer each sub-request with a body naming it."""
    payload = json.loads(json.loads(request.content)["batch"])
    results = [
        {"code": 200, "body": json.dumps({"name": item["name"], "url": item["relative_url"]})}
        for item in payload
    ]
    return httpx.Response(200, json=results)


def sent_items(fake_graph, index: int) -> list:
    return json.loads(fake_graph.json_body(index)["batch"])


# ============================================================================
# Test Batch Items
# ============================================================================

class TestBatchItem:
    """Tests for the sub-request wire form."""

    def test_relative_url_encodes_params(self):
        item = BatchItem("123/leads", params={"fields": "id,created_time", "limit": 5})

        assert item.relative_url == "123/leads?fields=id%2Ccreated_time&limit=5"

    def test_relative_url_without_params(self):
        assert BatchItem("me").relative_url == "me"

    def test_serialize_defaults(self):
        assert BatchItem("me", method="get").serialize(7) == {
            "method": "GET",
            "relative_url": "me",
            "include_headers": False,
            "name": "request_7",
        }

    def test_serialize_keeps_explicit_name(self):
        assert BatchItem("me", name="profile").serialize(0)["name"] == "profile"

    def test_coerce_mapping(self):
        item = BatchItem.coerce({"endpoint": "me/accounts", "params": {"limit": 2}})

        assert item == BatchItem("me/accounts", "GET", {"limit": 2}, None)

    def test_coerce_rejects_items_without_endpoint(self):
        with pytest.raises(TypeError):
            BatchItem.coerce({"method": "GET"})


# ============================================================================
# Test Dispatch
# ============================================================================

class TestDispatch:
    """Tests for grouping and ordering."""

    @pytest.mark.asyncio
    async def test_groups_of_fifty_in_order(self, executor, fake_graph, fast_policy):
        """Test that 120 sub-requests become three calls of 50, 50 and 20."""
        fake_graph.handler = echo_batch
        dispatcher = BatchDispatcher(executor)
        items = [BatchItem(f"obj_{i}") for i in range(120)]

        results = await dispatcher.dispatch(items, "token-123", fast_policy)

        assert fake_graph.call_count == 3
        assert [len(sent_items(fake_graph, i)) for i in range(3)] == [50, 50, 20]
        assert len(results) == 120
        names = [json.loads(r["body"])["name"] for r in results]
        assert names == [f"request_{i}" for i in range(120)]
        urls = [json.loads(r["body"])["url"] for r in results]
        assert urls == [f"obj_{i}" for i in range(120)]

    @pytest.mark.asyncio
    async def test_outer_call_shape(self, executor, fake_graph, fast_policy):
        fake_graph.handler = echo_batch
        dispatcher = BatchDispatcher(executor)

        await dispatcher.dispatch([{"endpoint": "me"}], "token-123", fast_policy)

        request = fake_graph.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v23.0/"
        assert request.headers["authorization"] == "Bearer token-123"

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_calls(self, executor, fake_graph):
        dispatcher = BatchDispatcher(executor)

        with pytest.raises(ValueError):
            await dispatcher.dispatch([], "token-123")

        assert fake_graph.call_count == 0

    @pytest.mark.asyncio
    async def test_failing_group_aborts(self, executor, fake_graph, fast_policy):
        """Test that a failed group stops the dispatch and reports its size."""
        fake_graph.queue(200, [{"code": 200, "body": "{}"}] * MAX_BATCH_SIZE)
        fake_graph.queue(400, graph_error(100, "Invalid batch"))
        items = [BatchItem(f"obj_{i}") for i in range(120)]

        with pytest.raises(GraphError) as exc_info:
            await BatchDispatcher(executor).dispatch(items, "token-123", fast_policy)

        error = exc_info.value
        assert error.code == "API_PARAMETER"
        assert error.metadata["batch_size"] == 50
        assert fake_graph.call_count == 2

    @pytest.mark.asyncio
    async def test_non_list_response_is_invalid(self, executor, fake_graph, fast_policy):
        fake_graph.queue(200, {"data": []})

        with pytest.raises(GraphError) as exc_info:
            await BatchDispatcher(executor).dispatch([BatchItem("me")], "token-123", fast_policy)

        assert exc_info.value.kind == ErrorKind.API
        assert exc_info.value.code == "INVALID_RESPONSE"

    def test_rejects_oversized_groups(self, executor):
        with pytest.raises(ValueError):
            BatchDispatcher(executor, batch_size=MAX_BATCH_SIZE + 1)
