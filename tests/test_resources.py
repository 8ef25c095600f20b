"""
Test suite for the resource helpers (profile, pages, forms, leads, permissions).
"""

import httpx
import pytest

from graphkit.core.errors import ErrorKind, GraphError
from graphkit.resources import (
    fetch_all_permissions,
    get_all_leads,
    get_all_permissions,
    get_all_required_permissions,
    get_lead_forms_from_multiple_pages,
    get_lead_stats,
    get_leads,
    get_leads_from_multiple_forms,
    get_comments,
    get_likes,
    get_managed_page,
    get_page_posts,
    get_pages,
    get_picture,
    get_profile,
    has_permissions,
    manages_page,
)

from conftest import graph_error


PERMISSIONS_BODY = {
    "permissions": {
        "data": [
            {"permission": "email", "status": "granted"},
            {"permission": "pages_show_list", "status": "granted"},
            {"permission": "leads_retrieval", "status": "declined"},
        ]
    },
    "id": "1",
}


def route(responses: dict):
    """Handler answering by request path; unknown paths fail with code 100."""
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.split("/", 2)[-1]
        if path in responses:
            status, body = responses[path]
            return httpx.Response(status, json=body)
        return httpx.Response(400, json=graph_error(100, f"Unknown path {path}"))
    return handler


# ============================================================================
# Test Profile and Pages
# ============================================================================

class TestProfileAndPages:

    @pytest.mark.asyncio
    async def test_profile_uses_default_fields(self, graph_client, fake_graph):
        fake_graph.queue(200, {"id": "1", "name": "Ada"})

        await get_profile(graph_client)

        assert fake_graph.query()["fields"] == "id,name,email,picture"

    @pytest.mark.asyncio
    async def test_profile_error_context(self, graph_client, fake_graph):
        fake_graph.queue(401, graph_error(190, "Invalid OAuth access token."))

        with pytest.raises(GraphError) as exc_info:
            await get_profile(graph_client, fields="id")

        error = exc_info.value
        assert error.kind == ErrorKind.AUTH
        assert error.operation == "graph_api(me)"
        assert error.metadata["fields"] == "id"

    @pytest.mark.asyncio
    async def test_get_pages_limit(self, graph_client, fake_graph):
        fake_graph.queue(200, {"data": []})

        await get_pages(graph_client, limit=5)

        assert fake_graph.requests[0].url.path == "/v23.0/me/accounts"
        assert fake_graph.query()["limit"] == "5"

    @pytest.mark.asyncio
    async def test_get_pages_rejects_bad_limit(self, graph_client, fake_graph):
        with pytest.raises(ValueError):
            await get_pages(graph_client, limit=0)
        assert fake_graph.call_count == 0

    @pytest.mark.asyncio
    async def test_managed_page_lookup(self, graph_client, fake_graph):
        fake_graph.queue_many(2, 200, {"data": [{"id": "10"}, {"id": "20", "name": "Shop"}]})

        assert await get_managed_page(graph_client, "20") == {"id": "20", "name": "Shop"}
        assert await get_managed_page(graph_client, "30") is None

    @pytest.mark.asyncio
    async def test_manages_page_is_false_on_failure(self, graph_client, fake_graph):
        fake_graph.queue(403, graph_error(200, "Requires pages_show_list"))

        assert await manages_page(graph_client, "20") is False


# ============================================================================
# Test Posts and Comments
# ============================================================================

class TestPostsAndComments:

    @pytest.mark.asyncio
    async def test_page_posts_with_page_token(self, graph_client, fake_graph):
        fake_graph.queue(200, {"data": []})

        await get_page_posts(graph_client, "99", "page-token", limit=3, since="2026-10-01")

        query = fake_graph.query()
        assert fake_graph.requests[0].url.path == "/v23.0/99/posts"
        assert query["access_token"] == "page-token"
        assert query["limit"] == "3"
        assert query["since"] == "2026-10-01"

    @pytest.mark.asyncio
    async def test_comments_and_likes(self, graph_client, fake_graph):
        fake_graph.queue_many(2, 200, {"data": []})

        await get_comments(graph_client, "99_1", order="reverse_chronological")
        await get_likes(graph_client, "99_1", limit=5)

        assert fake_graph.query(0)["order"] == "reverse_chronological"
        assert fake_graph.requests[1].url.path == "/v23.0/99_1/likes"
        assert fake_graph.query(1)["summary"] == "true"

    @pytest.mark.asyncio
    async def test_picture_error_context(self, graph_client, fake_graph):
        fake_graph.queue(400, graph_error(803, "Some of the aliases you requested do not exist"))

        with pytest.raises(GraphError) as exc_info:
            await get_picture(graph_client, "nobody")

        assert exc_info.value.code == "API_ERROR"
        assert exc_info.value.metadata["user_id"] == "nobody"


# ============================================================================
# Test Forms and Leads
# ============================================================================

class TestLeads:

    @pytest.mark.asyncio
    async def test_get_leads_params(self, graph_client, fake_graph):
        fake_graph.queue(200, {"data": []})

        await get_leads(graph_client, "42", limit=10, after="abc", since="2026-01-01")

        assert fake_graph.requests[0].url.path == "/v23.0/42/leads"
        assert fake_graph.query() == {
            "access_token": "cached-token",
            "fields": "id,created_time,field_data",
            "limit": "10",
            "after": "abc",
            "since": "2026-01-01",
        }

    @pytest.mark.asyncio
    async def test_get_leads_rejects_blank_form(self, graph_client):
        with pytest.raises(ValueError):
            await get_leads(graph_client, " ")

    @pytest.mark.asyncio
    async def test_get_all_leads_pages_at_provider_cap(self, graph_client, fake_graph):
        """Test that all leads are collected at 100 per page."""
        def handler(request):
            params = dict(request.url.params)
            start = int(params.get("after", "0"))
            size = int(params["limit"])
            end = min(start + size, 230)
            body = {"data": [{"id": str(i)} for i in range(start, end)]}
            if end < 230:
                body["paging"] = {"cursors": {"after": str(end)}, "next": "https://graph.test/next"}
            return httpx.Response(200, json=body)

        fake_graph.handler = handler

        leads = await get_all_leads(graph_client, "42")

        assert [lead["id"] for lead in leads] == [str(i) for i in range(230)]
        assert [fake_graph.query(i)["limit"] for i in range(3)] == ["100", "100", "100"]

    @pytest.mark.asyncio
    async def test_get_all_leads_error_context(self, graph_client, fake_graph):
        fake_graph.queue(403, graph_error(10, "Requires leads_retrieval"))

        with pytest.raises(GraphError) as exc_info:
            await get_all_leads(graph_client, "42", max_leads=50)

        assert exc_info.value.kind == ErrorKind.PERMISSION
        assert exc_info.value.metadata["form_id"] == "42"
        assert exc_info.value.metadata["max_leads"] == 50

    @pytest.mark.asyncio
    @pytest.mark.parametrize("parallel", [True, False])
    async def test_multiple_forms_map_failures(self, graph_client, fake_graph, parallel):
        """Test that one failing form does not affect the others."""
        fake_graph.handler = route({
            "1/leads": (200, {"data": [{"id": "a"}]}),
            "3/leads": (200, {"data": []}),
        })

        results = await get_leads_from_multiple_forms(graph_client, ["1", "2", "3"], parallel=parallel)

        assert list(results) == ["1", "2", "3"]
        assert results["1"]["data"] == [{"id": "a"}]
        assert results["2"] == {"error": "Unknown path 2/leads"}
        assert results["3"] == {"data": []}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("parallel", [True, False])
    async def test_multiple_forms_keep_results_beside_invalid_id(self, graph_client, fake_graph, parallel):
        """Test that a rejected id is reported without losing the other results."""
        fake_graph.handler = route({"f1/leads": (200, {"data": [{"id": "a"}]})})

        results = await get_leads_from_multiple_forms(graph_client, ["f1", ""], parallel=parallel)

        assert results["f1"] == {"data": [{"id": "a"}]}
        assert results[""] == {"error": "form_id must be a non-empty string"}
        assert fake_graph.call_count == 1

    @pytest.mark.asyncio
    async def test_multiple_pages_keep_results_beside_invalid_id(self, graph_client, fake_graph):
        fake_graph.handler = route({"p1/leadgen_forms": (200, {"data": [{"id": "f1"}]})})

        results = await get_lead_forms_from_multiple_pages(graph_client, ["p1", "  "])

        assert results["p1"] == {"data": [{"id": "f1"}]}
        assert results["  "] == {"error": "page_id must be a non-empty string"}

    @pytest.mark.asyncio
    async def test_multiple_pages_of_forms(self, graph_client, fake_graph):
        fake_graph.handler = route({"p1/leadgen_forms": (200, {"data": [{"id": "f1"}]})})

        results = await get_lead_forms_from_multiple_pages(graph_client, ["p1", "p2"])

        assert results["p1"] == {"data": [{"id": "f1"}]}
        assert "error" in results["p2"]

    @pytest.mark.asyncio
    async def test_lead_stats(self, graph_client, fake_graph):
        fake_graph.handler = route({
            "42": (200, {
                "leads_count": 12,
                "expired_leads_count": 2,
                "status": "ACTIVE",
                "created_time": "2026-01-01T00:00:00+0000",
            }),
            "42/leads": (200, {"data": [{"id": "1"}, {"id": "2"}]}),
        })

        stats = await get_lead_stats(graph_client, "42")

        assert stats == {
            "form_id": "42",
            "total_leads": 12,
            "expired_leads": 2,
            "active_leads": 10,
            "form_status": "ACTIVE",
            "form_created": "2026-01-01T00:00:00+0000",
            "leads_last_24_hours": 2,
        }
        assert "since" in fake_graph.query(1)


# ============================================================================
# Test Permissions
# ============================================================================

class TestPermissions:

    @pytest.mark.asyncio
    async def test_granted_and_declined(self, graph_client, fake_graph):
        fake_graph.queue_many(2, 200, PERMISSIONS_BODY)

        assert await get_all_permissions(graph_client) == ["email", "pages_show_list"]
        assert await get_all_required_permissions(graph_client) == ["leads_retrieval"]

    @pytest.mark.asyncio
    async def test_invalid_payload(self, graph_client, fake_graph):
        fake_graph.queue(200, {"id": "1"})

        with pytest.raises(GraphError) as exc_info:
            await fetch_all_permissions(graph_client)

        error = exc_info.value
        assert error.kind == ErrorKind.PERMISSION
        assert error.code == "INVALID_RESPONSE"
        assert error.operation == "fetch_all_permissions"

    @pytest.mark.asyncio
    async def test_has_permissions(self, graph_client, fake_graph):
        fake_graph.queue_many(2, 200, PERMISSIONS_BODY)

        assert await has_permissions(graph_client, ["email"]) is True
        assert await has_permissions(graph_client, ["email", "leads_retrieval"]) is False

    @pytest.mark.asyncio
    async def test_has_permissions_false_on_failure(self, graph_client, fake_graph):
        fake_graph.queue(401, graph_error(190))

        assert await has_permissions(graph_client, ["email"]) is False
