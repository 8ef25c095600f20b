"""
Page post helpers.
"""

from typing import Any, Dict, Optional

from graphkit.client import GraphClient
from graphkit.core.errors import GraphError
from graphkit.validation import assert_positive_integer, assert_string


async def get_page_posts(
    client: GraphClient,
    page_id: str,
    page_access_token: Optional[str] = None,
    limit: int = 10,
    fields: Optional[str] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    **api_options: Any,
) -> Dict[str, Any]:
    """
    Fetch recent posts of a page.

    Args:
        client: Connected Graph client
        page_id: Page id
        page_access_token: Page access token
        limit: Maximum number of posts
        fields: Comma-separated fields, config default if omitted
        since: Only posts created after this ISO date
        until: Only posts created before this ISO date
    """
    assert_string(page_id, "page_id")
    assert_positive_integer(limit, "limit")

    params: Dict[str, Any] = {"fields": fields or client.config.fields_for("posts"), "limit": limit}
    if since:
        params["since"] = since
    if until:
        params["until"] = until

    try:
        return await client.request(
            f"{page_id}/posts",
            page_access_token,
            "GET",
            params,
            missing_scopes=client.config.default_permissions.get("posts", []),
            **api_options,
        )
    except GraphError as e:
        raise e.with_context("get_page_posts", {"page_id": page_id, "limit": limit})


async def get_post_details(
    client: GraphClient,
    post_id: str,
    access_token: Optional[str] = None,
    fields: Optional[str] = None,
    **api_options: Any,
) -> Dict[str, Any]:
    assert_string(post_id, "post_id")
    fields = fields or client.config.fields_for("posts")
    try:
        return await client.request(post_id, access_token, "GET", {"fields": fields}, **api_options)
    except GraphError as e:
        raise e.with_context("get_post_details", {"post_id": post_id})
