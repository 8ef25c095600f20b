"""
Page helpers.
"""

from typing import Any, Dict, Optional

import structlog

from graphkit.client import GraphClient
from graphkit.core.errors import GraphError
from graphkit.validation import assert_positive_integer, assert_string

logger = structlog.get_logger(__name__)

PAGE_INFO_FIELDS = (
    "id,name,category,about,description,website,phone,emails,location,hours,"
    "fan_count,followers_count,checkins,were_here_count,talking_about_count,engagement"
)


async def get_pages(
    client: GraphClient,
    access_token: Optional[str] = None,
    fields: Optional[str] = None,
    limit: Optional[int] = None,
    **api_options: Any,
) -> Dict[str, Any]:
    """
    Fetch the pages the user manages, with their page access tokens.

    Args:
        client: Connected Graph client
        access_token: User access token
        fields: Comma-separated fields, config default if omitted
        limit: Maximum number of pages
    """
    assert_positive_integer(limit, "limit")

    params: Dict[str, Any] = {"fields": fields or client.config.fields_for("pages")}
    if limit:
        params["limit"] = limit

    try:
        return await client.request(
            "me/accounts",
            access_token,
            "GET",
            params,
            missing_scopes=client.config.default_permissions.get("pages", []),
            **api_options,
        )
    except GraphError as e:
        raise e.with_context("get_pages", {"limit": limit})


async def get_page_info(
    client: GraphClient,
    page_id: str,
    access_token: Optional[str] = None,
    fields: str = PAGE_INFO_FIELDS,
    **api_options: Any,
) -> Dict[str, Any]:
    """Fetch details of one page."""
    assert_string(page_id, "page_id")
    try:
        return await client.request(page_id, access_token, "GET", {"fields": fields}, **api_options)
    except GraphError as e:
        raise e.with_context("get_page_info", {"page_id": page_id})


async def get_managed_page(
    client: GraphClient,
    page_id: str,
    access_token: Optional[str] = None,
    fields: Optional[str] = None,
    **api_options: Any,
) -> Optional[Dict[str, Any]]:
    """Find one of the user's managed pages by id, or None."""
    assert_string(page_id, "page_id")
    try:
        response = await get_pages(client, access_token, fields=fields, **api_options)
    except GraphError as e:
        raise e.with_context("get_managed_page", {"page_id": page_id})

    for page in response.get("data") or []:
        if page.get("id") == page_id:
            return page
    return None


async def manages_page(client: GraphClient, page_id: str, access_token: Optional[str] = None) -> bool:
    """Best-effort check whether the user manages a page; False on any API failure."""
    try:
        page = await get_managed_page(client, page_id, access_token, fields="id")
    except GraphError as e:
        logger.debug("manages_page_check_failed", page_id=page_id, code=e.code)
        return False
    return page is not None
