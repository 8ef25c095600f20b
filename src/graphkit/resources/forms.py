"""
Lead generation form helpers.
"""

import asyncio
from typing import Any, Dict, List, Optional

import structlog

from graphkit.client import GraphClient
from graphkit.core.errors import GraphError
from graphkit.validation import assert_non_empty_list, assert_positive_integer, assert_string

logger = structlog.get_logger(__name__)

FORM_DETAIL_FIELDS = (
    "id,name,status,leads_count,created_time,questions,privacy_policy_url,"
    "follow_up_action_url,expired_leads_count,page"
)
FORM_STATS_FIELDS = "leads_count,expired_leads_count,created_time,status"


async def get_lead_forms(
    client: GraphClient,
    page_id: str,
    access_token: Optional[str] = None,
    fields: Optional[str] = None,
    limit: Optional[int] = None,
    status: Optional[str] = None,
    **api_options: Any,
) -> Dict[str, Any]:
    """
    Fetch the lead forms of a page.

    Args:
        client: Connected Graph client
        page_id: Page id
        access_token: Page access token
        fields: Comma-separated fields, config default if omitted
        limit: Maximum number of forms
        status: Form status filter (ACTIVE, ARCHIVED, DRAFT)
    """
    assert_string(page_id, "page_id")
    assert_positive_integer(limit, "limit")

    params: Dict[str, Any] = {"fields": fields or client.config.fields_for("lead_forms")}
    if limit:
        params["limit"] = limit
    if status:
        params["status"] = status

    try:
        return await client.request(
            f"{page_id}/leadgen_forms",
            access_token,
            "GET",
            params,
            missing_scopes=client.config.default_permissions.get("leads", []),
            **api_options,
        )
    except GraphError as e:
        raise e.with_context("get_lead_forms", {"page_id": page_id, "status": status})


async def get_lead_form_details(
    client: GraphClient,
    form_id: str,
    access_token: Optional[str] = None,
    fields: str = FORM_DETAIL_FIELDS,
    **api_options: Any,
) -> Dict[str, Any]:
    assert_string(form_id, "form_id")
    try:
        return await client.request(form_id, access_token, "GET", {"fields": fields}, **api_options)
    except GraphError as e:
        raise e.with_context("get_lead_form_details", {"form_id": form_id})


async def get_active_lead_forms(
    client: GraphClient,
    page_id: str,
    access_token: Optional[str] = None,
    **options: Any,
) -> Dict[str, Any]:
    """Fetch only the ACTIVE forms of a page."""
    options["status"] = "ACTIVE"
    return await get_lead_forms(client, page_id, access_token, **options)


async def get_lead_forms_from_multiple_pages(
    client: GraphClient,
    page_ids: List[str],
    access_token: Optional[str] = None,
    **options: Any,
) -> Dict[str, Any]:
    """
    Fetch lead forms for several pages concurrently.

    Returns:
        Mapping of page id to its forms response, or to ``{"error": message}``
        when that page failed. One failing page does not affect the others.
    """
    assert_non_empty_list(page_ids, "page_ids")

    async def fetch(page_id: str) -> Any:
        try:
            return await get_lead_forms(client, page_id, access_token, **options)
        except GraphError as e:
            logger.warning("lead_forms_fetch_failed", page_id=page_id, code=e.code)
            return {"error": e.message}
        except (ValueError, TypeError) as e:
            logger.warning("lead_forms_fetch_rejected", page_id=page_id, reason=str(e))
            return {"error": str(e)}

    responses = await asyncio.gather(*(fetch(page_id) for page_id in page_ids))
    return dict(zip(page_ids, responses))


async def get_lead_form_stats(
    client: GraphClient,
    form_id: str,
    access_token: Optional[str] = None,
    fields: str = FORM_STATS_FIELDS,
    **api_options: Any,
) -> Dict[str, Any]:
    """Fetch lead counters and status of a form."""
    assert_string(form_id, "form_id")
    try:
        return await client.request(form_id, access_token, "GET", {"fields": fields}, **api_options)
    except GraphError as e:
        raise e.with_context("get_lead_form_stats", {"form_id": form_id})
