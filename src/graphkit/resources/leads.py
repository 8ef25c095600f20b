"""
Lead retrieval helpers.

Leads can be fetched one page at a time, across all pages with automatic
pagination, or for several forms at once.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import structlog

from graphkit.client import GraphClient
from graphkit.core.errors import GraphError
from graphkit.core.paginator import PROVIDER_PAGE_CAP
from graphkit.resources.forms import FORM_STATS_FIELDS, get_lead_form_stats
from graphkit.validation import assert_non_empty_list, assert_positive_integer, assert_string

logger = structlog.get_logger(__name__)

DEFAULT_MAX_LEADS = 10_000


def _lead_params(
    fields: str,
    since: Optional[str],
    until: Optional[str],
) -> Dict[str, Any]:
    params: Dict[str, Any] = {"fields": fields}
    if since:
        params["since"] = since
    if until:
        params["until"] = until
    return params


async def get_leads(
    client: GraphClient,
    form_id: str,
    access_token: Optional[str] = None,
    fields: Optional[str] = None,
    limit: int = 25,
    after: Optional[str] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    **api_options: Any,
) -> Dict[str, Any]:
    """
    Fetch one page of leads from a form.

    Args:
        client: Connected Graph client
        form_id: Lead form id
        access_token: Page access token with leads_retrieval
        fields: Comma-separated fields, config default if omitted
        limit: Page size
        after: Pagination cursor
        since: Only leads created after this ISO date
        until: Only leads created before this ISO date

    Returns:
        Provider response with ``data`` and ``paging``
    """
    assert_string(form_id, "form_id")
    assert_positive_integer(limit, "limit")

    params = _lead_params(fields or client.config.fields_for("leads"), since, until)
    params["limit"] = limit
    if after:
        params["after"] = after

    try:
        return await client.request(
            f"{form_id}/leads",
            access_token,
            "GET",
            params,
            missing_scopes=client.config.default_permissions.get("leads", []),
            **api_options,
        )
    except GraphError as e:
        raise e.with_context("get_leads", {"form_id": form_id, "after": after})


async def get_all_leads(
    client: GraphClient,
    form_id: str,
    access_token: Optional[str] = None,
    max_leads: int = DEFAULT_MAX_LEADS,
    fields: Optional[str] = None,
    after: Optional[str] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    **api_options: Any,
) -> List[Dict[str, Any]]:
    """
    Fetch all leads of a form, following cursors up to ``max_leads``.

    Pages are requested at the provider maximum of 100 items.
    """
    assert_string(form_id, "form_id")
    assert_positive_integer(max_leads, "max_leads")

    params = _lead_params(fields or client.config.fields_for("leads"), since, until)
    try:
        leads = await client.collect(
            f"{form_id}/leads",
            access_token,
            params,
            max_items=max_leads,
            page_cap=PROVIDER_PAGE_CAP,
            after=after,
            missing_scopes=client.config.default_permissions.get("leads", []),
            **api_options,
        )
    except GraphError as e:
        raise e.with_context("get_all_leads", {"form_id": form_id, "max_leads": max_leads})

    logger.info("leads_collected", form_id=form_id, count=len(leads))
    return leads


async def get_leads_from_multiple_forms(
    client: GraphClient,
    form_ids: List[str],
    access_token: Optional[str] = None,
    parallel: bool = True,
    **options: Any,
) -> Dict[str, Any]:
    """
    Fetch one page of leads for each form.

    Returns:
        Mapping of form id to its leads response, or to ``{"error": message}``
        when that form failed
    """
    assert_non_empty_list(form_ids, "form_ids")

    async def fetch(form_id: str) -> Any:
        try:
            return await get_leads(client, form_id, access_token, **options)
        except GraphError as e:
            logger.warning("leads_fetch_failed", form_id=form_id, code=e.code)
            return {"error": e.message}
        except (ValueError, TypeError) as e:
            logger.warning("leads_fetch_rejected", form_id=form_id, reason=str(e))
            return {"error": str(e)}

    if parallel:
        responses = await asyncio.gather(*(fetch(form_id) for form_id in form_ids))
        return dict(zip(form_ids, responses))

    results: Dict[str, Any] = {}
    for form_id in form_ids:
        results[form_id] = await fetch(form_id)
    return results


async def get_recent_leads(
    client: GraphClient,
    form_id: str,
    access_token: Optional[str] = None,
    hours: int = 24,
    **options: Any,
) -> Dict[str, Any]:
    """Fetch leads created in the last ``hours`` hours."""
    assert_positive_integer(hours, "hours")
    since = (datetime.now(timezone.utc) - timedelta(hours=hours)).isoformat()
    options["since"] = since
    return await get_leads(client, form_id, access_token, **options)


async def get_lead_stats(
    client: GraphClient,
    form_id: str,
    access_token: Optional[str] = None,
    **api_options: Any,
) -> Dict[str, Any]:
    """Summarize lead counters of a form plus the number of leads in the last 24 hours."""
    details = await get_lead_form_stats(client, form_id, access_token, FORM_STATS_FIELDS, **api_options)
    recent = await get_recent_leads(client, form_id, access_token, hours=24, limit=1000, **api_options)

    total = details.get("leads_count") or 0
    expired = details.get("expired_leads_count") or 0
    return {
        "form_id": form_id,
        "total_leads": total,
        "expired_leads": expired,
        "active_leads": total - expired,
        "form_status": details.get("status"),
        "form_created": details.get("created_time"),
        "leads_last_24_hours": len(recent.get("data") or []),
    }
