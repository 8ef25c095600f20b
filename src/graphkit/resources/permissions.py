"""
Permission helpers.
"""

from typing import Any, Dict, Iterable, List, Optional

import structlog

from graphkit.client import GraphClient
from graphkit.core.errors import GraphError, log_error, permission_error

logger = structlog.get_logger(__name__)


def _permission_entries(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    nested = response.get("permissions")
    if isinstance(nested, dict) and isinstance(nested.get("data"), list):
        return nested["data"]
    if isinstance(response.get("data"), list):
        return response["data"]
    return []


async def fetch_all_permissions(client: GraphClient, access_token: Optional[str] = None) -> Dict[str, Any]:
    """
    Fetch the raw permission list of the current user.

    Raises:
        GraphError: PERMISSION with code INVALID_RESPONSE when the provider
            answers without a permission list
    """
    try:
        response = await client.request("me", access_token, "GET", {"fields": "permissions"})
        if not isinstance(response, dict) or ("permissions" not in response and "data" not in response):
            raise permission_error(
                "Invalid response when fetching permissions",
                [],
                "INVALID_RESPONSE",
            )
    except GraphError as e:
        e.with_context("fetch_all_permissions")
        log_error(e)
        raise e
    return response


async def get_all_permissions(client: GraphClient, access_token: Optional[str] = None) -> List[str]:
    """Names of the permissions the user granted."""
    response = await fetch_all_permissions(client, access_token)
    return [p["permission"] for p in _permission_entries(response) if p.get("status") == "granted"]


async def get_all_required_permissions(client: GraphClient, access_token: Optional[str] = None) -> List[str]:
    """Names of the permissions the user declined."""
    response = await fetch_all_permissions(client, access_token)
    return [p["permission"] for p in _permission_entries(response) if p.get("status") == "declined"]


async def has_permissions(
    client: GraphClient,
    required: Iterable[str],
    access_token: Optional[str] = None,
) -> bool:
    """Best-effort check that every required permission is granted."""
    try:
        granted = set(await get_all_permissions(client, access_token))
    except GraphError as e:
        logger.debug("permission_check_failed", code=e.code)
        return False
    return set(required) <= granted
