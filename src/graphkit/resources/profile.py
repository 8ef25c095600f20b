"""
User profile helpers.
"""

from typing import Any, Dict, Optional

from graphkit.client import GraphClient
from graphkit.core.errors import GraphError


async def get_profile(
    client: GraphClient,
    access_token: Optional[str] = None,
    fields: Optional[str] = None,
    **api_options: Any,
) -> Dict[str, Any]:
    """
    Fetch the current user's profile.

    Args:
        client: Connected Graph client
        access_token: User access token (resolved from the cache if omitted)
        fields: Comma-separated fields, config default if omitted
        **api_options: Per-call overrides passed to GraphClient.request()
    """
    fields = fields or client.config.fields_for("profile")
    try:
        return await client.request(
            "me",
            access_token,
            "GET",
            {"fields": fields},
            missing_scopes=client.config.default_permissions.get("basic", []),
            **api_options,
        )
    except GraphError as e:
        raise e.with_context("get_profile", {"fields": fields})


async def get_basic_profile(client: GraphClient, access_token: Optional[str] = None) -> Dict[str, Any]:
    """Fetch id and name only; needs no extra permissions."""
    return await get_profile(client, access_token, fields="id,name")


async def get_profile_picture(
    client: GraphClient,
    access_token: Optional[str] = None,
    width: int = 200,
    height: int = 200,
    picture_type: str = "normal",
    redirect: bool = False,
    **api_options: Any,
) -> Dict[str, Any]:
    """Fetch the current user's picture metadata."""
    params = {
        "width": width,
        "height": height,
        "type": picture_type,
        "redirect": redirect,
    }
    try:
        return await client.request("me/picture", access_token, "GET", params, **api_options)
    except GraphError as e:
        raise e.with_context("get_profile_picture", params)
