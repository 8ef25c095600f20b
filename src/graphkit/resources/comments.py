"""
Comment, like and picture helpers.
"""

from typing import Any, Dict, Optional

from graphkit.client import GraphClient
from graphkit.core.errors import GraphError
from graphkit.validation import assert_positive_integer, assert_string


async def get_comments(
    client: GraphClient,
    post_id: str,
    access_token: Optional[str] = None,
    fields: str = "id,message,created_time,from,like_count,comment_count",
    limit: int = 25,
    order: str = "chronological",
    **api_options: Any,
) -> Dict[str, Any]:
    """Fetch comments of a post, oldest first unless ``order`` says otherwise."""
    assert_string(post_id, "post_id")
    assert_positive_integer(limit, "limit")

    params = {"fields": fields, "limit": limit, "order": order}
    try:
        return await client.request(f"{post_id}/comments", access_token, "GET", params, **api_options)
    except GraphError as e:
        raise e.with_context("get_comments", {"post_id": post_id, "limit": limit})


async def get_likes(
    client: GraphClient,
    post_id: str,
    access_token: Optional[str] = None,
    fields: str = "id,name,pic_square",
    limit: int = 25,
    summary: bool = True,
    **api_options: Any,
) -> Dict[str, Any]:
    """Fetch likes of a post, with the total count when ``summary`` is set."""
    assert_string(post_id, "post_id")
    assert_positive_integer(limit, "limit")

    params: Dict[str, Any] = {"fields": fields, "limit": limit}
    if summary:
        params["summary"] = "true"
    try:
        return await client.request(f"{post_id}/likes", access_token, "GET", params, **api_options)
    except GraphError as e:
        raise e.with_context("get_likes", {"post_id": post_id, "limit": limit})


async def get_picture(
    client: GraphClient,
    user_id: str = "me",
    access_token: Optional[str] = None,
    width: int = 200,
    height: int = 200,
    picture_type: str = "normal",
    redirect: bool = False,
    **api_options: Any,
) -> Dict[str, Any]:
    params = {"width": width, "height": height, "type": picture_type, "redirect": redirect}
    try:
        return await client.request(f"{user_id}/picture", access_token, "GET", params, **api_options)
    except GraphError as e:
        raise e.with_context("get_picture", {"user_id": user_id})
