"""
Cursor-based auto-pagination.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

import structlog

logger = structlog.get_logger(__name__)

# Largest page the provider serves for list edges
PROVIDER_PAGE_CAP = 100


@dataclass(frozen=True)
class Page:
    """One page of results and the cursor to the next one, if any."""
    items: List[Any] = field(default_factory=list)
    next_cursor: Optional[str] = None


FetchPage = Callable[[Optional[str], int], Awaitable[Page]]


def page_from_response(response: Any) -> Page:
    """
    Parse the provider's list envelope.

    ``{"data": [...], "paging": {"next": url, "cursors": {"after": c}}}``.
    The ``after`` cursor is only followed when a ``next`` link is present.
    """
    if not isinstance(response, dict):
        return Page()

    items = response.get("data") or []
    paging = response.get("paging") or {}
    cursor = None
    if paging.get("next"):
        cursor = (paging.get("cursors") or {}).get("after")
    return Page(list(items), cursor)


async def collect_all(
    fetch_page: FetchPage,
    max_items: int,
    page_cap: int = PROVIDER_PAGE_CAP,
    start_cursor: Optional[str] = None,
) -> List[Any]:
    """
    Follow cursors until the results are exhausted or max_items are collected.

    Args:
        fetch_page: Called with (cursor, limit), returns one Page
        max_items: Upper bound on the number of returned items
        page_cap: Largest page size to request
        start_cursor: Cursor of the first request

    Returns:
        Items in provider order, never more than max_items
    """
    if max_items <= 0:
        raise ValueError("max_items must be a positive integer")
    if page_cap <= 0:
        raise ValueError("page_cap must be a positive integer")

    collected: List[Any] = []
    cursor = start_cursor
    pages = 0

    while len(collected) < max_items:
        limit = min(page_cap, max_items - len(collected))
        page = await fetch_page(cursor, limit)
        pages += 1

        if not page.items:
            break

        collected.extend(page.items[:max_items - len(collected)])

        if not page.next_cursor:
            break
        cursor = page.next_cursor

    logger.debug("pagination_complete", pages=pages, items=len(collected), max_items=max_items)
    return collected
