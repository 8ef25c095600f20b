"""
Resource helpers.

Thin wrappers over GraphClient for the provider's profile, page, post,
comment, lead form, lead and permission endpoints.
"""

from graphkit.resources.profile import get_basic_profile, get_profile, get_profile_picture
from graphkit.resources.pages import get_managed_page, get_page_info, get_pages, manages_page
from graphkit.resources.posts import get_page_posts, get_post_details
from graphkit.resources.comments import get_comments, get_likes, get_picture
from graphkit.resources.forms import (
    get_active_lead_forms,
    get_lead_form_details,
    get_lead_form_stats,
    get_lead_forms,
    get_lead_forms_from_multiple_pages,
)
from graphkit.resources.leads import (
    get_all_leads,
    get_lead_stats,
    get_leads,
    get_leads_from_multiple_forms,
    get_recent_leads,
)
from graphkit.resources.permissions import (
    fetch_all_permissions,
    get_all_permissions,
    get_all_required_permissions,
    has_permissions,
)

__all__ = [
    "get_basic_profile",
    "get_profile",
    "get_profile_picture",
    "get_managed_page",
    "get_page_info",
    "get_pages",
    "manages_page",
    "get_page_posts",
    "get_post_details",
    "get_comments",
    "get_likes",
    "get_picture",
    "get_active_lead_forms",
    "get_lead_form_details",
    "get_lead_form_stats",
    "get_lead_forms",
    "get_lead_forms_from_multiple_pages",
    "get_all_leads",
    "get_lead_stats",
    "get_leads",
    "get_leads_from_multiple_forms",
    "get_recent_leads",
    "fetch_all_permissions",
    "get_all_permissions",
    "get_all_required_permissions",
    "has_permissions",
]
