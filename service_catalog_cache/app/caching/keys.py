"""
Cache key conventions shared by data-access callers.

Keys follow ``scope:entity:id`` so that a whole scope can be purged with a
single pattern invalidation.
"""

from typing import Any, Mapping, Optional

# Default TTLs in seconds per key family
USER_LISTS_TTL = 2 * 60
LIST_ITEMS_TTL = 60
USER_MEDIA_TTL = 5 * 60
API_SEARCH_TTL = 15 * 60

SEARCH_MIN_QUERY_LENGTH = 3


def user_lists_key(user_id: str) -> str:
    return f"user-lists:{user_id}"


def list_items_key(list_id: str) -> str:
    return f"list-items:{list_id}"


def user_media_key(user_id: str) -> str:
    return f"user-media:{user_id}"


def api_search_key(category: str, query: str) -> str:
    return f"api-search:{category}:{query}"


def search_enabled(query: Optional[str]) -> bool:
    """Searches shorter than the minimum length are not worth caching or fetching."""
    return bool(query) and len(query) >= SEARCH_MIN_QUERY_LENGTH


def api_key(endpoint: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build a key for an upstream API call; parameter order does not matter."""
    params = params or {}
    query = "&".join(f"{name}={params[name]}" for name in sorted(params))
    return f"api:{endpoint}:{query}"


def user_key(user_id: str, data_type: str) -> str:
    return f"user:{user_id}:{data_type}"
