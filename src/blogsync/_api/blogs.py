"""Blog listing and blog mutation endpoints."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from blogsync._api._common import parse_page, unwrap_list
from blogsync._transport import Transport
from blogsync.models.blog import BlogSummary
from blogsync.models.stream import PageData

_logger = logging.getLogger(__name__)

_LATEST_ENDPOINT = "/blogs/latest-blogs"
_SEARCH_ENDPOINT = "/blogs/search-blogs"
_USER_BLOGS_ENDPOINT = "/blogs/user-written-blogs"
_DELETE_ENDPOINT = "/blogs/delete-blog"


async def fetch_latest_blogs(transport: Transport, page: int, limit: int) -> PageData:
    response = await transport.request_json("POST", _LATEST_ENDPOINT, {"page": page, "limit": limit})
    return parse_page(unwrap_list(response, "blogs", endpoint=_LATEST_ENDPOINT), BlogSummary, endpoint=_LATEST_ENDPOINT)


async def search_blogs(
    transport: Transport,
    page: int,
    limit: int,
    filters: Mapping[str, str],
) -> PageData:
    """Search published blogs; *filters* uses the URL keys ``q, tag, category, author``."""
    payload: dict[str, object] = {
        "query": filters.get("q", ""),
        "tag": filters.get("tag", ""),
        "page": page,
        "limit": limit,
    }
    if filters.get("category"):
        payload["category"] = filters["category"]
    if filters.get("author"):
        payload["author"] = filters["author"]
    response = await transport.request_json("POST", _SEARCH_ENDPOINT, payload)
    return parse_page(unwrap_list(response, "blogs", endpoint=_SEARCH_ENDPOINT), BlogSummary, endpoint=_SEARCH_ENDPOINT)


async def fetch_user_blogs(
    transport: Transport,
    page: int,
    limit: int,
    *,
    draft: bool,
    query: str = "",
    deleted_doc_count: int = 0,
) -> PageData:
    """The viewer's own published blogs or drafts."""
    response = await transport.request_json(
        "POST",
        _USER_BLOGS_ENDPOINT,
        {
            "page": page,
            "draft": draft,
            "query": query,
            "limit": limit,
            "deletedDocCount": deleted_doc_count,
        },
    )
    return parse_page(
        unwrap_list(response, "blogs", endpoint=_USER_BLOGS_ENDPOINT),
        BlogSummary,
        endpoint=_USER_BLOGS_ENDPOINT,
    )


async def delete_blog(transport: Transport, blog_id: str) -> None:
    await transport.request_json("POST", _DELETE_ENDPOINT, {"blog_id": blog_id})
    _logger.debug("Deleted blog %s", blog_id)
