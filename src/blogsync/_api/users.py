"""User search and blogger application endpoints."""

from __future__ import annotations

from collections.abc import Sequence

from blogsync._api._common import parse_page, unwrap_list, unwrap_object
from blogsync._transport import Transport
from blogsync.models.blog import UserSummary
from blogsync.models.notification import BloggerApplicationStatus
from blogsync.models.stream import PageData

_SEARCH_ENDPOINT = "/users/search-users"
_APPLICATION_STATUS_ENDPOINT = "/users/blogger-application-status"
_APPLY_ENDPOINT = "/users/apply-blogger"


async def search_users(transport: Transport, query: str, page: int, limit: int) -> PageData:
    if not query:
        # The server requires a query; an empty search has no results.
        return PageData(items=(), returned_count=0)
    response = await transport.request_json("POST", _SEARCH_ENDPOINT, {"query": query, "page": page, "limit": limit})
    return parse_page(unwrap_list(response, "users", endpoint=_SEARCH_ENDPOINT), UserSummary, endpoint=_SEARCH_ENDPOINT)


async def get_blogger_application_status(transport: Transport) -> BloggerApplicationStatus:
    response = await transport.request_json("GET", _APPLICATION_STATUS_ENDPOINT)
    return BloggerApplicationStatus.model_validate(unwrap_object(response, endpoint=_APPLICATION_STATUS_ENDPOINT))


async def apply_for_blogger(transport: Transport, reason: str, writing_samples: Sequence[str] = ()) -> None:
    if not reason.strip():
        raise ValueError("reason must be non-empty")
    await transport.request_json(
        "POST",
        _APPLY_ENDPOINT,
        {"reason": reason.strip(), "writing_samples": list(writing_samples)},
    )
