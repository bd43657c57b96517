"""Notification endpoints.

Endpoints:
  - /interactions/notifications                 (paged feed)
  - /interactions/all-notifications-count       (total for a filter)
  - /interactions/new-notifications             (lightweight unread poll)
  - /interactions/mark-all-notifications-read
  - /interactions/delete-notification
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from blogsync._api._common import parse_page, unwrap_list, unwrap_object
from blogsync._transport import Transport
from blogsync.exceptions import BlogTransportError
from blogsync.models.notification import Notification, NotificationPollStatus
from blogsync.models.stream import PageData

_logger = logging.getLogger(__name__)

_LIST_ENDPOINT = "/interactions/notifications"
_COUNT_ENDPOINT = "/interactions/all-notifications-count"
_POLL_ENDPOINT = "/interactions/new-notifications"
_MARK_ALL_READ_ENDPOINT = "/interactions/mark-all-notifications-read"
_DELETE_ENDPOINT = "/interactions/delete-notification"


async def fetch_notifications(
    transport: Transport,
    page: int,
    limit: int,
    *,
    filter: str = "all",
    deleted_doc_count: int = 0,
) -> PageData:
    response = await transport.request_json(
        "POST",
        _LIST_ENDPOINT,
        {"page": page, "filter": filter, "limit": limit, "deletedDocCount": deleted_doc_count},
    )
    return parse_page(
        unwrap_list(response, "notifications", endpoint=_LIST_ENDPOINT),
        Notification,
        endpoint=_LIST_ENDPOINT,
    )


async def count_notifications(transport: Transport, filter: str = "all") -> int:
    response = await transport.request_json("POST", _COUNT_ENDPOINT, {"filter": filter})
    data = unwrap_object(response, endpoint=_COUNT_ENDPOINT)
    try:
        return max(0, int(data.get("totalDocs", 0)))
    except (TypeError, ValueError):
        _logger.warning("Non-numeric totalDocs from %s: %r", _COUNT_ENDPOINT, data.get("totalDocs"))
        return 0


async def poll_notifications(transport: Transport) -> NotificationPollStatus:
    response = await transport.request_json("GET", _POLL_ENDPOINT)
    data = unwrap_object(response, endpoint=_POLL_ENDPOINT)
    try:
        return NotificationPollStatus.model_validate(data)
    except ValidationError as exc:
        raise BlogTransportError(f"Malformed poll status from {_POLL_ENDPOINT}: {exc}", endpoint=_POLL_ENDPOINT) from exc


async def mark_all_read(transport: Transport) -> None:
    await transport.request_json("POST", _MARK_ALL_READ_ENDPOINT)


async def delete_notification(transport: Transport, notification_id: str) -> None:
    await transport.request_json("POST", _DELETE_ENDPOINT, {"notification_id": notification_id})
