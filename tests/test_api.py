from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from blogsync._api import auth, blogs, notifications, users
from blogsync._api._common import parse_page, unwrap_list
from blogsync.exceptions import BlogAuthenticationError, BlogTransportError, FetchError, FetchErrorKind
from blogsync.models.blog import BlogSummary
from blogsync.models.identity import Credential, Role
from blogsync.models.notification import NotificationType


class _RecordingTransport:
    def __init__(self, response: Any = None) -> None:
        self.response = {} if response is None else response
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []

    async def request_json(self, method: str, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        self.calls.append((method, endpoint, dict(payload) if payload is not None else None))
        return self.response


_BLOG = {
    "_id": "665f",
    "blog_id": "my-first-post-x1",
    "title": "My first post",
    "des": "Short description",
    "tags": ["ai", "python"],
    "category": "technology",
    "author": {"personal_info": {"username": "ann", "fullname": "Ann"}},
    "publishedAt": "2024-05-01T10:00:00.000Z",
}


@pytest.mark.parametrize(
    ("status_code", "kind"),
    [
        (None, FetchErrorKind.NETWORK),
        (404, FetchErrorKind.NOT_FOUND),
        (401, FetchErrorKind.FORBIDDEN),
        (403, FetchErrorKind.FORBIDDEN),
        (500, FetchErrorKind.UNKNOWN),
    ],
)
def test_fetch_error_classification(status_code: int | None, kind: FetchErrorKind) -> None:
    error = FetchError.from_exception(BlogTransportError("failed", status_code=status_code, endpoint="/x"))
    assert error.kind == kind
    assert error.status_code == status_code
    assert error.endpoint == "/x"


def test_blog_summary_flattens_author() -> None:
    blog = BlogSummary.model_validate(_BLOG)
    assert blog.id == "665f"
    assert blog.description == "Short description"
    assert blog.author_username == "ann"
    assert blog.tags == ("ai", "python")
    assert blog.published_at is not None
    assert blog.raw["title"] == "My first post"


def test_parse_page_skips_malformed_records_but_counts_them() -> None:
    page = parse_page([_BLOG, {"title": "no id"}], BlogSummary, endpoint="/blogs/search-blogs")
    assert len(page.items) == 1
    assert page.returned_count == 2


def test_unwrap_list_rejects_unexpected_shapes() -> None:
    assert unwrap_list({"blogs": [1]}, "blogs", endpoint="/x") == [1]
    assert unwrap_list({}, "blogs", endpoint="/x") == []
    with pytest.raises(BlogTransportError):
        unwrap_list("oops", "blogs", endpoint="/x")
    with pytest.raises(BlogTransportError):
        unwrap_list({"blogs": {"a": 1}}, "blogs", endpoint="/x")


@pytest.mark.asyncio
async def test_search_blogs_maps_filter_keys() -> None:
    transport = _RecordingTransport({"blogs": [_BLOG]})

    page = await blogs.search_blogs(transport, 2, 9, {"q": "llm", "tag": "ai", "author": "ann"})

    method, endpoint, payload = transport.calls[0]
    assert (method, endpoint) == ("POST", "/blogs/search-blogs")
    assert payload == {"query": "llm", "tag": "ai", "page": 2, "limit": 9, "author": "ann"}
    assert page.returned_count == 1


@pytest.mark.asyncio
async def test_user_blogs_payload() -> None:
    transport = _RecordingTransport({"blogs": []})

    page = await blogs.fetch_user_blogs(transport, 1, 5, draft=True, query="rust", deleted_doc_count=2)

    assert transport.calls[0][2] == {"page": 1, "draft": True, "query": "rust", "limit": 5, "deletedDocCount": 2}
    assert page.items == ()


@pytest.mark.asyncio
async def test_empty_user_search_skips_request() -> None:
    transport = _RecordingTransport()

    page = await users.search_users(transport, "", 1, 10)

    assert page.returned_count == 0
    assert transport.calls == []


@pytest.mark.asyncio
async def test_user_search_flattens_personal_info() -> None:
    transport = _RecordingTransport(
        {"users": [{"_id": "u1", "personal_info": {"username": "ann", "fullname": "Ann", "profile_img": "a.png"}}]}
    )

    page = await users.search_users(transport, "an", 1, 10)

    assert page.items[0].username == "ann"
    assert page.items[0].profile_img == "a.png"


@pytest.mark.asyncio
async def test_blogger_application_requires_reason() -> None:
    with pytest.raises(ValueError):
        await users.apply_for_blogger(_RecordingTransport(), "   ")


@pytest.mark.asyncio
async def test_application_status_defaults_to_none() -> None:
    status = await users.get_blogger_application_status(_RecordingTransport({"status": ""}))
    assert status.status == "none"
    assert status.has_applied is False


@pytest.mark.asyncio
async def test_notifications_payload_and_unknown_type() -> None:
    transport = _RecordingTransport({"notifications": [{"_id": "n1", "type": "brand_new", "seen": False}]})

    page = await notifications.fetch_notifications(transport, 3, 10, filter="comment", deleted_doc_count=1)

    assert transport.calls[0][2] == {"page": 3, "filter": "comment", "limit": 10, "deletedDocCount": 1}
    assert page.items[0].type == NotificationType.UNKNOWN
    assert page.items[0].is_unread


@pytest.mark.asyncio
async def test_count_notifications_reads_total_docs() -> None:
    assert await notifications.count_notifications(_RecordingTransport({"totalDocs": 12}), "all") == 12
    assert await notifications.count_notifications(_RecordingTransport({"totalDocs": "n/a"}), "all") == 0


@pytest.mark.asyncio
async def test_poll_accepts_flag_only_response() -> None:
    transport = _RecordingTransport({"new_notification_available": True})

    status = await notifications.poll_notifications(transport)

    assert transport.calls[0][:2] == ("GET", "/interactions/new-notifications")
    assert status.unread_count is None
    assert status.has_new is True


@pytest.mark.asyncio
async def test_malformed_poll_status_is_a_transport_error() -> None:
    transport = _RecordingTransport({"unread_count": "lots"})

    with pytest.raises(BlogTransportError) as exc_info:
        await notifications.poll_notifications(transport)

    assert exc_info.value.endpoint == "/interactions/new-notifications"


@pytest.mark.asyncio
async def test_sign_in_splits_token_and_user() -> None:
    transport = _RecordingTransport({"access_token": "tok", "_id": "u1", "role": "user", "username": "ann"})

    credential = await auth.sign_in(transport, "ann@example.com", "pw")

    assert credential.access_token == "tok"
    assert credential.user == {"_id": "u1", "role": "user", "username": "ann"}


@pytest.mark.asyncio
async def test_sign_in_without_token_is_rejected() -> None:
    with pytest.raises(BlogAuthenticationError):
        await auth.sign_in(_RecordingTransport({"_id": "u1"}), "ann@example.com", "pw")


@pytest.mark.asyncio
async def test_verify_credential_keeps_stored_role() -> None:
    transport = _RecordingTransport({"_id": "u1", "personal_info": {"username": "ann"}})
    credential = Credential(access_token="tok", user={"_id": "u1", "role": "blogger", "username": "ann"})

    identity = await auth.verify_credential(transport, credential)

    assert transport.calls[0] == ("POST", "/users/get-profile", {"username": "ann"})
    assert identity.role == Role.BLOGGER


@pytest.mark.asyncio
async def test_verify_credential_without_username_fails() -> None:
    with pytest.raises(BlogAuthenticationError):
        await auth.verify_credential(_RecordingTransport(), Credential(access_token="tok", user={"_id": "u1"}))
