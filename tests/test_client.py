from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from blogsync._constants import ResourceKind
from blogsync.client import BlogClient
from blogsync.config import BlogSyncConfig
from blogsync.dashboard import DashboardTab
from blogsync.exceptions import BlogSyncError
from blogsync.guard import GuardStatus
from blogsync.identity import MemoryCredentialStore
from blogsync.location import MemoryLocation
from blogsync.models.identity import Credential, Role
from blogsync.state.policy import CREATOR_ROLES


class _FakeTransport:
    def __init__(self, responses: Mapping[str, Any] | None = None) -> None:
        self.responses = dict(responses or {})
        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []

    async def request_json(self, method: str, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        self.calls.append((method, endpoint, dict(payload) if payload is not None else None))
        return self.responses.get(endpoint, {})


_SIGN_IN = {"access_token": "tok", "_id": "u1", "role": "blogger", "username": "ann"}


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    client = BlogClient(BlogSyncConfig())
    with pytest.raises(BlogSyncError):
        await client.fetch_page(ResourceKind.LATEST_BLOGS, 1, 5, {})


@pytest.mark.asyncio
async def test_bootstrap_without_credential_is_guest() -> None:
    async with BlogClient(transport=_FakeTransport()) as client:
        identity = await client.bootstrap()
    assert identity.role == Role.GUEST


@pytest.mark.asyncio
async def test_sign_in_establishes_identity_and_authorizes_guard() -> None:
    transport = _FakeTransport({"/auth/signin": _SIGN_IN})
    store = MemoryCredentialStore()
    async with BlogClient(transport=transport, credential_store=store) as client:
        guard = client.guard(CREATOR_ROLES, location="/dashboard")
        identity = await client.sign_in("ann@example.com", "pw")

        assert identity.role == Role.BLOGGER
        assert guard.status == GuardStatus.AUTHORIZED
        assert store.get() is not None

        await client.sign_out()
        assert store.get() is None
        assert client.identity.identity.role == Role.GUEST


@pytest.mark.asyncio
async def test_unauthorized_response_purges_credential() -> None:
    store = MemoryCredentialStore(Credential(access_token="tok", user={"_id": "u1", "role": "user"}))
    async with BlogClient(transport=_FakeTransport(), credential_store=store) as client:
        client._handle_unauthorized()  # type: ignore[attr-defined]

        assert store.get() is None
        assert client.identity.identity.role == Role.GUEST


@pytest.mark.asyncio
async def test_fetch_page_dispatches_per_resource_kind() -> None:
    transport = _FakeTransport()
    async with BlogClient(transport=transport) as client:
        await client.fetch_page(ResourceKind.LATEST_BLOGS, 1, 5, {})
        await client.fetch_page(ResourceKind.TAG_BLOGS, 2, 9, {"tag": "ai"})
        await client.fetch_page(ResourceKind.DRAFT_BLOGS, 1, 5, {"q": "rust", "deletedDocCount": "2"})
        await client.fetch_page(ResourceKind.NOTIFICATIONS, 1, 10, {"filter": "like", "deletedDocCount": "x"})
        await client.fetch_page(ResourceKind.SEARCH_USERS, 1, 10, {"q": "ann"})

    assert [call[1] for call in transport.calls] == [
        "/blogs/latest-blogs",
        "/blogs/search-blogs",
        "/blogs/user-written-blogs",
        "/interactions/notifications",
        "/users/search-users",
    ]
    assert transport.calls[1][2] == {"query": "", "tag": "ai", "page": 2, "limit": 9}
    assert transport.calls[2][2] == {"page": 1, "draft": True, "query": "rust", "limit": 5, "deletedDocCount": 2}
    assert transport.calls[3][2] == {"page": 1, "filter": "like", "limit": 10, "deletedDocCount": 0}


@pytest.mark.asyncio
async def test_stream_factories_use_configured_page_sizes() -> None:
    config = BlogSyncConfig(search_page_size=6)
    async with BlogClient(config, transport=_FakeTransport()) as client:
        location = MemoryLocation("/search?q=llm")
        stream, syncer = client.search(location)
        feed = client.tag_feed("ai")

        assert stream.state.page_size == 6
        assert stream.state.filter_signature == "q=llm"
        assert syncer.filters.q == "llm"
        assert feed.state.filter_signature == "tag=ai"
        assert client.stream(ResourceKind.LATEST_BLOGS).state.page_size == 5
        assert client.notifications is client.notifications


@pytest.mark.asyncio
async def test_dashboard_tabs_follow_identity() -> None:
    transport = _FakeTransport({"/auth/signin": {**_SIGN_IN, "role": "user"}})
    async with BlogClient(transport=transport) as client:
        await client.sign_in("ann@example.com", "pw")
        dashboard = client.dashboard(MemoryLocation("/dashboard"))

        assert dashboard.tabs == (DashboardTab.NOTIFICATIONS, DashboardTab.BLOGGER_APPLICATION)
        assert dashboard.stream(DashboardTab.NOTIFICATIONS) is client.notifications

        await dashboard.activate(DashboardTab.BLOGGER_APPLICATION)

    assert transport.calls[-1][:2] == ("GET", "/users/blogger-application-status")
