"""High-level async client for the blogging API."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence
from typing import Any

import aiohttp

from blogsync._api import auth as _auth_api
from blogsync._api import blogs as _blogs_api
from blogsync._api import notifications as _notifications_api
from blogsync._api import users as _users_api
from blogsync._constants import NOTIFICATION_FILTER_ALL, ResourceKind
from blogsync._transport import RestTransport, Transport
from blogsync.config import BlogSyncConfig
from blogsync.dashboard import DashboardController, DashboardTab, StatusResource
from blogsync.exceptions import BlogSyncError
from blogsync.guard import RouteGuard
from blogsync.identity import CredentialStore, FileCredentialStore, IdentityResolver, MemoryCredentialStore
from blogsync.location import Location
from blogsync.models.filters import FilterSet
from blogsync.models.identity import Credential, Identity, Role
from blogsync.models.notification import BloggerApplicationStatus, NotificationPollStatus
from blogsync.models.stream import PageData
from blogsync.notifications import NotificationSync
from blogsync.query import QuerySyncer
from blogsync.stream import PaginatedStream

_logger = logging.getLogger(__name__)


def _int_param(params: Mapping[str, str], key: str) -> int:
    try:
        return max(0, int(params.get(key, "0")))
    except ValueError:
        return 0


class BlogClient:
    """Async client and composition root for the sync layer.

    Usage::

        async with BlogClient(config) as client:
            identity = await client.bootstrap()
            stream, syncer = client.search(location)
            await stream.load_page(1)
    """

    def __init__(
        self,
        config: BlogSyncConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        credential_store: CredentialStore | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config or BlogSyncConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        if credential_store is None:
            if self._config.credential_path:
                credential_store = FileCredentialStore(self._config.credential_path)
            else:
                credential_store = MemoryCredentialStore()
        self._credentials = credential_store
        self._identity = IdentityResolver(credential_store, self._verify_credential)
        self._notifications: NotificationSync | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BlogClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = RestTransport(
                self._config,
                self._http_session,
                token_provider=self._current_token,
                on_unauthorized=self._handle_unauthorized,
            )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._notifications is not None:
            await self._notifications.stop_polling()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    @property
    def config(self) -> BlogSyncConfig:
        return self._config

    @property
    def identity(self) -> IdentityResolver:
        return self._identity

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise BlogSyncError("Client not initialized. Use 'async with BlogClient(...) as client:'")
        return self._transport

    def _current_token(self) -> str | None:
        credential = self._credentials.get()
        return credential.access_token if credential is not None else None

    def _handle_unauthorized(self) -> None:
        if self._credentials.get() is None:
            return
        _logger.info("Server rejected the credential; signing out")
        self._identity.sign_out()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def _verify_credential(self, credential: Credential) -> Identity:
        return await _auth_api.verify_credential(self._require_transport(), credential)

    async def bootstrap(self) -> Identity:
        """Resolve the viewer from the persisted credential."""
        return await self._identity.resolve()

    async def sign_in(self, email: str, password: str) -> Identity:
        credential = await _auth_api.sign_in(self._require_transport(), email, password)
        return self._identity.establish(credential)

    async def sign_out(self) -> None:
        if self._notifications is not None:
            await self._notifications.stop_polling()
            self._notifications = None
        self._identity.sign_out()

    def guard(self, required_roles: Collection[Role], *, location: str | None = None) -> RouteGuard:
        return RouteGuard(required_roles, self._identity, location=location)

    # ------------------------------------------------------------------
    # Page fetching
    # ------------------------------------------------------------------

    async def fetch_page(
        self,
        kind: str,
        page: int,
        page_size: int,
        params: Mapping[str, str],
    ) -> PageData:
        """Fetch one page of *kind*; the PageFetcher used by every stream."""
        transport = self._require_transport()
        resource = ResourceKind(kind)
        if resource == ResourceKind.LATEST_BLOGS:
            return await _blogs_api.fetch_latest_blogs(transport, page, page_size)
        if resource in (ResourceKind.SEARCH_BLOGS, ResourceKind.TAG_BLOGS):
            return await _blogs_api.search_blogs(transport, page, page_size, params)
        if resource == ResourceKind.SEARCH_USERS:
            return await _users_api.search_users(transport, params.get("q", ""), page, page_size)
        if resource in (ResourceKind.PUBLISHED_BLOGS, ResourceKind.DRAFT_BLOGS):
            return await _blogs_api.fetch_user_blogs(
                transport,
                page,
                page_size,
                draft=resource == ResourceKind.DRAFT_BLOGS,
                query=params.get("q", ""),
                deleted_doc_count=_int_param(params, "deletedDocCount"),
            )
        if resource == ResourceKind.NOTIFICATIONS:
            return await _notifications_api.fetch_notifications(
                transport,
                page,
                page_size,
                filter=params.get("filter", NOTIFICATION_FILTER_ALL),
                deleted_doc_count=_int_param(params, "deletedDocCount"),
            )
        raise ValueError(f"unsupported resource kind: {kind}")

    def _page_size(self, kind: ResourceKind) -> int:
        sizes = {
            ResourceKind.LATEST_BLOGS: self._config.latest_page_size,
            ResourceKind.SEARCH_BLOGS: self._config.search_page_size,
            ResourceKind.TAG_BLOGS: self._config.search_page_size,
            ResourceKind.SEARCH_USERS: self._config.user_search_page_size,
            ResourceKind.PUBLISHED_BLOGS: self._config.dashboard_page_size,
            ResourceKind.DRAFT_BLOGS: self._config.dashboard_page_size,
            ResourceKind.NOTIFICATIONS: self._config.notification_page_size,
        }
        return sizes[kind]

    # ------------------------------------------------------------------
    # Notification and dashboard endpoints
    # ------------------------------------------------------------------

    async def mark_all_notifications_read(self) -> None:
        await _notifications_api.mark_all_read(self._require_transport())

    async def delete_notification(self, notification_id: str) -> None:
        await _notifications_api.delete_notification(self._require_transport(), notification_id)

    async def poll_notifications(self) -> NotificationPollStatus:
        return await _notifications_api.poll_notifications(self._require_transport())

    async def count_notifications(self, filter: str) -> int:
        return await _notifications_api.count_notifications(self._require_transport(), filter)

    async def delete_blog(self, blog_id: str) -> None:
        await _blogs_api.delete_blog(self._require_transport(), blog_id)

    async def apply_for_blogger(self, reason: str, writing_samples: Sequence[str] = ()) -> None:
        await _users_api.apply_for_blogger(self._require_transport(), reason, writing_samples)

    async def get_blogger_application_status(self) -> BloggerApplicationStatus:
        return await _users_api.get_blogger_application_status(self._require_transport())

    # ------------------------------------------------------------------
    # Stream factories
    # ------------------------------------------------------------------

    def stream(self, kind: ResourceKind | str, filters: FilterSet | None = None) -> PaginatedStream[Any]:
        """A fresh stream for one mounted view."""
        resource = ResourceKind(kind)
        filters = filters or FilterSet()
        return PaginatedStream(
            resource,
            self,
            page_size=self._page_size(resource),
            params=filters.as_params(),
            signature=filters.signature,
        )

    def search(
        self,
        location: Location,
        kind: ResourceKind | str = ResourceKind.SEARCH_BLOGS,
    ) -> tuple[PaginatedStream[Any], QuerySyncer]:
        """A search stream bound to the URL's filters."""
        stream = self.stream(kind)
        syncer = QuerySyncer(location, [stream])
        syncer.start()
        return stream, syncer

    def tag_feed(self, tag: str) -> PaginatedStream[Any]:
        return self.stream(ResourceKind.TAG_BLOGS, FilterSet.from_mapping({"tag": tag}))

    @property
    def notifications(self) -> NotificationSync:
        """The viewer's notification stream, shared across views."""
        if self._notifications is None:
            self._notifications = NotificationSync(
                self,
                self,
                page_size=self._config.notification_page_size,
                poll_interval=self._config.notification_poll_interval,
            )
        return self._notifications

    def dashboard(self, location: Location | None = None) -> DashboardController:
        identity = self._identity.identity
        streams: dict[DashboardTab, PaginatedStream[Any]] = {DashboardTab.NOTIFICATIONS: self.notifications}
        if identity.is_creator:
            streams[DashboardTab.PUBLISHED] = self.stream(ResourceKind.PUBLISHED_BLOGS)
            streams[DashboardTab.DRAFTS] = self.stream(ResourceKind.DRAFT_BLOGS)
        status = StatusResource(self.get_blogger_application_status)
        return DashboardController(identity, streams, status, self, location=location)
