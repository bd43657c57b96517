"""blogsync - Async client-side state synchronization for a blogging API."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("blogsync")
except PackageNotFoundError:
    __version__ = "0+local"
from blogsync._constants import ResourceKind
from blogsync.client import BlogClient
from blogsync.config import BlogSyncConfig
from blogsync.dashboard import DashboardController, DashboardTab, StatusResource
from blogsync.exceptions import (
    AuthResolutionError,
    BlogAuthenticationError,
    BlogConfigError,
    BlogSyncError,
    BlogTransportError,
    FetchError,
    FetchErrorKind,
    FilterValidationError,
    RaceDiscard,
)
from blogsync.guard import GuardStatus, RouteGuard
from blogsync.identity import FileCredentialStore, IdentityResolver, MemoryCredentialStore
from blogsync.location import LocationState, MemoryLocation
from blogsync.models import (
    BlogSummary,
    BloggerApplicationStatus,
    Credential,
    DecisionKind,
    FilterSet,
    Identity,
    LoadingState,
    Notification,
    NotificationPollStatus,
    NotificationStreamState,
    NotificationType,
    PageData,
    Role,
    RouteDecision,
    StreamState,
    UserSummary,
)
from blogsync.notifications import NotificationSync
from blogsync.query import QuerySyncer
from blogsync.stream import PaginatedStream

__all__ = [
    "__version__",
    "AuthResolutionError",
    "BlogAuthenticationError",
    "BlogClient",
    "BlogConfigError",
    "BlogSummary",
    "BlogSyncConfig",
    "BlogSyncError",
    "BlogTransportError",
    "BloggerApplicationStatus",
    "Credential",
    "DashboardController",
    "DashboardTab",
    "DecisionKind",
    "FetchError",
    "FetchErrorKind",
    "FileCredentialStore",
    "FilterSet",
    "FilterValidationError",
    "GuardStatus",
    "Identity",
    "IdentityResolver",
    "LoadingState",
    "LocationState",
    "MemoryCredentialStore",
    "MemoryLocation",
    "Notification",
    "NotificationPollStatus",
    "NotificationStreamState",
    "NotificationSync",
    "NotificationType",
    "PageData",
    "PaginatedStream",
    "QuerySyncer",
    "RaceDiscard",
    "ResourceKind",
    "Role",
    "RouteDecision",
    "RouteGuard",
    "StatusResource",
    "StreamState",
    "UserSummary",
]
