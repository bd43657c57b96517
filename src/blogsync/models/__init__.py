"""Pydantic models for identity, filters, stream state and API records."""

from blogsync.models.blog import BlogSummary, UserSummary
from blogsync.models.filters import FilterSet, deserialize_filters, serialize_filters
from blogsync.models.identity import Credential, Identity, LoadingState, Role
from blogsync.models.notification import (
    BloggerApplicationStatus,
    Notification,
    NotificationPollStatus,
    NotificationType,
)
from blogsync.models.routing import DecisionKind, RouteDecision
from blogsync.models.stream import NotificationStreamState, PageData, StreamState

__all__ = [
    "BlogSummary",
    "BloggerApplicationStatus",
    "Credential",
    "DecisionKind",
    "FilterSet",
    "Identity",
    "LoadingState",
    "Notification",
    "NotificationPollStatus",
    "NotificationStreamState",
    "NotificationType",
    "PageData",
    "Role",
    "RouteDecision",
    "StreamState",
    "UserSummary",
    "deserialize_filters",
    "serialize_filters",
]
