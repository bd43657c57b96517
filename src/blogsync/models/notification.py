"""Notification records and poll status."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from blogsync.models._base import ApiModel


class NotificationType(StrEnum):
    LIKE = "like"
    COMMENT = "comment"
    REPLY = "reply"
    FOLLOW = "follow"
    MENTION = "mention"
    BLOGGER_REQUEST = "blogger_request"
    BLOG_FEATURE = "blog_feature"
    ROLE_UPDATE = "role_update"
    BLOG_APPROVAL = "blog_approval"
    ACCOUNT_STATUS = "account_status"
    BLOG_PUBLISHED = "blog_published"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> NotificationType:
        return cls.UNKNOWN


class Notification(ApiModel):
    """One entry of the viewer's notification feed."""

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    type: NotificationType = NotificationType.UNKNOWN
    seen: bool = False
    message: str | None = None
    created_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "created_at"),
    )

    @property
    def is_unread(self) -> bool:
        return not self.seen

    def with_seen(self, seen: bool) -> Notification:
        if self.seen == seen:
            return self
        return self.model_copy(update={"seen": seen})


class NotificationPollStatus(ApiModel):
    """Result of the lightweight unread poll.

    Older servers only answer ``new_notification_available``; in that case
    ``unread_count`` stays ``None`` and only the new-items flag is applied.
    """

    unread_count: int | None = Field(
        default=None,
        validation_alias=AliasChoices("unread_count", "unreadCount"),
    )
    newest_timestamp: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("newest_timestamp", "newestTimestamp"),
    )
    new_notification_available: bool = Field(
        default=False,
        validation_alias=AliasChoices("new_notification_available", "newNotificationAvailable"),
    )

    @field_validator("unread_count", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int | None:
        if value is None:
            return None
        return max(0, int(value))

    @property
    def has_new(self) -> bool:
        if self.unread_count is not None:
            return self.unread_count > 0 or self.new_notification_available
        return self.new_notification_available


class BloggerApplicationStatus(ApiModel):
    """The viewer's application for the blogger role."""

    status: str = "none"
    reason: str | None = None
    feedback: str | None = None
    submitted_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("createdAt", "submitted_at", "submittedAt"),
    )

    @field_validator("status", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> str:
        return str(value).strip().lower() or "none"

    @property
    def has_applied(self) -> bool:
        return self.status in ("pending", "approved", "rejected")
