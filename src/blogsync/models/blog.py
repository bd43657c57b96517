"""Blog and user listing records."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, Field, model_validator

from blogsync.models._base import ApiModel


class BlogSummary(ApiModel):
    """A blog card as returned by the listing endpoints."""

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    blog_id: str | None = Field(default=None, validation_alias=AliasChoices("blog_id", "blogId"))
    title: str = ""
    description: str | None = Field(default=None, validation_alias=AliasChoices("des", "description"))
    banner: str | None = None
    tags: tuple[str, ...] = ()
    category: str | None = None
    author_username: str | None = None
    draft: bool = False
    published_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("publishedAt", "published_at"),
    )

    @model_validator(mode="before")
    @classmethod
    def _flatten_author(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        author = values.get("author")
        if isinstance(author, dict) and "author_username" not in values:
            personal = author.get("personal_info")
            source = personal if isinstance(personal, dict) else author
            username = source.get("username")
            if username:
                values = {**values, "author_username": username}
        return values


class UserSummary(ApiModel):
    """A user row from user search."""

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    username: str = ""
    fullname: str | None = None
    profile_img: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_personal_info(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        personal = values.get("personal_info")
        if not isinstance(personal, dict):
            return values
        merged = {key: value for key, value in personal.items() if key not in values}
        merged.update(values)
        return merged
