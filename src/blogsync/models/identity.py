"""Viewer identity and persisted credential models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class Role(StrEnum):
    GUEST = "guest"
    MEMBER = "member"
    BLOGGER = "blogger"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Any) -> Role:
        """Map a wire role to a :class:`Role`.

        The API calls ordinary accounts ``"user"``; unknown or missing
        roles fall back to guest.
        """
        if isinstance(value, Role):
            return value
        text = str(value or "").strip().lower()
        if text == "user":
            return cls.MEMBER
        try:
            return cls(text)
        except ValueError:
            return cls.GUEST


class LoadingState(StrEnum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


class Identity(BaseModel):
    """Resolved viewer record.

    Parameters
    ----------
    id : str or None
        Account id; ``None`` for guests and unresolved identities.
    role : Role
        Access role used for route gating.
    loading_state : LoadingState
        Where the session bootstrap stands.
    username : str or None
        Public handle of the account.
    email : str or None
        Account email, when the API returned one.
    error : str or None
        Reason for a ``failed`` resolution.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str | None = None
    role: Role = Role.GUEST
    loading_state: LoadingState = LoadingState.PENDING
    username: str | None = None
    email: str | None = None
    error: str | None = None

    @classmethod
    def pending(cls) -> Identity:
        return cls()

    @classmethod
    def guest(cls) -> Identity:
        return cls(loading_state=LoadingState.RESOLVED)

    @classmethod
    def failed(cls, message: str) -> Identity:
        return cls(loading_state=LoadingState.FAILED, error=message)

    @classmethod
    def from_user(cls, user: dict[str, Any]) -> Identity:
        """Build a resolved identity from an API user record.

        Raises :class:`ValueError` when the record has no account id.
        """
        personal = user.get("personal_info") if isinstance(user.get("personal_info"), dict) else {}
        user_id = user.get("_id") or user.get("id") or user.get("user_id")
        if not user_id:
            raise ValueError("user record has no id")
        return cls(
            id=str(user_id),
            role=Role.parse(user.get("role")),
            loading_state=LoadingState.RESOLVED,
            username=user.get("username") or personal.get("username"),
            email=user.get("email") or personal.get("email"),
        )

    @property
    def is_pending(self) -> bool:
        return self.loading_state == LoadingState.PENDING

    @property
    def is_authenticated(self) -> bool:
        """Signed in with a resolved, non-guest role."""
        return self.loading_state == LoadingState.RESOLVED and self.role != Role.GUEST

    @property
    def is_creator(self) -> bool:
        return self.role in (Role.BLOGGER, Role.ADMIN)


class Credential(BaseModel):
    """Persisted sign-in credential: bearer token plus the cached user record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    access_token: str = Field(validation_alias=AliasChoices("access_token", "accessToken", "token"))
    user: dict[str, Any] = Field(default_factory=dict)

    @field_validator("access_token")
    @classmethod
    def _non_empty(cls, value: str) -> str:
        token = value.strip()
        if not token:
            raise ValueError("access_token must be non-empty")
        return token

    @classmethod
    def from_sign_in(cls, payload: dict[str, Any]) -> Credential:
        """Split a sign-in response into token and user record."""
        user = {key: value for key, value in payload.items() if key != "access_token"}
        return cls(access_token=payload.get("access_token", ""), user=user)

    @property
    def username(self) -> str | None:
        personal = self.user.get("personal_info")
        if isinstance(personal, dict) and personal.get("username"):
            return str(personal["username"])
        value = self.user.get("username")
        return str(value) if value else None
