"""Deterministic access and paging policy.

This module contains the pure decision functions shared by guards and
streams. It performs no I/O and holds no state.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from blogsync._constants import HOME_PATH, SIGN_IN_PATH
from blogsync.exceptions import RaceDiscard
from blogsync.models.identity import Identity, LoadingState, Role
from blogsync.models.routing import RouteDecision

AUTHENTICATED_ROLES: frozenset[Role] = frozenset({Role.MEMBER, Role.BLOGGER, Role.ADMIN})
CREATOR_ROLES: frozenset[Role] = frozenset({Role.BLOGGER, Role.ADMIN})
ADMIN_ROLES: frozenset[Role] = frozenset({Role.ADMIN})


def evaluate_policy(
    identity: Identity,
    required_roles: Collection[Role],
    *,
    location: str | None = None,
) -> RouteDecision:
    """Decide what a viewer may see at a protected location.

    Policy:
    - Never redirect while the identity is pending.
    - Guests, and failed resolutions, go to sign-in and come back to
      *location* afterwards.
    - A signed-in role outside *required_roles* goes home silently.
    """
    if identity.loading_state == LoadingState.PENDING:
        return RouteDecision.placeholder()

    if identity.loading_state == LoadingState.FAILED or identity.role == Role.GUEST:
        return RouteDecision.redirect(SIGN_IN_PATH, preserve_location=True, return_to=location)

    if identity.role not in required_roles:
        return RouteDecision.redirect(HOME_PATH, preserve_location=False)

    return RouteDecision.render()


def has_more_after(returned_count: int, page_size: int) -> bool:
    """Has-more heuristic: a full page suggests another one exists.

    The API reports no totals for listings, so a final page that happens to
    be exactly full yields one extra, empty fetch.
    """
    return returned_count == page_size


def ensure_current_token(current_token: int, received_token: int) -> None:
    """Raise :class:`RaceDiscard` unless *received_token* is the latest issued."""
    if received_token != current_token:
        raise RaceDiscard(expected_token=current_token, received_token=received_token)


def default_item_key(item: Any) -> str | None:
    """Identity key used to skip duplicates when appending pages."""
    if isinstance(item, dict):
        value = item.get("_id", item.get("id"))
    else:
        value = getattr(item, "id", None)
    return str(value) if value is not None else None
