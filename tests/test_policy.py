from __future__ import annotations

import pytest

from blogsync.exceptions import RaceDiscard
from blogsync.models.identity import Identity, LoadingState, Role
from blogsync.models.routing import DecisionKind
from blogsync.state.policy import (
    AUTHENTICATED_ROLES,
    CREATOR_ROLES,
    default_item_key,
    ensure_current_token,
    evaluate_policy,
    has_more_after,
)


def _identity(role: Role, state: LoadingState = LoadingState.RESOLVED) -> Identity:
    return Identity(id=None if role == Role.GUEST else "u1", role=role, loading_state=state)


@pytest.mark.parametrize("role", list(Role))
def test_pending_identity_always_gets_placeholder(role: Role) -> None:
    decision = evaluate_policy(_identity(role, LoadingState.PENDING), CREATOR_ROLES)
    assert decision.kind == DecisionKind.PLACEHOLDER


def test_guest_is_sent_to_sign_in_and_keeps_location() -> None:
    decision = evaluate_policy(Identity.guest(), AUTHENTICATED_ROLES, location="/dashboard?tab=drafts")
    assert decision.kind == DecisionKind.REDIRECT
    assert decision.target == "/signin"
    assert decision.preserve_location is True
    assert decision.return_to == "/dashboard?tab=drafts"


def test_failed_resolution_is_treated_like_guest() -> None:
    decision = evaluate_policy(Identity.failed("unreachable"), AUTHENTICATED_ROLES)
    assert decision.target == "/signin"
    assert decision.preserve_location is True


def test_role_outside_required_roles_goes_home_without_location() -> None:
    decision = evaluate_policy(_identity(Role.MEMBER), CREATOR_ROLES, location="/editor")
    assert decision.kind == DecisionKind.REDIRECT
    assert decision.target == "/"
    assert decision.preserve_location is False
    assert decision.return_to is None


@pytest.mark.parametrize("role", [Role.BLOGGER, Role.ADMIN])
def test_role_inside_required_roles_renders(role: Role) -> None:
    assert evaluate_policy(_identity(role), CREATOR_ROLES).kind == DecisionKind.RENDER


def test_has_more_only_after_full_page() -> None:
    assert has_more_after(9, 9) is True
    assert has_more_after(4, 9) is False
    assert has_more_after(0, 9) is False


def test_ensure_current_token_raises_for_superseded_token() -> None:
    ensure_current_token(3, 3)
    with pytest.raises(RaceDiscard) as exc_info:
        ensure_current_token(3, 2)
    assert exc_info.value.expected_token == 3
    assert exc_info.value.received_token == 2


def test_default_item_key_reads_dicts_and_models() -> None:
    class _Item:
        id = 7

    assert default_item_key({"_id": "b1"}) == "b1"
    assert default_item_key({"id": "b2"}) == "b2"
    assert default_item_key(_Item()) == "7"
    assert default_item_key({"title": "no id"}) is None
