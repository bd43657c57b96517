from __future__ import annotations

import asyncio

import pytest

from blogsync.guard import GuardStatus, RouteGuard
from blogsync.identity import IdentityResolver, MemoryCredentialStore
from blogsync.models.identity import Credential, Identity
from blogsync.models.routing import DecisionKind, RouteDecision
from blogsync.state.policy import AUTHENTICATED_ROLES, CREATOR_ROLES


def _resolver(role: str | None, gate: asyncio.Event | None = None) -> IdentityResolver:
    async def _verify(credential: Credential) -> Identity:
        if gate is not None:
            await gate.wait()
        return Identity.from_user(credential.user)

    store = MemoryCredentialStore()
    if role is not None:
        store.set(Credential(access_token="t", user={"_id": "u1", "role": role, "username": "ann"}))
    return IdentityResolver(store, _verify)


@pytest.mark.asyncio
async def test_guard_stays_pending_until_identity_resolves() -> None:
    gate = asyncio.Event()
    resolver = _resolver("blogger", gate)
    decisions: list[RouteDecision] = []
    guard = RouteGuard(CREATOR_ROLES, resolver, on_decision=decisions.append)

    task = asyncio.create_task(resolver.resolve())
    await asyncio.sleep(0)
    assert guard.status == GuardStatus.PENDING
    assert guard.decision.kind == DecisionKind.PLACEHOLDER

    gate.set()
    await task

    assert guard.status == GuardStatus.AUTHORIZED
    assert guard.is_terminal
    assert [decision.kind for decision in decisions] == [DecisionKind.RENDER]


@pytest.mark.asyncio
async def test_guest_guard_redirects_to_sign_in_with_return_location() -> None:
    resolver = _resolver(None)
    guard = RouteGuard(AUTHENTICATED_ROLES, resolver, location="/dashboard")
    await resolver.resolve()

    assert guard.status == GuardStatus.UNAUTHENTICATED
    assert guard.decision.target == "/signin"
    assert guard.decision.return_to == "/dashboard"

    guard.mark_redirected()
    assert guard.status == GuardStatus.REDIRECTED

    # Closed: later identity changes are ignored.
    resolver.establish(Credential(access_token="t", user={"_id": "u1", "role": "admin"}))
    assert guard.status == GuardStatus.REDIRECTED


@pytest.mark.asyncio
async def test_member_on_creator_route_is_sent_home() -> None:
    resolver = _resolver("user")
    guard = RouteGuard(CREATOR_ROLES, resolver)
    await resolver.resolve()

    assert guard.status == GuardStatus.UNAUTHORIZED
    assert guard.decision.target == "/"
    assert guard.decision.preserve_location is False


@pytest.mark.asyncio
async def test_authorized_guard_ignores_later_sign_out() -> None:
    resolver = _resolver("admin")
    guard = RouteGuard(CREATOR_ROLES, resolver)
    await resolver.resolve()
    assert guard.status == GuardStatus.AUTHORIZED

    resolver.sign_out()
    assert guard.status == GuardStatus.AUTHORIZED


def test_mark_redirected_requires_redirect_decision() -> None:
    guard = RouteGuard(CREATOR_ROLES, _resolver(None))
    with pytest.raises(RuntimeError):
        guard.mark_redirected()
