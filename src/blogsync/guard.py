"""Role-gated route access."""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection
from enum import StrEnum

from blogsync.identity import IdentityResolver
from blogsync.models.identity import Identity, Role
from blogsync.models.routing import DecisionKind, RouteDecision
from blogsync.state.policy import evaluate_policy

_logger = logging.getLogger(__name__)


class GuardStatus(StrEnum):
    PENDING = "pending"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"
    REDIRECTED = "redirected"


_TERMINAL: frozenset[GuardStatus] = frozenset({GuardStatus.AUTHORIZED, GuardStatus.REDIRECTED})


def _status_for(decision: RouteDecision) -> GuardStatus:
    if decision.kind == DecisionKind.PLACEHOLDER:
        return GuardStatus.PENDING
    if decision.kind == DecisionKind.RENDER:
        return GuardStatus.AUTHORIZED
    if decision.preserve_location:
        return GuardStatus.UNAUTHENTICATED
    return GuardStatus.UNAUTHORIZED


class RouteGuard:
    """Access state machine for one mounted protected view.

    The guard follows identity changes until it reaches ``authorized`` or
    the caller reports (via :meth:`mark_redirected`) that it followed a
    redirect. Navigation itself is always left to the caller.
    """

    def __init__(
        self,
        required_roles: Collection[Role],
        resolver: IdentityResolver,
        *,
        location: str | None = None,
        on_decision: Callable[[RouteDecision], None] | None = None,
    ) -> None:
        self._required_roles = frozenset(required_roles)
        self._resolver = resolver
        self._location = location
        self._on_decision = on_decision
        self._status = GuardStatus.PENDING
        self._decision = RouteDecision.placeholder()
        self._unsubscribe: Callable[[], None] | None = resolver.subscribe(self._on_identity)
        self._evaluate(resolver.identity)

    @property
    def status(self) -> GuardStatus:
        return self._status

    @property
    def decision(self) -> RouteDecision:
        return self._decision

    @property
    def is_terminal(self) -> bool:
        return self._status in _TERMINAL

    def mark_redirected(self) -> None:
        """Record that the caller navigated away for the current redirect."""
        if not self._decision.is_redirect:
            raise RuntimeError("no redirect to follow")
        self._status = GuardStatus.REDIRECTED
        self.close()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_identity(self, identity: Identity) -> None:
        if self.is_terminal:
            return
        self._evaluate(identity)

    def _evaluate(self, identity: Identity) -> None:
        decision = evaluate_policy(identity, self._required_roles, location=self._location)
        self._status = _status_for(decision)
        changed = decision != self._decision
        self._decision = decision
        if self._status == GuardStatus.AUTHORIZED:
            self.close()
        if changed:
            _logger.debug("Route guard %s -> %s", sorted(self._required_roles), decision.kind)
            if self._on_decision is not None:
                self._on_decision(decision)
