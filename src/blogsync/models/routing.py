"""Route access decisions."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class DecisionKind(StrEnum):
    RENDER = "render"
    PLACEHOLDER = "placeholder"
    REDIRECT = "redirect"


class RouteDecision(BaseModel):
    """Outcome of a route access check.

    ``target``, ``preserve_location`` and ``return_to`` are only meaningful
    for redirects. ``return_to`` is the originally requested location the
    viewer should come back to after signing in.
    """

    model_config = ConfigDict(frozen=True)

    kind: DecisionKind
    target: str | None = None
    preserve_location: bool = False
    return_to: str | None = None

    @classmethod
    def render(cls) -> RouteDecision:
        return cls(kind=DecisionKind.RENDER)

    @classmethod
    def placeholder(cls) -> RouteDecision:
        return cls(kind=DecisionKind.PLACEHOLDER)

    @classmethod
    def redirect(
        cls,
        target: str,
        *,
        preserve_location: bool,
        return_to: str | None = None,
    ) -> RouteDecision:
        return cls(
            kind=DecisionKind.REDIRECT,
            target=target,
            preserve_location=preserve_location,
            return_to=return_to if preserve_location else None,
        )

    @property
    def is_redirect(self) -> bool:
        return self.kind == DecisionKind.REDIRECT
