"""Viewer identity resolution and credential persistence."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from blogsync.exceptions import AuthResolutionError, BlogAuthenticationError, BlogTransportError
from blogsync.models.identity import Credential, Identity

_logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Persisted credential (the token store)."""

    def get(self) -> Credential | None:
        ...

    def set(self, credential: Credential) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryCredentialStore:
    def __init__(self, credential: Credential | None = None) -> None:
        self._credential = credential

    def get(self) -> Credential | None:
        return self._credential

    def set(self, credential: Credential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


class FileCredentialStore:
    """Credential persisted as a JSON file.

    An unreadable or malformed file is treated as no credential and
    removed, so a corrupt entry never lingers.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def get(self) -> Credential | None:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return Credential.model_validate(json.loads(text))
        except (json.JSONDecodeError, ValidationError):
            _logger.warning("Discarding malformed credential file %s", self._path)
            self.clear()
            return None

    def set(self, credential: Credential) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(credential.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


IdentityVerifier = Callable[[Credential], Awaitable[Identity]]
IdentityListener = Callable[[Identity], None]


class IdentityResolver:
    """Resolve and track the current viewer.

    The identity starts ``pending`` and moves to ``resolved`` or ``failed``
    exactly once per bootstrap; subscribers see that transition and every
    later change (sign-in, sign-out, profile/role update) exactly once.

    *verifier* checks a stored credential against the server. It raises
    :class:`~blogsync.exceptions.BlogAuthenticationError` for an invalid or
    expired credential (the viewer becomes a guest and the credential is
    purged) and :class:`~blogsync.exceptions.BlogTransportError` when the
    server cannot be reached (the identity becomes ``failed``).
    """

    def __init__(self, store: CredentialStore, verifier: IdentityVerifier) -> None:
        self._store = store
        self._verifier = verifier
        self._identity = Identity.pending()
        self._listeners: list[IdentityListener] = []
        self._bootstrap: asyncio.Task[Identity] | None = None
        self._generation = 0
        self.last_error: AuthResolutionError | None = None

    @property
    def identity(self) -> Identity:
        return self._identity

    @property
    def credential(self) -> Credential | None:
        return self._store.get()

    @property
    def token(self) -> str | None:
        credential = self._store.get()
        return credential.access_token if credential is not None else None

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_identity(self, identity: Identity) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        for listener in list(self._listeners):
            listener(identity)

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def resolve(self) -> Identity:
        """Wait for the session bootstrap (single-flight) and return the current identity.

        Sign-in and sign-out after the bootstrap are reflected here; the
        bootstrap's own result is not replayed.
        """
        if self._bootstrap is None:
            self._bootstrap = asyncio.ensure_future(self._run_bootstrap())
        await asyncio.shield(self._bootstrap)
        return self._identity

    async def retry(self) -> Identity:
        """Start a new bootstrap after a failed resolution."""
        if self._bootstrap is not None and not self._bootstrap.done():
            await asyncio.shield(self._bootstrap)
            return self._identity
        self._bootstrap = None
        self._set_identity(Identity.pending())
        return await self.resolve()

    async def _run_bootstrap(self) -> Identity:
        generation = self._generation
        credential = self._store.get()
        if credential is None:
            identity = Identity.guest()
        else:
            identity = await self._verify(credential, generation)
        if generation != self._generation:
            # Settled by a sign-in or sign-out while verifying.
            return self._identity
        self._set_identity(identity)
        return identity

    async def _verify(self, credential: Credential, generation: int) -> Identity:
        try:
            identity = await self._verifier(credential)
        except BlogAuthenticationError as exc:
            _logger.info("Stored credential rejected, signing out: %s", exc)
            if generation == self._generation:
                self._store.clear()
            return Identity.guest()
        except BlogTransportError as exc:
            self.last_error = AuthResolutionError(f"identity resolution failed: {exc}")
            _logger.warning("Identity resolution failed: %s", exc)
            return Identity.failed(str(exc))
        self.last_error = None
        return identity

    # ------------------------------------------------------------------
    # Sign-in / sign-out events
    # ------------------------------------------------------------------

    def establish(self, credential: Credential) -> Identity:
        """Persist *credential* from a successful sign-in and adopt its user."""
        try:
            identity = Identity.from_user(credential.user)
        except ValueError as exc:
            raise BlogAuthenticationError(f"sign-in response has no usable user: {exc}") from exc
        self._generation += 1
        self._store.set(credential)
        self.last_error = None
        self._set_identity(identity)
        return identity

    def sign_out(self) -> None:
        """Purge the credential and become a guest."""
        self._generation += 1
        self._store.clear()
        self._set_identity(Identity.guest())

    def update_user(self, **fields: Any) -> Identity:
        """Merge *fields* into the stored user record (profile or role change)."""
        credential = self._store.get()
        if credential is None:
            raise BlogAuthenticationError("not signed in")
        updated = credential.model_copy(update={"user": {**credential.user, **fields}})
        identity = Identity.from_user(updated.user)
        self._store.set(updated)
        self._set_identity(identity)
        return identity
