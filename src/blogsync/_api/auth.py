"""Sign-in and viewer verification endpoints.

Endpoints:
  - /auth/signin        (email/password sign-in)
  - /users/get-profile  (verify a stored credential by loading its profile)
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from blogsync._api._common import unwrap_object
from blogsync._transport import Transport
from blogsync.exceptions import BlogAuthenticationError
from blogsync.models.identity import Credential, Identity

_logger = logging.getLogger(__name__)

_SIGN_IN_ENDPOINT = "/auth/signin"
_PROFILE_ENDPOINT = "/users/get-profile"


async def sign_in(transport: Transport, email: str, password: str) -> Credential:
    """Exchange email/password for a credential."""
    response = await transport.request_json(
        "POST",
        _SIGN_IN_ENDPOINT,
        {"email": email, "password": password},
    )
    data = unwrap_object(response, endpoint=_SIGN_IN_ENDPOINT)
    try:
        credential = Credential.from_sign_in(data)
    except ValidationError as exc:
        raise BlogAuthenticationError(
            f"{_SIGN_IN_ENDPOINT} returned no access token",
            endpoint=_SIGN_IN_ENDPOINT,
        ) from exc
    _logger.debug("Signed in as %s", credential.username)
    return credential


async def verify_credential(transport: Transport, credential: Credential) -> Identity:
    """Confirm *credential* is still accepted and return the viewer identity.

    The transport sends the credential's bearer token; a 401 surfaces as
    :class:`BlogAuthenticationError`. Fields of the stored user record win
    over the public profile, which does not carry the role.
    """
    username = credential.username
    if not username:
        raise BlogAuthenticationError("stored credential has no username", endpoint=_PROFILE_ENDPOINT)
    response = await transport.request_json("POST", _PROFILE_ENDPOINT, {"username": username})
    profile = unwrap_object(response, endpoint=_PROFILE_ENDPOINT)
    try:
        return Identity.from_user({**profile, **credential.user})
    except ValueError as exc:
        raise BlogAuthenticationError(str(exc), endpoint=_PROFILE_ENDPOINT) from exc
