from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from supabase import AuthApiError, AuthError, AuthWeakPasswordError, Client

from cuisineo.app.domain.errors import AuthFailedError, GatewayUnavailableError
from cuisineo.app.domain.models import AuthFailureReason, Identity
from cuisineo.app.infra.identity.base import IdentityGateway, IdentityListener, Unsubscribe

logger = logging.getLogger(__name__)

_TRANSPORT_ERRORS = (httpx.HTTPError, ConnectionError, TimeoutError)

_REASONS_BY_CODE: dict[str, AuthFailureReason] = {
    "invalid_credentials": AuthFailureReason.INVALID_CREDENTIALS,
    "user_not_found": AuthFailureReason.INVALID_CREDENTIALS,
    "user_already_exists": AuthFailureReason.EMAIL_ALREADY_REGISTERED,
    "email_exists": AuthFailureReason.EMAIL_ALREADY_REGISTERED,
    "email_address_invalid": AuthFailureReason.MALFORMED_EMAIL,
    "weak_password": AuthFailureReason.WEAK_PASSWORD,
}

# Older GoTrue servers answer without an error code.
_REASONS_BY_MESSAGE: list[tuple[str, AuthFailureReason]] = [
    ("invalid login credentials", AuthFailureReason.INVALID_CREDENTIALS),
    ("already registered", AuthFailureReason.EMAIL_ALREADY_REGISTERED),
    ("invalid format", AuthFailureReason.MALFORMED_EMAIL),
    ("password should be", AuthFailureReason.WEAK_PASSWORD),
]


def _identity_from_user(user: Any) -> Optional[Identity]:
    if user is None:
        return None
    return Identity(id=str(user.id), email=getattr(user, "email", None))


def _identity_from_session(session: Any) -> Optional[Identity]:
    if session is None:
        return None
    return _identity_from_user(getattr(session, "user", None))


def _reason_for(error: AuthApiError) -> AuthFailureReason:
    code = getattr(error, "code", None)
    if code and code in _REASONS_BY_CODE:
        return _REASONS_BY_CODE[code]

    message = (getattr(error, "message", None) or str(error)).lower()
    for fragment, reason in _REASONS_BY_MESSAGE:
        if fragment in message:
            return reason
    return AuthFailureReason.UNKNOWN


def translate_auth_error(operation: str, error: Exception) -> Exception:
    """Map a GoTrue/transport exception onto the closed error taxonomy."""
    if isinstance(error, AuthWeakPasswordError):
        return AuthFailedError(AuthFailureReason.WEAK_PASSWORD, str(error))

    status = getattr(error, "status", None)
    if isinstance(error, AuthApiError):
        if status and status >= 500:
            return GatewayUnavailableError(operation, str(error))
        return AuthFailedError(_reason_for(error), str(error))
    if isinstance(error, AuthError):
        if not status or status >= 500:
            return GatewayUnavailableError(operation, str(error))
        return AuthFailedError(AuthFailureReason.UNKNOWN, str(error))
    return GatewayUnavailableError(operation, str(error))


class SupabaseIdentityGateway(IdentityGateway):
    def __init__(self, client: Client):
        self._client = client

    def sign_up(self, email: str, password: str) -> Identity:
        try:
            response = self._client.auth.sign_up({"email": email, "password": password})
        except (AuthError, *_TRANSPORT_ERRORS) as error:
            logger.warning("Sign-up failed for %s: %s", email, error)
            raise translate_auth_error("sign_up", error) from error

        identity = _identity_from_user(response.user)
        if identity is None:
            raise AuthFailedError(AuthFailureReason.UNKNOWN, "sign-up returned no user")
        logger.info("User signed up: id=%s", identity.id)
        return identity

    def sign_in(self, email: str, password: str) -> Identity:
        try:
            response = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except (AuthError, *_TRANSPORT_ERRORS) as error:
            logger.warning("Sign-in failed for %s: %s", email, error)
            raise translate_auth_error("sign_in", error) from error

        identity = _identity_from_user(response.user)
        if identity is None:
            raise AuthFailedError(AuthFailureReason.INVALID_CREDENTIALS, "sign-in returned no user")
        logger.info("User signed in: id=%s", identity.id)
        return identity

    def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except (AuthError, *_TRANSPORT_ERRORS) as error:
            logger.warning("Sign-out failed: %s", error)
            raise translate_auth_error("sign_out", error) from error

    def current_identity(self) -> Optional[Identity]:
        try:
            session = self._client.auth.get_session()
        except (AuthError, *_TRANSPORT_ERRORS) as error:
            raise translate_auth_error("get_session", error) from error
        return _identity_from_session(session)

    def on_change(self, listener: IdentityListener) -> Unsubscribe:
        def _callback(event: Any, session: Any) -> None:
            logger.debug("Auth state changed: %s", event)
            listener(_identity_from_session(session))

        subscription = self._client.auth.on_auth_state_change(_callback)
        return subscription.unsubscribe
