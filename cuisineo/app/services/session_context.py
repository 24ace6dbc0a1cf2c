# cuisineo/app/services/session_context.py
"""
Observable session state for one browser.

The context is constructed once per browser and owned by the browser
registry; it is never an ambient singleton.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional

from cuisineo.app.domain.errors import SessionInitializingError
from cuisineo.app.domain.models import Identity
from cuisineo.app.infra.identity.base import IdentityGateway, Unsubscribe

logger = logging.getLogger(__name__)


class SessionContext:
    """
    Holds the current identity and the `initializing` flag.

    Responsibilities:
    - Subscribe to the gateway's change notifications between start() and close()
    - Delegate sign-up, sign-in and sign-out to the gateway
    """

    def __init__(self, gateway: IdentityGateway):
        self._gateway = gateway
        self._current_identity: Optional[Identity] = None
        self._initializing = True
        self._unsubscribe: Optional[Unsubscribe] = None
        self._lock = threading.Lock()

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._current_identity

    @property
    def initializing(self) -> bool:
        return self._initializing

    @property
    def is_authenticated(self) -> bool:
        return self._current_identity is not None

    def require_ready(self) -> "SessionContext":
        """
        Raises:
            SessionInitializingError: the gateway has not reported the initial session yet
        """
        if self._initializing:
            raise SessionInitializingError()
        return self

    def start(self) -> None:
        """
        Subscribe to the gateway and resolve the initial session.

        `initializing` stays true until the gateway reported the real
        session, so gated views never see a transient signed-out state.
        """
        with self._lock:
            if self._unsubscribe is not None:
                return
            self._unsubscribe = self._gateway.on_change(self._handle_change)

        self._handle_change(self._gateway.current_identity())

    def close(self) -> None:
        with self._lock:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()
            logger.debug("Session context unsubscribed from gateway")

    def sign_up(self, email: str, password: str) -> Identity:
        return self._gateway.sign_up(email, password)

    def sign_in(self, email: str, password: str) -> Identity:
        return self._gateway.sign_in(email, password)

    def sign_out(self) -> None:
        self._gateway.sign_out()

    def _handle_change(self, identity: Optional[Identity]) -> None:
        previous = self._current_identity
        self._current_identity = identity
        self._initializing = False

        if previous != identity:
            logger.info(
                "Auth state changed: %s",
                identity.id if identity else "signed out",
            )
