# cuisineo/app/infra/identity/base.py
"""
Abstract interface for the identity gateway (hosted authentication).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from cuisineo.app.domain.models import Identity

IdentityListener = Callable[[Optional[Identity]], None]
Unsubscribe = Callable[[], None]


class IdentityGateway(ABC):
    """
    Issues and validates credentials and keeps the authenticated session.

    Implementations must translate provider errors into AuthFailedError or
    GatewayUnavailableError before they leave the adapter.
    """

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    def sign_in(self, email: str, password: str) -> Identity:
        pass

    @abstractmethod
    def sign_out(self) -> None:
        pass

    @abstractmethod
    def current_identity(self) -> Optional[Identity]:
        """Identity of the session the gateway currently holds, if any."""
        pass

    @abstractmethod
    def on_change(self, listener: IdentityListener) -> Unsubscribe:
        """
        Subscribe to session changes.

        Args:
            listener: Called with the new identity (or None after sign-out)

        Returns:
            A callable that removes the subscription
        """
        pass
