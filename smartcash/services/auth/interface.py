"""
Abstract Auth Interface

Authentication itself is delegated: to Supabase Auth when it is configured,
or to a local mock session for local-login mode. This interface is the
seam the dashboard flow talks to, and it always answers with one of the
Session variants.
"""

from abc import ABC, abstractmethod
from typing import Callable, Union

from smartcash.models.session import Authenticated, Guest, Unauthenticated


AnySession = Union[Unauthenticated, Authenticated, Guest]
SessionCallback = Callable[[AnySession], None]


class AuthServiceInterface(ABC):
    """Session retrieval, sign-up/in/out and password reset."""

    @abstractmethod
    async def get_session(self) -> AnySession:
        """Current session, Unauthenticated if there is none."""
        pass

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> AnySession:
        """
        Create an account.

        Returns Unauthenticated when the provider wants the email confirmed
        before the first sign-in.

        Raises:
            AuthError: With the provider's message
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Authenticated:
        """
        Sign in with email and password.

        Raises:
            AuthError: With the provider's message
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        pass

    @abstractmethod
    async def reset_password(self, email: str) -> None:
        """Send a password-reset email."""
        pass

    @abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """
        Subscribe to session changes.

        Returns a function that removes the subscription.
        """
        pass


class AuthError(Exception):
    """Authentication provider rejected the request."""
    pass
