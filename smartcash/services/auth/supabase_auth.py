"""
Supabase Auth Implementation

Thin wrapper around the Supabase auth client. Provider errors are passed
through as AuthError with the provider's own message; we do not try to
categorise them.
"""

from typing import Callable, Optional

from smartcash.models.session import Authenticated, Unauthenticated
from smartcash.services.auth.interface import (
    AnySession,
    AuthError,
    AuthServiceInterface,
    SessionCallback,
)
from smartcash.services.storage.supabase_store import SupabaseClient


def _error_message(error: Exception) -> str:
    message = getattr(error, "message", None)
    return str(message) if message else str(error)


def session_from_supabase(session) -> AnySession:
    """Map a Supabase session object (or None) onto a Session variant."""
    user = getattr(session, "user", None) if session is not None else None
    if user is None or not getattr(user, "email", None):
        return Unauthenticated()
    return Authenticated(user_id=str(user.id), email=user.email)


class SupabaseAuthService(AuthServiceInterface):
    """Supabase implementation of the auth service."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or SupabaseClient()

    async def get_session(self) -> AnySession:
        try:
            session = self._client.auth.get_session()
        except Exception as e:
            raise AuthError(_error_message(e))
        return session_from_supabase(session)

    async def sign_up(self, email: str, password: str) -> AnySession:
        try:
            response = self._client.auth.sign_up(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthError(_error_message(e))
        # No session means email confirmation is pending
        return session_from_supabase(response.session)

    async def sign_in(self, email: str, password: str) -> Authenticated:
        try:
            response = self._client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except Exception as e:
            raise AuthError(_error_message(e))

        session = session_from_supabase(response.session)
        if not isinstance(session, Authenticated):
            raise AuthError("Sign-in did not return a session")
        return session

    async def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except Exception as e:
            raise AuthError(_error_message(e))

    async def reset_password(self, email: str) -> None:
        try:
            self._client.auth.reset_password_for_email(email)
        except Exception as e:
            raise AuthError(_error_message(e))

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        subscription = self._client.auth.on_auth_state_change(
            lambda _event, session: callback(session_from_supabase(session))
        )
        return subscription.unsubscribe
