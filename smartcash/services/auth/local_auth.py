"""
Local Auth (local-login mode)

Used when Supabase is not configured. There is no account database: any
well-formed email with a long enough password signs in, and the resulting
session is kept in its own local storage slot so it survives a restart.

This is a convenience for running the dashboard offline, not
authentication in any meaningful sense.
"""

from typing import Callable
from uuid import NAMESPACE_URL, uuid5

import structlog
from pydantic import TypeAdapter, ValidationError

from smartcash.models.session import Authenticated, Session, Unauthenticated
from smartcash.services.auth.interface import (
    AnySession,
    AuthError,
    AuthServiceInterface,
    SessionCallback,
)
from smartcash.services.storage.local_store import SESSION_KEY, LocalKeyValueStore


MIN_PASSWORD_LENGTH = 6

logger = structlog.get_logger(__name__)

_session_adapter = TypeAdapter(Session)


def local_user_id(email: str) -> str:
    """Stable user id derived from the email."""
    return str(uuid5(NAMESPACE_URL, f"smartcash:{email}"))


class LocalAuthService(AuthServiceInterface):
    """Mock session persisted in the local key-value store."""

    def __init__(self, store: LocalKeyValueStore):
        self._store = store
        self._callbacks: list[SessionCallback] = []

    def _notify(self, session: AnySession) -> None:
        for callback in list(self._callbacks):
            callback(session)

    def _check_credentials(self, email: str, password: str) -> str:
        email = (email or "").strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise AuthError("Invalid email address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return email

    def _start_session(self, email: str) -> Authenticated:
        session = Authenticated(user_id=local_user_id(email), email=email)
        self._store.set(SESSION_KEY, session.model_dump_json())
        self._notify(session)
        return session

    async def get_session(self) -> AnySession:
        raw = self._store.get(SESSION_KEY)
        if raw is None:
            return Unauthenticated()
        try:
            return _session_adapter.validate_json(raw)
        except ValidationError:
            logger.warning("local_session_unreadable")
            return Unauthenticated()

    async def sign_up(self, email: str, password: str) -> AnySession:
        return self._start_session(self._check_credentials(email, password))

    async def sign_in(self, email: str, password: str) -> Authenticated:
        return self._start_session(self._check_credentials(email, password))

    async def sign_out(self) -> None:
        self._store.delete(SESSION_KEY)
        self._notify(Unauthenticated())

    async def reset_password(self, email: str) -> None:
        # Nothing to reset without an account database
        logger.info("local_password_reset_ignored", email=email)

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe
