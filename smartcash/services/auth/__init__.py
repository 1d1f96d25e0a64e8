"""Auth services package."""

from typing import Optional

from smartcash.config import Settings, get_settings, remote_storage_configured
from smartcash.services.auth.interface import (
    AnySession,
    AuthError,
    AuthServiceInterface,
)
from smartcash.services.auth.local_auth import LocalAuthService, local_user_id
from smartcash.services.auth.supabase_auth import (
    SupabaseAuthService,
    session_from_supabase,
)
from smartcash.services.storage import LocalKeyValueStore, SupabaseClient


def create_auth_service(
    settings: Optional[Settings] = None,
    supabase_client: Optional[SupabaseClient] = None,
) -> AuthServiceInterface:
    """Supabase Auth when it is configured, local-login otherwise."""
    settings = settings or get_settings()

    if remote_storage_configured(settings):
        return SupabaseAuthService(supabase_client or SupabaseClient(settings.supabase))

    return LocalAuthService(LocalKeyValueStore(settings.app.local_storage_path))


__all__ = [
    "AnySession",
    "AuthError",
    "AuthServiceInterface",
    "LocalAuthService",
    "SupabaseAuthService",
    "create_auth_service",
    "local_user_id",
    "session_from_supabase",
]
