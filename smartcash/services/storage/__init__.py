"""
Storage Services Package

Provides the abstract interface and both implementations of transaction
storage: Supabase (remote) and a local key-value fallback.
"""

from typing import Optional

from smartcash.config import Settings, get_settings, remote_storage_configured
from smartcash.services.storage.interface import (
    ConnectionError,
    StorageError,
    TransactionStorageInterface,
)
from smartcash.services.storage.local_store import (
    SESSION_KEY,
    TRANSACTIONS_KEY,
    LocalKeyValueStore,
    LocalTransactionStorage,
)
from smartcash.services.storage.supabase_store import (
    SupabaseClient,
    SupabaseTransactionStorage,
)


def create_transaction_storage(
    settings: Optional[Settings] = None,
) -> TransactionStorageInterface:
    """Supabase when it is configured, local storage otherwise."""
    settings = settings or get_settings()

    if remote_storage_configured(settings):
        return SupabaseTransactionStorage(SupabaseClient(settings.supabase))

    app_settings = settings.app
    return LocalTransactionStorage(
        LocalKeyValueStore(app_settings.local_storage_path),
        seed_demo_data=app_settings.seed_demo_data,
    )


__all__ = [
    # Interface
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "StorageError",
    # Local implementation
    "LocalKeyValueStore",
    "LocalTransactionStorage",
    "SESSION_KEY",
    "TRANSACTIONS_KEY",
    # Supabase implementation
    "SupabaseClient",
    "SupabaseTransactionStorage",
    # Factory
    "create_transaction_storage",
]
