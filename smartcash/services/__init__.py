"""Services package."""

from smartcash.services.auth import (
    AuthError,
    AuthServiceInterface,
    LocalAuthService,
    SupabaseAuthService,
    create_auth_service,
)
from smartcash.services.storage import (
    ConnectionError,
    LocalKeyValueStore,
    LocalTransactionStorage,
    StorageError,
    SupabaseClient,
    SupabaseTransactionStorage,
    TransactionStorageInterface,
    create_transaction_storage,
)

__all__ = [
    # Auth services
    "AuthError",
    "AuthServiceInterface",
    "LocalAuthService",
    "SupabaseAuthService",
    "create_auth_service",
    # Storage services
    "ConnectionError",
    "LocalKeyValueStore",
    "LocalTransactionStorage",
    "StorageError",
    "SupabaseClient",
    "SupabaseTransactionStorage",
    "TransactionStorageInterface",
    "create_transaction_storage",
]
