"""
Tests for the storage adapters.

The local adapter runs against a temporary file. The Supabase adapter runs
against a mocked client; no network calls are made.
"""

import asyncio
import json
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from smartcash.config import AppSettings, SupabaseSettings
from smartcash.models.transaction import Category, NewTransaction, TransactionType
from smartcash.services.storage import (
    ConnectionError,
    LocalKeyValueStore,
    LocalTransactionStorage,
    StorageError,
    SupabaseClient,
    SupabaseTransactionStorage,
    TRANSACTIONS_KEY,
)


def new_transaction(**overrides) -> NewTransaction:
    fields = {
        "description": "Supermercado",
        "amount": Decimal("450.50"),
        "date": date(2024, 5, 12),
        "category": Category.FOOD,
        "type": TransactionType.EXPENSE,
    }
    fields.update(overrides)
    return NewTransaction(**fields)


@pytest.fixture
def kv_store(tmp_path):
    return LocalKeyValueStore(str(tmp_path / "local_storage.json"))


class TestLocalKeyValueStore:
    """Tests for the string slots."""

    def test_missing_file_reads_as_empty(self, kv_store):
        assert kv_store.get("anything") is None

    def test_set_get_delete(self, kv_store):
        kv_store.set("a", "1")
        kv_store.set("b", "2")
        assert kv_store.get("a") == "1"
        kv_store.delete("a")
        assert kv_store.get("a") is None
        assert kv_store.get("b") == "2"

    def test_corrupt_file_raises_storage_error(self, kv_store):
        kv_store.path.write_text("{not json", encoding="utf-8")
        with pytest.raises(StorageError):
            kv_store.get("a")


class TestLocalTransactionStorage:
    """Tests for the local fallback adapter."""

    def test_seeds_demo_data_on_first_read(self, kv_store):
        """Demo mode starts with the five demo transactions."""
        storage = LocalTransactionStorage(kv_store, seed_demo_data=True)
        transactions = asyncio.run(storage.list_transactions())
        assert len(transactions) == 5
        assert kv_store.get(TRANSACTIONS_KEY) is not None

    def test_no_seed_when_disabled(self, kv_store):
        storage = LocalTransactionStorage(kv_store)
        assert asyncio.run(storage.list_transactions()) == []

    def test_insert_assigns_unique_ids(self, kv_store):
        """The local adapter generates the id."""
        storage = LocalTransactionStorage(kv_store)
        first = asyncio.run(storage.insert_transaction(new_transaction()))
        second = asyncio.run(storage.insert_transaction(new_transaction()))
        assert first.id and second.id
        assert first.id != second.id

    def test_list_is_newest_first_and_filtered_by_email(self, kv_store):
        """Reads keep only the current user's rows when an email is given."""
        storage = LocalTransactionStorage(kv_store)
        asyncio.run(storage.insert_transaction(
            new_transaction(date=date(2024, 5, 1), user_email="ana@example.com")
        ))
        asyncio.run(storage.insert_transaction(
            new_transaction(date=date(2024, 5, 9), user_email="ana@example.com")
        ))
        asyncio.run(storage.insert_transaction(
            new_transaction(user_email="bia@example.com")
        ))

        mine = asyncio.run(storage.list_transactions(user_email="ana@example.com"))
        assert [t.date for t in mine] == [date(2024, 5, 9), date(2024, 5, 1)]
        assert len(asyncio.run(storage.list_transactions())) == 3

    def test_delete(self, kv_store):
        storage = LocalTransactionStorage(kv_store)
        stored = asyncio.run(storage.insert_transaction(new_transaction()))
        assert asyncio.run(storage.delete_transaction(stored.id)) is True
        assert asyncio.run(storage.list_transactions()) == []

    def test_delete_unknown_id_returns_false(self, kv_store):
        storage = LocalTransactionStorage(kv_store, seed_demo_data=True)
        assert asyncio.run(storage.delete_transaction("does-not-exist")) is False
        assert len(asyncio.run(storage.list_transactions())) == 5

    def test_malformed_rows_are_skipped(self, kv_store):
        """One bad row does not hide the others."""
        kv_store.set(TRANSACTIONS_KEY, json.dumps([
            {"id": "1", "description": "Ok", "amount": "10", "date": "2024-05-10",
             "category": "Outros", "type": "expense"},
            {"id": "2", "description": "Bad", "amount": "-10"},
        ]))
        storage = LocalTransactionStorage(kv_store)
        assert [t.id for t in asyncio.run(storage.list_transactions())] == ["1"]

    def test_stored_list_that_is_not_a_list(self, kv_store):
        kv_store.set(TRANSACTIONS_KEY, json.dumps({"oops": True}))
        storage = LocalTransactionStorage(kv_store)
        with pytest.raises(StorageError):
            asyncio.run(storage.list_transactions())


def make_supabase_mock():
    """Mocked supabase Client whose query builder methods chain."""
    builder = MagicMock()
    for method in ("select", "eq", "order", "insert", "delete"):
        getattr(builder, method).return_value = builder
    client = MagicMock()
    client.table.return_value = builder
    return client, builder


@pytest.fixture
def supabase_settings():
    return SupabaseSettings(url="https://project.supabase.co", anon_key="anon-key")


class TestSupabaseTransactionStorage:
    """Tests for the Supabase adapter."""

    def test_list_filters_by_user_and_orders_by_date(self, supabase_settings):
        client, builder = make_supabase_mock()
        builder.execute.return_value = MagicMock(data=[
            {"id": 7, "description": "Aluguel", "amount": 1500, "date": "2024-05-10",
             "category": "Moradia", "type": "expense", "tags": None,
             "user_id": "u1", "user_email": "ana@example.com"},
        ])
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings, client))

        transactions = asyncio.run(storage.list_transactions(user_id="u1"))

        client.table.assert_called_with("transactions")
        builder.select.assert_called_once_with("*")
        builder.eq.assert_called_once_with("user_id", "u1")
        builder.order.assert_called_once_with("date", desc=True)
        assert transactions[0].id == "7"
        assert transactions[0].amount == Decimal("1500")

    def test_admin_read_has_no_user_filter(self, supabase_settings):
        client, builder = make_supabase_mock()
        builder.execute.return_value = MagicMock(data=[])
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings, client))

        assert asyncio.run(storage.list_transactions()) == []
        builder.eq.assert_not_called()

    def test_list_failure_is_attempted_once(self, supabase_settings):
        """Reads are attempt-once by default and raise with the provider message."""
        client, builder = make_supabase_mock()
        builder.execute.side_effect = RuntimeError("JWT expired")
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings, client))

        with pytest.raises(StorageError, match="JWT expired"):
            asyncio.run(storage.list_transactions(user_id="u1"))
        assert builder.execute.call_count == 1

    def test_insert_uses_the_server_row(self, supabase_settings):
        """The id comes from the row the server returns."""
        client, builder = make_supabase_mock()
        builder.execute.return_value = MagicMock(data=[
            {"id": "server-uuid", "description": "Supermercado", "amount": 450.5,
             "date": "2024-05-12", "category": "Alimentação", "type": "expense",
             "created_at": "2024-05-12T10:00:00+00:00"},
        ])
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings, client))

        stored = asyncio.run(storage.insert_transaction(
            new_transaction(user_id="u1", user_email="ana@example.com", tags=["mercado"])
        ))

        assert stored.id == "server-uuid"
        payload = builder.insert.call_args[0][0]
        assert "id" not in payload
        assert payload["amount"] == 450.5
        assert payload["date"] == "2024-05-12"
        assert payload["category"] == "Alimentação"
        assert payload["tags"] == ["mercado"]
        assert payload["user_id"] == "u1"

    def test_insert_without_returned_row_fails(self, supabase_settings):
        client, builder = make_supabase_mock()
        builder.execute.return_value = MagicMock(data=[])
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings, client))

        with pytest.raises(StorageError):
            asyncio.run(storage.insert_transaction(new_transaction()))

    def test_delete_by_id(self, supabase_settings):
        client, builder = make_supabase_mock()
        builder.execute.return_value = MagicMock(data=[{"id": "42"}])
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings, client))

        assert asyncio.run(storage.delete_transaction("42")) is True
        builder.eq.assert_called_once_with("id", "42")

    def test_delete_failure_raises_storage_error(self, supabase_settings):
        client, builder = make_supabase_mock()
        builder.execute.side_effect = RuntimeError("network down")
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings, client))

        with pytest.raises(StorageError, match="network down"):
            asyncio.run(storage.delete_transaction("42"))

    def test_connect_failure_is_a_connection_error(self, supabase_settings, monkeypatch):
        def boom(url, key):
            raise RuntimeError("invalid url")

        monkeypatch.setattr("smartcash.services.storage.supabase_store.create_client", boom)
        storage = SupabaseTransactionStorage(SupabaseClient(supabase_settings))

        with pytest.raises(ConnectionError):
            asyncio.run(storage.list_transactions())


class TestSettings:
    """Tests for configuration parsing used by storage selection."""

    def test_blank_supabase_values_are_rejected(self):
        with pytest.raises(ValueError):
            SupabaseSettings(url="  ", anon_key="key")

    def test_admin_disabled_without_passphrase(self):
        assert not AppSettings(admin_passphrase=None).admin_enabled
        assert not AppSettings(admin_passphrase="   ").admin_enabled
        assert AppSettings(admin_passphrase="Secret").admin_enabled
