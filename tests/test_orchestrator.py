"""
Integration tests for the dashboard flow.

Storage is an in-memory fake with failure injection; auth is the local
service on a temporary file; the insight agent is mocked.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from smartcash.config import AppSettings
from smartcash.models.activity import ActivityEventType
from smartcash.models.session import Authenticated, Guest, Unauthenticated
from smartcash.models.transaction import (
    AIInsight,
    Category,
    NewTransaction,
    Transaction,
    TransactionForm,
    TransactionType,
)
from smartcash.orchestrator import DashboardFlow
from smartcash.services.auth import LocalAuthService
from smartcash.services.storage import (
    LocalKeyValueStore,
    StorageError,
    TransactionStorageInterface,
)
from smartcash.validation import TransactionValidationError


class FakeStorage(TransactionStorageInterface):
    """In-memory storage with switchable failures."""

    def __init__(self, rows: Optional[list[Transaction]] = None):
        self.rows = list(rows or [])
        self.fail_list: Optional[str] = None
        self.fail_insert: Optional[str] = None
        self.fail_delete: Optional[str] = None
        self.list_calls = []
        self._next_id = 100

    async def list_transactions(self, user_id=None, user_email=None):
        self.list_calls.append((user_id, user_email))
        if self.fail_list:
            raise StorageError(self.fail_list)
        rows = [r for r in self.rows if user_id is None or r.user_id == user_id]
        return sorted(rows, key=lambda t: t.date, reverse=True)

    async def insert_transaction(self, transaction: NewTransaction) -> Transaction:
        if self.fail_insert:
            raise StorageError(self.fail_insert)
        self._next_id += 1
        stored = Transaction(id=str(self._next_id), **transaction.model_dump())
        self.rows.insert(0, stored)
        return stored

    async def delete_transaction(self, transaction_id: str) -> bool:
        if self.fail_delete:
            raise StorageError(self.fail_delete)
        before = len(self.rows)
        self.rows = [r for r in self.rows if r.id != transaction_id]
        return len(self.rows) != before


ANA = Authenticated(user_id="u-ana", email="ana@example.com")


def row(id, user=ANA, **overrides):
    fields = {
        "id": id,
        "description": f"Row {id}",
        "amount": Decimal("100"),
        "date": date(2024, 5, 10),
        "category": Category.OTHER,
        "type": TransactionType.EXPENSE,
        "user_id": user.user_id if user else None,
        "user_email": user.email if user else None,
    }
    fields.update(overrides)
    return Transaction(**fields)


@pytest.fixture
def storage():
    bia = Authenticated(user_id="u-bia", email="bia@example.com")
    return FakeStorage([
        row("1", amount=Decimal("5000"), type=TransactionType.INCOME,
            category=Category.INCOME, date=date(2024, 5, 5)),
        row("2", amount=Decimal("1500"), category=Category.HOUSING),
        row("3", amount=Decimal("120"), category=Category.LEISURE, date=date(2024, 5, 18)),
        row("9", user=bia, amount=Decimal("999"), category=Category.FOOD),
    ])


@pytest.fixture
def auth(tmp_path):
    return LocalAuthService(LocalKeyValueStore(str(tmp_path / "local_storage.json")))


@pytest.fixture
def activity_logger():
    return MagicMock()


def make_flow(storage, auth, activity_logger=None, insight_agent=None, **settings):
    return DashboardFlow(
        storage=storage,
        auth=auth,
        insight_agent=insight_agent,
        activity_logger=activity_logger,
        settings=AppSettings(**settings),
    )


def signed_in_flow(storage, auth, activity_logger=None, **settings):
    flow = make_flow(storage, auth, activity_logger, **settings)
    flow.session = ANA
    asyncio.run(flow.load_transactions())
    return flow


class TestSessionFlow:
    """Tests for session handling."""

    def test_restore_without_session(self, storage, auth):
        flow = make_flow(storage, auth)
        session = asyncio.run(flow.restore_session())
        assert isinstance(session, Unauthenticated)
        assert storage.list_calls == []

    def test_sign_in_loads_own_transactions(self, storage, auth, activity_logger):
        flow = make_flow(storage, auth, activity_logger)
        session = asyncio.run(flow.sign_in("ana@example.com", "secret1"))

        assert isinstance(flow.session, Authenticated)
        assert storage.list_calls == [(session.user_id, "ana@example.com")]
        activity_logger.log_session.assert_called_with(
            ActivityEventType.USER_SIGNED_IN, "ana@example.com", "User signed in"
        )

    def test_restore_picks_up_a_stored_session(self, storage, auth):
        asyncio.run(auth.sign_in("ana@example.com", "secret1"))
        flow = make_flow(storage, auth)

        session = asyncio.run(flow.restore_session())
        assert session.email == "ana@example.com"
        assert len(storage.list_calls) == 1

    def test_guest_session_reads_without_owner(self, storage, auth):
        flow = make_flow(storage, auth)
        asyncio.run(flow.start_guest_session())

        assert isinstance(flow.session, Guest)
        assert storage.list_calls == [(None, None)]
        assert len(flow.transactions) == 4

    def test_sign_out_clears_everything(self, storage, auth):
        flow = make_flow(storage, auth, admin_passphrase="segredo")
        asyncio.run(flow.sign_in("ana@example.com", "secret1"))
        asyncio.run(flow.enable_admin("segredo"))

        asyncio.run(flow.sign_out())

        assert isinstance(flow.session, Unauthenticated)
        assert not flow.admin_mode
        assert flow.transactions == []
        assert isinstance(asyncio.run(auth.get_session()), Unauthenticated)

    def test_provider_sign_out_event_clears_the_list(self, storage, auth):
        flow = make_flow(storage, auth)
        flow.subscribe_to_session_changes()
        asyncio.run(flow.sign_in("ana@example.com", "secret1"))

        asyncio.run(auth.sign_out())

        assert isinstance(flow.session, Unauthenticated)
        assert flow.transactions == []


class TestLoadTransactions:
    """Tests for the sync step."""

    def test_owner_filter(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        assert {t.id for t in flow.transactions} == {"1", "2", "3"}
        assert storage.list_calls[-1] == ("u-ana", "ana@example.com")

    def test_sync_failure_keeps_list_and_sets_banner(self, storage, auth, activity_logger):
        flow = signed_in_flow(storage, auth, activity_logger)
        storage.fail_list = "FetchError: network down"

        transactions = asyncio.run(flow.load_transactions())

        assert len(transactions) == 3
        assert flow.connection_error == "FetchError: network down"
        activity_logger.log_sync_failed.assert_called_once()

        storage.fail_list = None
        asyncio.run(flow.load_transactions())
        assert flow.connection_error is None


class TestAddTransaction:
    """Tests for the entry flow."""

    def test_add_prepends_the_stored_row(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        created = asyncio.run(flow.add_transaction(
            TransactionForm(description="Farmácia", amount="35,90", category=Category.HEALTH)
        ))

        assert created.id == "101"
        assert flow.transactions[0].id == "101"
        assert created.user_email == "ana@example.com"
        assert created.amount == Decimal("35.90")

    def test_income_with_lazer_is_stored_as_renda(self, storage, auth):
        """The form forces Renda, so the stats see plain income."""
        flow = signed_in_flow(storage, auth)
        created = asyncio.run(flow.add_transaction(
            TransactionForm(
                description="Freela",
                amount="300",
                category=Category.LEISURE,
                type=TransactionType.INCOME,
            )
        ))
        assert created.category == Category.INCOME
        assert flow.stats.total_income == Decimal("5300")

    def test_validation_errors_block_the_insert(self, storage, auth, activity_logger):
        flow = signed_in_flow(storage, auth, activity_logger)
        before = len(storage.rows)

        with pytest.raises(TransactionValidationError):
            asyncio.run(flow.add_transaction(TransactionForm(description="", amount="abc")))

        assert len(storage.rows) == before
        assert len(flow.transactions) == 3
        activity_logger.log_validation_failed.assert_called_once()

    def test_storage_errors_are_raised(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        storage.fail_insert = "permission denied"

        with pytest.raises(StorageError, match="permission denied"):
            asyncio.run(flow.add_transaction(TransactionForm(description="Uber", amount="20")))
        assert len(flow.transactions) == 3


class TestDeleteTransaction:
    """Tests for both delete policies."""

    def test_delete_success(self, storage, auth, activity_logger):
        flow = signed_in_flow(storage, auth, activity_logger)
        outcome = asyncio.run(flow.delete_transaction("2"))

        assert outcome.succeeded
        assert outcome.removed_locally
        assert "2" not in {t.id for t in flow.transactions}
        assert "2" not in {r.id for r in storage.rows}
        activity_logger.log_transaction_deleted.assert_called_once_with("2", "ana@example.com")

    def test_delete_unknown_id_keeps_the_list(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        outcome = asyncio.run(flow.delete_transaction("does-not-exist"))

        assert outcome.succeeded
        assert not outcome.removed_locally
        assert len(flow.transactions) == 3

    def test_failed_delete_keeps_local_removal_by_default(self, storage, auth, activity_logger):
        flow = signed_in_flow(storage, auth, activity_logger)
        storage.fail_delete = "network down"

        outcome = asyncio.run(flow.delete_transaction("2"))

        assert not outcome.succeeded
        assert outcome.error_message == "network down"
        assert not outcome.rolled_back
        assert "2" not in {t.id for t in flow.transactions}
        assert "2" in {r.id for r in storage.rows}
        activity_logger.log_delete_failed.assert_called_once()

    def test_failed_delete_rolls_back_when_configured(self, storage, auth):
        flow = signed_in_flow(storage, auth, rollback_failed_deletes=True)
        order_before = [t.id for t in flow.transactions]
        storage.fail_delete = "network down"

        outcome = asyncio.run(flow.delete_transaction("2"))

        assert outcome.rolled_back
        assert not outcome.removed_locally
        assert [t.id for t in flow.transactions] == order_before


class TestAdminMode:
    """Tests for the admin gate."""

    def test_passphrase_is_case_insensitive(self, storage, auth):
        flow = signed_in_flow(storage, auth, admin_passphrase="Segredo")

        assert asyncio.run(flow.enable_admin("SEGREDO"))
        assert flow.admin_mode
        assert storage.list_calls[-1] == (None, None)
        assert len(flow.transactions) == 4

    def test_wrong_passphrase(self, storage, auth, activity_logger):
        flow = signed_in_flow(storage, auth, activity_logger, admin_passphrase="segredo")

        assert not asyncio.run(flow.enable_admin("errado"))
        assert not flow.admin_mode
        activity_logger.log_admin_mode.assert_called_once_with(
            ActivityEventType.ADMIN_MODE_DENIED, "ana@example.com"
        )

    def test_no_passphrase_configured_means_no_admin(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        assert not flow.admin_available
        assert not asyncio.run(flow.enable_admin(""))
        assert not flow.admin_mode

    def test_admin_views(self, storage, auth):
        flow = signed_in_flow(storage, auth, admin_passphrase="segredo")
        assert flow.user_summaries == []
        assert flow.stats.user_count is None

        asyncio.run(flow.enable_admin("segredo"))

        assert flow.stats.user_count == 2
        ranking = flow.user_summaries
        assert [s.email for s in ranking] == ["ana@example.com", "bia@example.com"]
        assert ranking[0].total_spent == Decimal("1620")

    def test_disable_admin_reloads_own_list(self, storage, auth):
        flow = signed_in_flow(storage, auth, admin_passphrase="segredo")
        asyncio.run(flow.enable_admin("segredo"))

        asyncio.run(flow.disable_admin())

        assert not flow.admin_mode
        assert len(flow.transactions) == 3


class TestDerivedViews:
    """Tests for what the dashboard renders."""

    def test_stats_ignore_the_list_filters(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        groups = flow.visible_groups(search="row 3", type_filter="expense")

        assert [t.id for g in groups for t in g.transactions] == ["3"]
        assert flow.stats.total_expenses == Decimal("1620")
        assert flow.stats.total_balance == Decimal("3380")

    def test_groups_and_chart(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        groups = flow.visible_groups()
        assert [g.date for g in groups] == [
            date(2024, 5, 18), date(2024, 5, 10), date(2024, 5, 5),
        ]
        assert [f.date for f in flow.chart_flow()] == [
            date(2024, 5, 5), date(2024, 5, 10), date(2024, 5, 18),
        ]

    def test_insights_delegate_to_the_agent(self, storage, auth, activity_logger):
        agent = MagicMock()
        agent.get_insights = AsyncMock(return_value=[
            AIInsight(title="t", description="d", recommendation="r", severity="low"),
        ])
        flow = make_flow(storage, auth, activity_logger, insight_agent=agent)
        flow.session = ANA
        asyncio.run(flow.load_transactions())

        insights = asyncio.run(flow.get_insights())

        assert len(insights) == 1
        args, kwargs = agent.get_insights.call_args
        assert len(args[0]) == 3
        assert kwargs == {"admin_mode": False}
        activity_logger.log_insights_generated.assert_called_once()

    def test_insights_without_agent(self, storage, auth):
        flow = signed_in_flow(storage, auth)
        assert asyncio.run(flow.get_insights()) == []
